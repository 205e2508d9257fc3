"""PostgreSQL connection and session management."""

from collections.abc import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker

from complykit.core.config import settings
from complykit.services.audit_log import build_audit_dispatcher
from complykit.services.change_tracking import register_change_tracking
from complykit.services.soft_delete import register_visibility_filter

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=settings.DEBUG,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Every unit of work soft-deletes, hides tombstones and writes the audit trail.
dispatcher = build_audit_dispatcher(settings)
register_change_tracking(SessionLocal, dispatcher)
register_visibility_filter(SessionLocal)


def get_db() -> Generator[Session, None, None]:
    """Dependency that yields a DB session and closes it when done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
