"""
List or restore soft-deleted rows (operator recovery). Run from project root:
  python -m complykit.scripts.restore_entity ENTITY_TYPE --list [--organization ORG_ID]
  python -m complykit.scripts.restore_entity ENTITY_TYPE ENTITY_ID [--actor USER_ID]
Example:
  python -m complykit.scripts.restore_entity Document 3f2a... --actor admin-1
"""
import argparse
import logging
import sys
import uuid

from complykit.core.config import get_settings
from complykit.core.context import RequestContext, bind_context
from complykit.core.database import SessionLocal
from complykit.services.recovery import RESTORABLE_TYPES, list_deleted, restore_by_id

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def _parse_uuid(value: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{value}' is not a valid UUID")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Restore soft-deleted ComplyKit data.")
    parser.add_argument("entity_type", choices=sorted(RESTORABLE_TYPES))
    parser.add_argument("entity_id", nargs="?", type=_parse_uuid, help="Row to restore")
    parser.add_argument("--list", action="store_true", help="List deleted rows instead of restoring")
    parser.add_argument("--organization", type=_parse_uuid, help="Limit --list to one organization")
    parser.add_argument("--actor", default=None, help="User id recorded on the restore entry")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.list and args.entity_id is None:
        print("ENTITY_ID is required unless --list is given.", file=sys.stderr)
        return 2

    settings = get_settings()
    db = SessionLocal()
    try:
        if args.list:
            for row in list_deleted(db, args.entity_type, args.organization):
                print(f"{row.id}\tdeleted_at={row.deleted_at}\tdeleted_by={row.deleted_by}")
            return 0

        bind_context(db, RequestContext(actor_id=args.actor, tenant_id=None))
        entity = restore_by_id(
            db, args.entity_type, args.entity_id, args.actor, settings.SYSTEM_ACTOR_EMAIL
        )
        if entity is None:
            print(f"No deleted {args.entity_type} with id {args.entity_id}.", file=sys.stderr)
            return 1
        db.commit()
        print(f"Restored {args.entity_type} {args.entity_id}.")
        return 0
    except Exception as e:
        db.rollback()
        logger.exception("Restore failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
