"""Shared test helpers: in-memory SQLite unit of work wired with the production listeners, plus seed data."""

import uuid
from dataclasses import dataclass
from unittest.mock import MagicMock

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from complykit.core.context import RequestContext, bind_context
from complykit.models import (
    ActivityLog,
    Base,
    ComplianceControl,
    ComplianceFramework,
    Document,
    Organization,
    OrganizationMember,
    Project,
    ProjectFramework,
    ProjectMember,
    User,
)
from complykit.models.enums import ActivityType, OrganizationRole, ProjectRole, RiskLevel
from complykit.services.audit_log import build_audit_dispatcher
from complykit.services.change_tracking import register_change_tracking
from complykit.services.lifecycle_events import LifecycleEventDispatcher
from complykit.services.soft_delete import register_visibility_filter

SYSTEM_EMAIL = "system@test.local"
OWNER_ID = "user-1"


def make_settings(**overrides: object) -> MagicMock:
    settings = MagicMock()
    settings.SYSTEM_ACTOR_EMAIL = SYSTEM_EMAIL
    settings.AUDIT_CHECK_COMMIT_RETRIES = 3
    settings.ACTIVITY_LOG_DEFAULT_PAGE_SIZE = 100
    settings.ACTIVITY_LOG_MAX_PAGE_SIZE = 1000
    settings.OLLAMA_BASE_URL = "http://localhost:11434"
    settings.OLLAMA_MODEL = "test-model"
    settings.OLLAMA_REQUEST_TIMEOUT_SEC = 30.0
    settings.OLLAMA_TEMPERATURE = 0.3
    settings.OLLAMA_TOP_P = 1.0
    settings.OLLAMA_SEED = 42
    settings.ANALYSIS_MAX_DOCUMENT_CHARS = 15000
    for key, value in overrides.items():
        setattr(settings, key, value)
    return settings


def make_session_factory(dispatcher: LifecycleEventDispatcher | None = None) -> sessionmaker:
    """Fresh in-memory database with change tracking, audit writers and the visibility filter installed."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False)
    if dispatcher is None:
        dispatcher = build_audit_dispatcher(make_settings())
    register_change_tracking(factory, dispatcher)
    register_visibility_filter(factory)
    return factory


@dataclass
class Workspace:
    organization_id: uuid.UUID
    project_id: uuid.UUID
    framework_id: uuid.UUID
    framework_code: str
    control_ids: list[uuid.UUID]
    document_ids: list[uuid.UUID]
    context: RequestContext


def seed_workspace(
    session: Session,
    *,
    control_count: int = 2,
    document_count: int = 1,
    member_role: ProjectRole = ProjectRole.OWNER,
    framework_code: str = "SOC2",
    assign_framework: bool = True,
) -> Workspace:
    """One organization with an owner, a project, a framework with controls, and documents."""
    org_id = uuid.uuid4()
    project_id = uuid.uuid4()
    framework_id = uuid.uuid4()
    context = RequestContext(actor_id=OWNER_ID, tenant_id=org_id)
    bind_context(session, context)

    session.add(User(id=OWNER_ID, email="jane@example.com", first_name="Jane", last_name="Doe"))
    session.add(Organization(id=org_id, name="Acme", storage_used_bytes=1000))
    session.add(
        OrganizationMember(organization_id=org_id, user_id=OWNER_ID, role=OrganizationRole.OWNER)
    )
    session.add(Project(id=project_id, organization_id=org_id, name="Alpha"))
    session.add(
        ProjectMember(
            organization_id=org_id, project_id=project_id, user_id=OWNER_ID, role=member_role
        )
    )
    session.add(ComplianceFramework(id=framework_id, code=framework_code, name="SOC 2"))

    control_ids = []
    for i in range(control_count):
        control = ComplianceControl(
            id=uuid.uuid4(),
            framework_id=framework_id,
            control_code=f"C{i + 1}",
            title=f"Control {i + 1}",
            description=f"Requirement {i + 1}",
            default_risk_level=RiskLevel.MEDIUM,
            display_order=i,
        )
        session.add(control)
        control_ids.append(control.id)

    if assign_framework:
        session.add(
            ProjectFramework(organization_id=org_id, project_id=project_id, framework_id=framework_id)
        )

    document_ids = []
    for i in range(document_count):
        document = Document(
            id=uuid.uuid4(),
            organization_id=org_id,
            project_id=project_id,
            file_name=f"policy-{i + 1}.txt",
            storage_path=f"{org_id}/{project_id}/policy-{i + 1}.txt",
            content_type="text/plain",
            file_size_bytes=100,
            extracted_text=f"Access control policy number {i + 1}.",
        )
        session.add(document)
        document_ids.append(document.id)

    session.commit()
    return Workspace(
        organization_id=org_id,
        project_id=project_id,
        framework_id=framework_id,
        framework_code=framework_code,
        control_ids=control_ids,
        document_ids=document_ids,
        context=context,
    )


def add_member(
    session: Session,
    workspace: Workspace,
    user_id: str,
    role: ProjectRole,
    organization_role: OrganizationRole = OrganizationRole.MEMBER,
) -> RequestContext:
    session.add(
        OrganizationMember(
            organization_id=workspace.organization_id, user_id=user_id, role=organization_role
        )
    )
    session.add(
        ProjectMember(
            organization_id=workspace.organization_id,
            project_id=workspace.project_id,
            user_id=user_id,
            role=role,
        )
    )
    session.commit()
    return RequestContext(actor_id=user_id, tenant_id=workspace.organization_id)


def logs_of_type(session: Session, activity_type: ActivityType) -> list[ActivityLog]:
    return (
        session.query(ActivityLog)
        .filter(ActivityLog.activity_type == activity_type)
        .order_by(ActivityLog.occurred_at)
        .all()
    )
