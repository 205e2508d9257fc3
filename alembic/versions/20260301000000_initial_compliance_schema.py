"""Initial compliance schema: tenants, projects, frameworks, documents, findings, activity log.

Revision ID: 20260301000000
Revises:
Create Date: 2026-03-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "20260301000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _auditable_columns() -> list[sa.Column]:
    """Primary key, creation/modification stamps and soft-delete tombstone shared by auditable tables."""
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_by", sa.String(length=64), nullable=True),
        sa.Column("last_modified", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_modified_by", sa.String(length=64), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by", sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    ]


def _create_auditable_table(name: str, *columns: sa.Column) -> None:
    op.create_table(name, *_auditable_columns(), *columns)
    op.create_index(op.f(f"ix_{name}_is_deleted"), name, ["is_deleted"])


def _tenant_column() -> sa.Column:
    return sa.Column(
        "organization_id", sa.Uuid(), sa.ForeignKey("organizations.id"), nullable=False
    )


def upgrade() -> None:
    _create_auditable_table(
        "organizations",
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("domain", sa.String(length=255), nullable=True),
        sa.Column("subscription_tier", sa.String(length=64), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("storage_used_bytes", sa.BigInteger(), nullable=False, server_default="0"),
    )
    _create_auditable_table(
        "organization_members",
        _tenant_column(),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="Member"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index(op.f("ix_organization_members_organization_id"), "organization_members", ["organization_id"])
    op.create_index(op.f("ix_organization_members_user_id"), "organization_members", ["user_id"])

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(length=255), nullable=False, server_default=""),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    _create_auditable_table(
        "projects",
        _tenant_column(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="Draft"),
        sa.Column("target_date", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(op.f("ix_projects_organization_id"), "projects", ["organization_id"])

    _create_auditable_table(
        "project_members",
        _tenant_column(),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="Viewer"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index(op.f("ix_project_members_organization_id"), "project_members", ["organization_id"])
    op.create_index(op.f("ix_project_members_project_id"), "project_members", ["project_id"])
    op.create_index(op.f("ix_project_members_user_id"), "project_members", ["user_id"])

    _create_auditable_table(
        "compliance_frameworks",
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("version", sa.String(length=50), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index(op.f("ix_compliance_frameworks_code"), "compliance_frameworks", ["code"], unique=True)

    _create_auditable_table(
        "compliance_controls",
        sa.Column(
            "framework_id", sa.Uuid(), sa.ForeignKey("compliance_frameworks.id"), nullable=False
        ),
        sa.Column("control_code", sa.String(length=50), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("implementation_guidance", sa.Text(), nullable=True),
        sa.Column("is_mandatory", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("default_risk_level", sa.String(length=32), nullable=False, server_default="Medium"),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index(op.f("ix_compliance_controls_framework_id"), "compliance_controls", ["framework_id"])

    _create_auditable_table(
        "project_frameworks",
        _tenant_column(),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column(
            "framework_id", sa.Uuid(), sa.ForeignKey("compliance_frameworks.id"), nullable=False
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="NotAssessed"),
        sa.Column("compliance_percentage", sa.Float(), nullable=True),
        sa.Column("total_controls", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("compliant_controls", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("partially_compliant_controls", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("non_compliant_controls", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("not_assessed_controls", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_analysis_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_analysis_by", sa.String(length=255), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
    )
    op.create_index(op.f("ix_project_frameworks_organization_id"), "project_frameworks", ["organization_id"])
    op.create_index(op.f("ix_project_frameworks_project_id"), "project_frameworks", ["project_id"])
    op.create_index(op.f("ix_project_frameworks_framework_id"), "project_frameworks", ["framework_id"])

    _create_auditable_table(
        "documents",
        _tenant_column(),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("file_name", sa.String(length=1024), nullable=False),
        sa.Column("storage_path", sa.String(length=2048), nullable=False),
        sa.Column("content_type", sa.String(length=255), nullable=False),
        sa.Column("file_size_bytes", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("category", sa.String(length=64), nullable=True),
        sa.Column("extracted_text", sa.Text(), nullable=True),
        sa.Column("page_count", sa.Integer(), nullable=True),
        sa.Column("text_extracted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(op.f("ix_documents_organization_id"), "documents", ["organization_id"])
    op.create_index(op.f("ix_documents_project_id"), "documents", ["project_id"])

    _create_auditable_table(
        "compliance_findings",
        _tenant_column(),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column(
            "framework_id", sa.Uuid(), sa.ForeignKey("compliance_frameworks.id"), nullable=False
        ),
        sa.Column(
            "control_id", sa.Uuid(), sa.ForeignKey("compliance_controls.id"), nullable=False
        ),
        sa.Column("finding_code", sa.String(length=20), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="NotAssessed"),
        sa.Column("risk_level", sa.String(length=32), nullable=False, server_default="Medium"),
        sa.Column("workflow_status", sa.String(length=32), nullable=False, server_default="Open"),
        sa.Column("remediation_guidance", sa.Text(), nullable=True),
        sa.Column("estimated_effort_hours", sa.Float(), nullable=True),
        sa.Column("confidence_score", sa.Float(), nullable=True),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("assigned_to", sa.String(length=64), nullable=True),
        sa.Column("analysis_model", sa.String(length=255), nullable=True),
        sa.Column("analysis_version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("last_analyzed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("raw_analysis", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("resolution_notes", sa.Text(), nullable=True),
        sa.Column("resolved_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolved_by", sa.String(length=64), nullable=True),
    )
    for column in ("organization_id", "project_id", "framework_id", "control_id", "finding_code", "last_analyzed_at"):
        op.create_index(op.f(f"ix_compliance_findings_{column}"), "compliance_findings", [column])

    _create_auditable_table(
        "finding_evidence",
        sa.Column(
            "finding_id", sa.Uuid(), sa.ForeignKey("compliance_findings.id"), nullable=False
        ),
        sa.Column("document_id", sa.Uuid(), sa.ForeignKey("documents.id"), nullable=False),
        sa.Column("excerpt", sa.Text(), nullable=False, server_default=""),
        sa.Column("page_reference", sa.String(length=255), nullable=True),
        sa.Column("relevance_score", sa.Float(), nullable=True),
        sa.Column("evidence_type", sa.String(length=32), nullable=False, server_default="Supporting"),
        sa.Column("is_manually_added", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index(op.f("ix_finding_evidence_finding_id"), "finding_evidence", ["finding_id"])
    op.create_index(op.f("ix_finding_evidence_document_id"), "finding_evidence", ["document_id"])

    _create_auditable_table(
        "remediation_tasks",
        _tenant_column(),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column(
            "finding_id", sa.Uuid(), sa.ForeignKey("compliance_findings.id"), nullable=True
        ),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="Open"),
        sa.Column("priority", sa.String(length=32), nullable=False, server_default="Medium"),
        sa.Column("assigned_to", sa.String(length=64), nullable=True),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(op.f("ix_remediation_tasks_organization_id"), "remediation_tasks", ["organization_id"])
    op.create_index(op.f("ix_remediation_tasks_project_id"), "remediation_tasks", ["project_id"])
    op.create_index(op.f("ix_remediation_tasks_finding_id"), "remediation_tasks", ["finding_id"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("organization_id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("user_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("user_email", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("activity_type", sa.String(length=32), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=True),
        sa.Column("entity_name", sa.String(length=1024), nullable=True),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("organization_id", "project_id", "user_id", "activity_type", "entity_type", "entity_id", "occurred_at"):
        op.create_index(op.f(f"ix_activity_logs_{column}"), "activity_logs", [column])


def downgrade() -> None:
    for table in (
        "activity_logs",
        "remediation_tasks",
        "finding_evidence",
        "compliance_findings",
        "documents",
        "project_frameworks",
        "compliance_controls",
        "compliance_frameworks",
        "project_members",
        "projects",
        "users",
        "organization_members",
        "organizations",
    ):
        op.drop_table(table)
