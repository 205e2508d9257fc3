"""API v1 routes."""

from fastapi import APIRouter

from complykit.api.v1 import activity, admin, audit_checks, documents, findings, health, projects, reports

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(audit_checks.router, prefix="/projects", tags=["audit-checks"])
router.include_router(reports.router, prefix="/projects", tags=["reports"])
router.include_router(projects.router, prefix="/projects", tags=["projects"])
router.include_router(documents.router, prefix="/documents", tags=["documents"])
router.include_router(findings.router, prefix="/findings", tags=["findings"])
router.include_router(activity.router, prefix="/activity-logs", tags=["activity"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
