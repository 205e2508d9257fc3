"""Pydantic request/response schemas."""

from complykit.schemas.activity import ActivityLogEntry, ActivityLogFilters, ActivityLogPage
from complykit.schemas.analysis import (
    AnalysisOptions,
    ComplianceSummary,
    ControlAnalysisResult,
    ControlSummary,
    DocumentContent,
    EvidenceReference,
    FrameworkAnalysisRequest,
    FrameworkAnalysisResult,
)
from complykit.schemas.audit_check import AuditCheckRequest, AuditCheckResponse, AuditCheckState
from complykit.schemas.common import OperationResult
from complykit.schemas.health import HealthResponse
from complykit.schemas.reports import ComplianceDashboard, FrameworkReport, TrendPoint

__all__ = [
    "ActivityLogEntry",
    "ActivityLogFilters",
    "ActivityLogPage",
    "AnalysisOptions",
    "AuditCheckRequest",
    "AuditCheckResponse",
    "AuditCheckState",
    "ComplianceDashboard",
    "ComplianceSummary",
    "ControlAnalysisResult",
    "ControlSummary",
    "DocumentContent",
    "EvidenceReference",
    "FrameworkAnalysisRequest",
    "FrameworkAnalysisResult",
    "FrameworkReport",
    "HealthResponse",
    "OperationResult",
    "TrendPoint",
]
