"""Turn per-control analysis results into ComplianceFinding + FindingEvidence rows."""

import logging
import uuid
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy.orm import Session

from complykit.models import ComplianceControl, ComplianceFinding, FindingEvidence
from complykit.models.enums import ComplianceStatus
from complykit.models.finding import (
    ANALYSIS_MODEL_MAX_LEN,
    FINDING_CODE_MAX_LEN,
    FINDING_TITLE_MAX_LEN,
    PAGE_REFERENCE_MAX_LEN,
)
from complykit.schemas.analysis import ControlAnalysisResult

logger = logging.getLogger(__name__)

# Verdicts that are not gaps and therefore never produce a finding.
NON_GAP_STATUSES: frozenset[ComplianceStatus] = frozenset(
    {ComplianceStatus.COMPLIANT, ComplianceStatus.NOT_APPLICABLE}
)


def finding_code(framework_code: str, control_id: uuid.UUID) -> str:
    """Deterministic, bounded code: "<framework>-<control id hex>" cut to FINDING_CODE_MAX_LEN."""
    return f"{framework_code}-{control_id.hex}"[:FINDING_CODE_MAX_LEN]


def _bounded(value: str | None, max_len: int) -> str | None:
    """Model-produced strings are cut to the column length they are stored in."""
    if value is None or len(value) <= max_len:
        return value
    return value[:max_len]


def synthesize_findings(
    db: Session,
    *,
    organization_id: uuid.UUID,
    project_id: uuid.UUID,
    framework_id: uuid.UUID,
    framework_code: str,
    controls: dict[uuid.UUID, ComplianceControl],
    project_document_ids: set[uuid.UUID],
    results: Iterable[ControlAnalysisResult],
    analysis_model: str | None,
    analyzed_at: datetime,
) -> list[ComplianceFinding]:
    """
    Add one finding per gap result (and its evidence) to the session; return the findings.

    Results for controls outside `controls` are ignored, and evidence pointing at
    documents outside the project is dropped, so evidence always stays within the
    finding's project. Existing findings are left as they are.
    """
    findings: list[ComplianceFinding] = []
    for result in results:
        if result.status in NON_GAP_STATUSES:
            continue
        control = controls.get(result.control_id)
        if control is None:
            logger.warning(
                "Analysis result for unknown control ignored",
                extra={"control_id": str(result.control_id), "project_id": str(project_id)},
            )
            continue

        finding = ComplianceFinding(
            organization_id=organization_id,
            project_id=project_id,
            framework_id=framework_id,
            control_id=control.id,
            finding_code=finding_code(framework_code, control.id),
            title=_bounded(
                result.finding_title or f"{control.control_code}: {control.title}",
                FINDING_TITLE_MAX_LEN,
            ),
            description=result.finding_description,
            status=result.status,
            risk_level=result.risk_level,
            remediation_guidance=result.remediation_guidance,
            estimated_effort_hours=result.estimated_effort_hours,
            confidence_score=result.confidence_score,
            analysis_model=_bounded(analysis_model, ANALYSIS_MODEL_MAX_LEN),
            analysis_version=1,
            last_analyzed_at=analyzed_at,
            raw_analysis=result.model_dump(mode="json"),
        )
        db.add(finding)

        for ref in result.evidence_references:
            if ref.document_id not in project_document_ids:
                logger.warning(
                    "Evidence referencing a document outside the project dropped",
                    extra={"document_id": str(ref.document_id), "project_id": str(project_id)},
                )
                continue
            finding.evidence.append(
                FindingEvidence(
                    document_id=ref.document_id,
                    excerpt=ref.excerpt,
                    page_reference=_bounded(ref.page_reference, PAGE_REFERENCE_MAX_LEN),
                    relevance_score=ref.relevance_score,
                    evidence_type=ref.evidence_type,
                    is_manually_added=False,
                )
            )
        findings.append(finding)
    return findings
