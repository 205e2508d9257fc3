"""
Compliance scoring: the weighted score, status classification, trend series and
top-priority selection.

score = (compliant * 100 + partial * 50) / N, where N counts compliant, partial,
non-compliant and not-assessed controls; 0 when N == 0. The weights are fixed.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from complykit.models.enums import ComplianceStatus, FindingWorkflowStatus, RiskLevel

COMPLIANT_WEIGHT = 100
PARTIAL_WEIGHT = 50

COMPLIANT_THRESHOLD = 90.0
PARTIAL_THRESHOLD = 50.0

TREND_MAX_POINTS = 6
TOP_PRIORITY_LIMIT = 10

# Workflow states that no longer need attention.
CLOSED_WORKFLOW_STATUSES: frozenset[FindingWorkflowStatus] = frozenset(
    {FindingWorkflowStatus.RESOLVED, FindingWorkflowStatus.FALSE_POSITIVE}
)


@dataclass
class StatusCounts:
    compliant: int = 0
    partial: int = 0
    non_compliant: int = 0
    not_assessed: int = 0

    @property
    def total(self) -> int:
        return self.compliant + self.partial + self.non_compliant + self.not_assessed

    def add(self, status: ComplianceStatus) -> None:
        """Count one control; NotApplicable is not part of the population."""
        if status == ComplianceStatus.COMPLIANT:
            self.compliant += 1
        elif status == ComplianceStatus.PARTIALLY_COMPLIANT:
            self.partial += 1
        elif status == ComplianceStatus.NON_COMPLIANT:
            self.non_compliant += 1
        elif status == ComplianceStatus.NOT_ASSESSED:
            self.not_assessed += 1

    def __add__(self, other: "StatusCounts") -> "StatusCounts":
        return StatusCounts(
            compliant=self.compliant + other.compliant,
            partial=self.partial + other.partial,
            non_compliant=self.non_compliant + other.non_compliant,
            not_assessed=self.not_assessed + other.not_assessed,
        )

    @classmethod
    def from_statuses(cls, statuses: Iterable[ComplianceStatus]) -> "StatusCounts":
        counts = cls()
        for status in statuses:
            counts.add(status)
        return counts


def compliance_score(counts: StatusCounts) -> float:
    n = counts.total
    if n == 0:
        return 0.0
    return (counts.compliant * COMPLIANT_WEIGHT + counts.partial * PARTIAL_WEIGHT) / n


def classify(score: float) -> ComplianceStatus:
    """>= 90 Compliant, >= 50 PartiallyCompliant, otherwise NonCompliant."""
    if score >= COMPLIANT_THRESHOLD:
        return ComplianceStatus.COMPLIANT
    if score >= PARTIAL_THRESHOLD:
        return ComplianceStatus.PARTIALLY_COMPLIANT
    return ComplianceStatus.NON_COMPLIANT


@dataclass
class RunScore:
    run_at: datetime
    counts: StatusCounts

    @property
    def score(self) -> float:
        return compliance_score(self.counts)


def trend_series(runs: Iterable[RunScore], max_points: int = TREND_MAX_POINTS) -> list[RunScore]:
    """
    Merge runs sharing a run timestamp, keep the most recent `max_points`, and
    return them oldest first for display.
    """
    merged: dict[datetime, StatusCounts] = {}
    for run in runs:
        merged[run.run_at] = merged.get(run.run_at, StatusCounts()) + run.counts
    latest = sorted(merged, reverse=True)[:max_points]
    return [RunScore(run_at=run_at, counts=merged[run_at]) for run_at in sorted(latest)]


def _priority_key(finding) -> tuple:
    # Highest risk first, then earliest due date; undated findings go last.
    due = finding.due_date
    return (-RiskLevel(finding.risk_level).rank, due is None, due or datetime.max)


def top_priority_findings(findings: Iterable, limit: int = TOP_PRIORITY_LIMIT) -> list:
    """Open-ish findings ordered by risk desc then due date asc (nulls last), capped at `limit`."""
    candidates = [
        f
        for f in findings
        if FindingWorkflowStatus(f.workflow_status) not in CLOSED_WORKFLOW_STATUSES
    ]
    return sorted(candidates, key=_priority_key)[:limit]
