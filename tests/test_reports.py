"""Dashboard, framework report and executive summary built from persisted audit-check outcomes."""

import asyncio
import unittest
import uuid
from unittest.mock import AsyncMock, MagicMock

from complykit.core.context import RequestContext
from complykit.models import ComplianceFinding
from complykit.models.base import utcnow
from complykit.models.enums import ComplianceStatus, FindingWorkflowStatus, RiskLevel
from complykit.schemas.analysis import ControlAnalysisResult, FrameworkAnalysisResult
from complykit.services.analysis import summarize
from complykit.services.audit_check import AuditCheckService
from complykit.services.document_content import DocumentContentAggregator
from complykit.services.reports import (
    get_compliance_dashboard,
    get_executive_summary,
    get_framework_report,
)

from support import make_session_factory, make_settings, seed_workspace


class ReportsTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.Session = make_session_factory()
        self.session = self.Session()
        self.ws = seed_workspace(self.session, control_count=4)
        self.controls = self.ws.control_ids

    def tearDown(self) -> None:
        self.session.close()

    def _check(self, *statuses: ComplianceStatus, risk: RiskLevel = RiskLevel.HIGH) -> None:
        result = FrameworkAnalysisResult(
            results=[
                ControlAnalysisResult(control_id=control_id, status=status, risk_level=risk)
                for control_id, status in zip(self.controls, statuses)
            ],
            model="test-model",
            analysis_completed_at=utcnow(),
        )
        result.summary = summarize(result)
        analysis = MagicMock()
        analysis.analyze = AsyncMock(return_value=result)
        service = AuditCheckService(
            db=self.session,
            analysis=analysis,
            content=DocumentContentAggregator(MagicMock()),
            settings=make_settings(),
        )
        outcome = asyncio.run(
            service.run(self.ws.context, self.ws.project_id, self.ws.framework_id)
        )
        self.assertTrue(outcome.succeeded, outcome.errors)


class TestDashboard(ReportsTestCase):
    def test_before_any_check(self) -> None:
        dashboard = get_compliance_dashboard(self.session, self.ws.context, self.ws.project_id).value
        self.assertEqual(dashboard.overall_score, 0.0)
        self.assertEqual(dashboard.trend, [])
        self.assertEqual(dashboard.top_priority_findings, [])
        (framework,) = dashboard.frameworks
        self.assertEqual(framework.status, ComplianceStatus.NOT_ASSESSED)

    def test_two_runs_give_two_ascending_trend_points(self) -> None:
        C, P, N = (
            ComplianceStatus.COMPLIANT,
            ComplianceStatus.PARTIALLY_COMPLIANT,
            ComplianceStatus.NON_COMPLIANT,
        )
        self._check(C, N, N, N)
        self._check(C, C, P, N)

        dashboard = get_compliance_dashboard(self.session, self.ws.context, self.ws.project_id).value
        self.assertEqual([p.score for p in dashboard.trend], [25.0, 62.5])
        self.assertLess(dashboard.trend[0].run_at, dashboard.trend[1].run_at)

        self.assertEqual(dashboard.overall_score, 62.5)
        self.assertEqual(dashboard.overall_status, ComplianceStatus.PARTIALLY_COMPLIANT)
        self.assertEqual(dashboard.total_controls, 4)
        (framework,) = dashboard.frameworks
        self.assertEqual(framework.framework_code, "SOC2")
        self.assertEqual(framework.score, 62.5)
        self.assertEqual(framework.compliant_count, 2)

    def test_trend_is_capped_at_six_runs(self) -> None:
        for _ in range(7):
            self._check(ComplianceStatus.COMPLIANT, ComplianceStatus.COMPLIANT)
        dashboard = get_compliance_dashboard(self.session, self.ws.context, self.ws.project_id).value
        self.assertEqual(len(dashboard.trend), 6)
        run_times = [p.run_at for p in dashboard.trend]
        self.assertEqual(run_times, sorted(run_times))

    def test_top_priority_excludes_resolved_findings(self) -> None:
        self._check(*[ComplianceStatus.NON_COMPLIANT] * 4, risk=RiskLevel.CRITICAL)
        resolved = self.session.query(ComplianceFinding).first()
        resolved.workflow_status = FindingWorkflowStatus.RESOLVED
        resolved.resolution_notes = "Fixed"
        self.session.commit()

        dashboard = get_compliance_dashboard(self.session, self.ws.context, self.ws.project_id).value
        ids = {f.id for f in dashboard.top_priority_findings}
        self.assertEqual(len(ids), 3)
        self.assertNotIn(resolved.id, ids)
        self.assertEqual(dashboard.findings_by_risk["Critical"], 3)
        self.assertEqual(dashboard.frameworks[0].critical_findings, 3)
        self.assertTrue(all(f.control_code for f in dashboard.top_priority_findings))

    def test_top_priority_rows_carry_framework_and_assignee(self) -> None:
        self._check(ComplianceStatus.NON_COMPLIANT, ComplianceStatus.COMPLIANT)
        finding = self.session.query(ComplianceFinding).one()
        finding.assigned_to = "user-2"
        self.session.commit()

        dashboard = get_compliance_dashboard(self.session, self.ws.context, self.ws.project_id).value
        (row,) = dashboard.top_priority_findings
        self.assertEqual(row.framework_name, "SOC 2")
        self.assertEqual(row.control_code, "C1")
        self.assertEqual(row.assigned_to, "user-2")

    def test_non_member_is_refused(self) -> None:
        outsider = RequestContext(actor_id="outsider", tenant_id=self.ws.organization_id)
        result = get_compliance_dashboard(self.session, outsider, self.ws.project_id)
        self.assertFalse(result.succeeded)
        self.assertEqual(result.error_code, "forbidden")

    def test_other_tenant_sees_not_found(self) -> None:
        other = RequestContext(actor_id="user-1", tenant_id=uuid.uuid4())
        result = get_compliance_dashboard(self.session, other, self.ws.project_id)
        self.assertEqual(result.errors, ["Project not found."])


class TestFrameworkReport(ReportsTestCase):
    def test_rows_reflect_latest_findings(self) -> None:
        self._check(
            ComplianceStatus.COMPLIANT,
            ComplianceStatus.NON_COMPLIANT,
            ComplianceStatus.PARTIALLY_COMPLIANT,
            ComplianceStatus.NOT_APPLICABLE,
        )
        report = get_framework_report(
            self.session, self.ws.context, self.ws.project_id, self.ws.framework_id
        ).value
        self.assertEqual([r.control_code for r in report.controls], ["C1", "C2", "C3", "C4"])
        statuses = [r.status for r in report.controls]
        self.assertEqual(
            statuses,
            [
                ComplianceStatus.COMPLIANT,
                ComplianceStatus.NON_COMPLIANT,
                ComplianceStatus.PARTIALLY_COMPLIANT,
                ComplianceStatus.COMPLIANT,
            ],
        )
        self.assertEqual(report.controls[1].open_findings, 1)
        self.assertEqual(report.score, 50.0)
        self.assertEqual(report.status, ComplianceStatus.PARTIALLY_COMPLIANT)

    def test_unanalyzed_framework_is_not_assessed(self) -> None:
        report = get_framework_report(
            self.session, self.ws.context, self.ws.project_id, self.ws.framework_id
        ).value
        self.assertEqual(report.status, ComplianceStatus.NOT_ASSESSED)
        self.assertTrue(all(r.status == ComplianceStatus.NOT_ASSESSED for r in report.controls))

    def test_unassigned_framework(self) -> None:
        result = get_framework_report(self.session, self.ws.context, self.ws.project_id, uuid.uuid4())
        self.assertEqual(result.errors, ["Framework is not assigned to this project."])



class TestExecutiveSummary(ReportsTestCase):
    def _summary(self):
        return get_executive_summary(self.session, self.ws.context, self.ws.project_id).value

    def test_before_any_check(self) -> None:
        summary = self._summary()
        self.assertEqual(summary.project_name, "Alpha")
        self.assertEqual(summary.overall_score, 0.0)
        self.assertIsNone(summary.last_analysis_date)
        self.assertEqual(summary.total_findings, 0)
        self.assertEqual(summary.progress.resolution_rate, 0.0)
        self.assertEqual(summary.top_risks, [])
        self.assertIn("No critical findings were identified.", summary.summary)
        self.assertNotIn(
            "Accelerate remediation efforts to improve the finding resolution rate and "
            "demonstrate progress toward compliance.",
            summary.key_recommendations,
        )

    def test_critical_gaps_with_partial_progress(self) -> None:
        C, P, N = (
            ComplianceStatus.COMPLIANT,
            ComplianceStatus.PARTIALLY_COMPLIANT,
            ComplianceStatus.NON_COMPLIANT,
        )
        self._check(C, N, P, N, risk=RiskLevel.CRITICAL)
        resolved, in_progress, _ = self.session.query(ComplianceFinding).all()
        resolved.workflow_status = FindingWorkflowStatus.RESOLVED
        resolved.resolution_notes = "Fixed"
        in_progress.workflow_status = FindingWorkflowStatus.IN_PROGRESS
        self.session.commit()

        summary = self._summary()
        self.assertEqual(summary.overall_score, 37.5)
        self.assertEqual(summary.overall_status, ComplianceStatus.NON_COMPLIANT)
        self.assertIsNotNone(summary.last_analysis_date)
        self.assertEqual(summary.total_frameworks, 1)
        self.assertEqual(summary.total_controls, 4)
        self.assertEqual(summary.compliant_count, 1)
        self.assertEqual(summary.critical_findings, 3)
        self.assertEqual(summary.open_critical_findings, 1)
        (framework,) = summary.frameworks
        self.assertEqual(framework.framework_code, "SOC2")
        self.assertEqual(framework.critical_findings, 3)

        progress = summary.progress
        self.assertEqual(
            (
                progress.total_findings,
                progress.resolved_findings,
                progress.in_progress_findings,
                progress.open_findings,
            ),
            (3, 1, 1, 1),
        )
        self.assertAlmostEqual(progress.resolution_rate, 100 / 3)

        self.assertEqual(len(summary.top_risks), 2)
        self.assertNotIn(resolved.id, {r.id for r in summary.top_risks})
        self.assertTrue(all(r.framework_name == "SOC 2" for r in summary.top_risks))

        self.assertEqual(
            summary.summary,
            "The Alpha compliance assessment shows a low level of compliance with an overall "
            "score of 37.5%. Of the 4 controls assessed, 1 are fully compliant. There are 3 "
            "critical findings identified, with 1 currently open and requiring immediate "
            "attention. The current remediation progress shows a 33.3% resolution rate. "
            "Significant effort is required to achieve compliance.",
        )
        recommendations = summary.key_recommendations
        self.assertEqual(len(recommendations), 5)
        self.assertTrue(recommendations[0].startswith("Prioritize immediate remediation of 1 open"))
        self.assertTrue(recommendations[1].startswith("Implement a comprehensive remediation plan"))
        self.assertTrue(recommendations[2].startswith("Accelerate remediation efforts"))
        self.assertTrue(
            recommendations[3].startswith("Focus resources on improving compliance with SOC2 frameworks")
        )
        self.assertTrue(recommendations[4].startswith("Establish regular executive reviews"))

    def test_fully_compliant_project(self) -> None:
        self._check(*[ComplianceStatus.COMPLIANT] * 4)
        summary = self._summary()
        self.assertEqual(summary.overall_score, 100.0)
        self.assertIn("shows a high level of compliance", summary.summary)
        self.assertTrue(summary.summary.endswith("continued focus on remediation."))
        (recommendation,) = summary.key_recommendations
        self.assertTrue(recommendation.startswith("Continue current remediation efforts"))

    def test_medium_risk_gaps_are_not_top_risks(self) -> None:
        self._check(*[ComplianceStatus.NON_COMPLIANT] * 4, risk=RiskLevel.MEDIUM)
        summary = self._summary()
        self.assertEqual(summary.total_findings, 4)
        self.assertEqual(summary.critical_findings, 0)
        self.assertEqual(summary.top_risks, [])

    def test_non_member_is_refused(self) -> None:
        outsider = RequestContext(actor_id="outsider", tenant_id=self.ws.organization_id)
        result = get_executive_summary(self.session, outsider, self.ws.project_id)
        self.assertEqual(result.error_code, "forbidden")


if __name__ == "__main__":
    unittest.main()
