"""Activity log query surface: tenant scoping, filters, paging and the page-size ceiling."""

import unittest
import uuid
from datetime import date, datetime, timezone

from complykit.core.context import RequestContext
from complykit.models import ActivityLog
from complykit.models.enums import ActivityType
from complykit.schemas.activity import ActivityLogFilters
from complykit.services.activity_queries import get_audit_logs, page_size
from complykit.services.identity import UNKNOWN_USER_NAME

from support import make_session_factory, make_settings


class TestPageSize(unittest.TestCase):
    def test_default_and_clamping(self) -> None:
        settings = make_settings()
        self.assertEqual(page_size(None, settings), 100)
        self.assertEqual(page_size(5000, settings), 1000)
        self.assertEqual(page_size(0, settings), 1)
        self.assertEqual(page_size(-3, settings), 1)
        self.assertEqual(page_size(250, settings), 250)


class TestGetAuditLogs(unittest.TestCase):
    def setUp(self) -> None:
        self.Session = make_session_factory()
        self.session = self.Session()
        self.settings = make_settings()
        self.org_id = uuid.uuid4()
        self.project_id = uuid.uuid4()
        self.context = RequestContext(actor_id="user-1", tenant_id=self.org_id)
        self._log(ActivityType.PROJECT_CREATED, "Created project 'Alpha'", datetime(2026, 1, 10, 9, 0), entity_name="Alpha")
        self._log(ActivityType.DOCUMENT_UPLOADED, "Created document 'SOC Policy.pdf'", datetime(2026, 1, 11, 23, 59), entity_name="SOC Policy.pdf", user_id="user-2")
        self._log(ActivityType.DOCUMENT_DELETED, "Deleted document 'old.txt'", datetime(2026, 1, 12, 0, 0), entity_name="old.txt")
        self._log(ActivityType.PROJECT_CREATED, "Created project 'Other'", datetime(2026, 1, 11, 12, 0), organization_id=uuid.uuid4())
        self.session.commit()

    def tearDown(self) -> None:
        self.session.close()

    def _log(self, activity_type, description, occurred_at, organization_id=None, user_id="user-1", entity_name=None):
        self.session.add(
            ActivityLog(
                organization_id=organization_id or self.org_id,
                project_id=self.project_id,
                user_id=user_id,
                user_name="" if user_id == "user-2" else "Jane Doe",
                user_email="jane@example.com",
                activity_type=activity_type,
                entity_type="Project" if activity_type == ActivityType.PROJECT_CREATED else "Document",
                entity_id=str(uuid.uuid4()),
                entity_name=entity_name,
                description=description,
                details={"k": "v"},
                occurred_at=occurred_at.replace(tzinfo=timezone.utc),
            )
        )

    def _query(self, **filters: object):
        return get_audit_logs(self.session, self.context, ActivityLogFilters(**filters), self.settings)

    def test_only_own_tenant_newest_first(self) -> None:
        page = self._query().value
        self.assertEqual(page.total_count, 3)
        self.assertEqual(page.returned_count, 3)
        self.assertEqual(
            [e.description for e in page.logs],
            [
                "Deleted document 'old.txt'",
                "Created document 'SOC Policy.pdf'",
                "Created project 'Alpha'",
            ],
        )
        self.assertEqual(page.logs[0].metadata, {"k": "v"})

    def test_filter_by_type_and_user(self) -> None:
        page = self._query(activity_type=ActivityType.DOCUMENT_UPLOADED).value
        self.assertEqual(page.total_count, 1)
        page = self._query(user_id="user-2").value
        self.assertEqual([e.user_id for e in page.logs], ["user-2"])
        self.assertEqual(page.logs[0].user_name, UNKNOWN_USER_NAME)

    def test_end_date_is_inclusive(self) -> None:
        page = self._query(start_date=date(2026, 1, 11), end_date=date(2026, 1, 11)).value
        self.assertEqual([e.entity_name for e in page.logs], ["SOC Policy.pdf"])

    def test_search_is_case_insensitive_over_description_and_name(self) -> None:
        page = self._query(search="soc policy").value
        self.assertEqual(page.total_count, 1)
        page = self._query(search="ALPHA").value
        self.assertEqual(page.total_count, 1)

    def test_paging(self) -> None:
        page = self._query(offset=1, limit=1).value
        self.assertEqual(page.total_count, 3)
        self.assertEqual(page.returned_count, 1)
        self.assertEqual(page.offset, 1)
        self.assertEqual(page.logs[0].entity_name, "SOC Policy.pdf")

    def test_oversized_limit_is_clamped(self) -> None:
        for _ in range(1005):
            self._log(ActivityType.OTHER, "Bulk", datetime(2026, 1, 1))
        self.session.commit()
        page = self._query(limit=5000).value
        self.assertEqual(page.returned_count, 1000)
        self.assertEqual(page.total_count, 1008)

    def test_requires_workspace(self) -> None:
        result = get_audit_logs(
            self.session, RequestContext(actor_id="user-1"), ActivityLogFilters(), self.settings
        )
        self.assertFalse(result.succeeded)
        self.assertEqual(result.errors, ["No workspace selected."])


if __name__ == "__main__":
    unittest.main()
