"""
Tests for copying tasks between clients.

Covers:
- Single recurring / ad-hoc copies and what they reset
- Bulk copy collecting per-task failures
"""

from datetime import date

import pytest

from practice.errors import NotFoundError
from practice.models import QuarterlyPattern, TaskStatus
from practice.tasks import TaskCopyService, copy_client_tasks
from practice.tasks.repository import RecurringTaskRepository, TaskInstanceRepository
from tests.fixtures import create_fixture_db


@pytest.fixture
def fixture_db(tmp_path):
    db = create_fixture_db(tmp_path / "fixture.db")
    yield db
    db.close()


@pytest.fixture
def service(fixture_db):
    return TaskCopyService(fixture_db)


class TestCopyRecurringTask:
    """Recurring copies start fresh under the target client."""

    def test_copy_keeps_template_and_pattern(self, service):
        copy = service.copy_recurring_task("rt-quarterly-vat", "client-b")

        assert copy.id != "rt-quarterly-vat"
        assert copy.client_id == "client-b"
        assert copy.template_id == "tmpl-vat"
        assert copy.pattern == QuarterlyPattern(day_of_month=10)
        assert copy.required_skills == ("sk-tax", "sk-books")
        assert copy.estimated_hours == 6.0

    def test_copy_resets_generation_history(self, service, fixture_db):
        RecurringTaskRepository(fixture_db).mark_generated("rt-monthly-books", date(2025, 1, 15))

        copy = service.copy_recurring_task("rt-monthly-books", "client-b")

        assert copy.last_generated_date is None
        stored = RecurringTaskRepository(fixture_db).get(copy.id)
        assert stored.last_generated_date is None
        assert stored.is_active is True

    def test_copy_of_inactive_task_is_active(self, service):
        assert service.copy_recurring_task("rt-inactive", "client-a").is_active is True

    def test_source_is_untouched(self, service, fixture_db):
        service.copy_recurring_task("rt-monthly-books", "client-b")
        assert RecurringTaskRepository(fixture_db).get("rt-monthly-books").client_id == "client-a"

    def test_missing_task_raises(self, service):
        with pytest.raises(NotFoundError) as exc_info:
            service.copy_recurring_task("rt-missing", "client-b")
        assert exc_info.value.entity_id == "rt-missing"


class TestCopyAdHocTask:
    def test_copy_is_unscheduled_for_target(self, service, fixture_db):
        instances = TaskInstanceRepository(fixture_db)
        source = instances.get("ti-adhoc-advice")
        source.status = TaskStatus.SCHEDULED
        source.assigned_staff_id = "staff-1"
        instances.save(source)

        copy = service.copy_ad_hoc_task("ti-adhoc-advice", "client-b")

        assert copy.client_id == "client-b"
        assert copy.status == TaskStatus.UNSCHEDULED
        assert copy.assigned_staff_id is None
        assert copy.due_date == date(2025, 2, 20)
        assert copy.is_ad_hoc
        assert instances.get(copy.id).name == "Restructuring advice"

    def test_missing_task_raises(self, service):
        with pytest.raises(NotFoundError):
            service.copy_ad_hoc_task("ti-missing", "client-b")


class TestBulkCopy:
    """copy_client_tasks never raises for a single task."""

    def test_partial_failure(self, service, fixture_db):
        result = service.copy_client_tasks(
            recurring_task_ids=["rt-monthly-books", "rt-missing", "rt-weekly-payroll"],
            ad_hoc_task_ids=["ti-adhoc-advice", "ti-adhoc-advice"],
            target_client_id="client-b",
        )

        assert len(result.recurring) == 2
        assert len(result.ad_hoc) == 2
        assert result.copied_count == 4
        assert not result.success
        assert [(e.item_id, e.kind) for e in result.errors] == [("rt-missing", "NotFoundError")]
        assert len(RecurringTaskRepository(fixture_db).find(client_id="client-b")) == 4

    def test_empty_request(self, service):
        result = service.copy_client_tasks([], [], "client-b")
        assert result.copied_count == 0
        assert result.success

    def test_to_dict(self, fixture_db):
        data = copy_client_tasks(fixture_db, ["rt-monthly-books"], [], "client-b").to_dict()
        assert data["target_client_id"] == "client-b"
        assert data["copied_count"] == 1
        assert data["recurring"][0]["client_id"] == "client-b"
        assert data["recurring"][0]["recurrence_pattern"]["type"] == "Monthly"
