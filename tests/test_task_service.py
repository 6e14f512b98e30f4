"""
Tests for TaskService.

Covers:
- Recurring task create / update / deactivate
- Input validation before any write
- Skill reference checks against the skills table
- Task instance status changes and completion stamps
"""

from datetime import date

import pytest

from practice.errors import NotFoundError, PatternValidationError, TaskServiceError, ValidationError
from practice.models import MonthlyPattern, QuarterlyPattern, TaskPriority, TaskStatus
from practice.tasks import TaskService
from practice.tasks.repository import SkillRepository

MONTHLY_15 = {"type": "Monthly", "interval": 1, "day_of_month": 15}


@pytest.fixture
def service(db):
    return TaskService(db)


def _create(service, **overrides):
    kwargs = {
        "client_id": "client-a",
        "template_id": "tmpl-books",
        "name": "Monthly bookkeeping",
        "estimated_hours": 4,
        "pattern": MONTHLY_15,
        "required_skills": ["Bookkeeping"],
    }
    kwargs.update(overrides)
    return service.create_recurring_task(**kwargs)


# =============================================================================
# RECURRING TASKS
# =============================================================================


class TestCreateRecurringTask:
    def test_create_and_read_back(self, service):
        task = _create(service)

        assert task.id.startswith("rt_")
        assert task.pattern == MonthlyPattern(interval=1, day_of_month=15)
        assert task.estimated_hours == 4.0
        assert task.is_active
        assert service.get_recurring_task(task.id) == task

    def test_invalid_pattern_rejected_without_write(self, service, db):
        with pytest.raises(PatternValidationError):
            _create(service, pattern={"type": "Monthly", "interval": 1})
        assert db.count("recurring_tasks") == 0

    @pytest.mark.parametrize("hours", [0, -1, "4", True])
    def test_bad_hours_rejected(self, service, hours):
        with pytest.raises(ValidationError):
            _create(service, estimated_hours=hours)

    def test_bad_priority_rejected(self, service):
        with pytest.raises(ValidationError):
            _create(service, priority="Whenever")

    def test_duplicate_skills_collapse(self, service):
        task = _create(service, required_skills=["Tax", "Audit", "Tax"])
        assert task.required_skills == ("Tax", "Audit")


class TestSkillChecks:
    """Skill refs are checked only once the skills table has rows."""

    def test_any_skill_accepted_when_table_empty(self, service):
        assert _create(service, required_skills=["Anything"]).required_skills == ("Anything",)

    def test_known_id_or_name_accepted(self, service, db):
        SkillRepository(db).insert("sk-tax", "Tax Compliance")
        task = _create(service, required_skills=["sk-tax", "Tax Compliance"])
        assert task.required_skills == ("sk-tax", "Tax Compliance")

    def test_unknown_skill_rejected(self, service, db):
        SkillRepository(db).insert("sk-tax", "Tax Compliance")
        with pytest.raises(TaskServiceError) as exc_info:
            _create(service, required_skills=["sk-tax", "sk-ghost"])
        assert exc_info.value.code == "INVALID_SKILLS"
        assert "sk-ghost" in str(exc_info.value)
        assert db.count("recurring_tasks") == 0


class TestUpdateRecurringTask:
    def test_update_pattern_and_hours(self, service):
        task = _create(service)
        updated = service.update_recurring_task(
            task.id, pattern={"type": "Quarterly", "day_of_month": 10}, estimated_hours=6
        )
        assert updated.pattern == QuarterlyPattern(day_of_month=10)
        assert service.get_recurring_task(task.id).estimated_hours == 6.0

    def test_update_priority(self, service):
        task = _create(service)
        assert service.update_recurring_task(task.id, priority="High").priority == TaskPriority.HIGH

    def test_invalid_pattern_update_leaves_task_unchanged(self, service):
        task = _create(service)
        with pytest.raises(PatternValidationError):
            service.update_recurring_task(task.id, pattern={"type": "Weekly", "interval": 1})
        assert service.get_recurring_task(task.id).pattern == task.pattern

    def test_unknown_field_rejected(self, service):
        task = _create(service)
        with pytest.raises(ValidationError):
            service.update_recurring_task(task.id, client_id="client-b")

    def test_missing_task(self, service):
        with pytest.raises(NotFoundError):
            service.update_recurring_task("rt-missing", name="x")


class TestDeactivate:
    def test_deactivate_keeps_row(self, service):
        task = _create(service)
        assert service.deactivate_recurring_task(task.id) is True
        assert service.get_recurring_task(task.id).is_active is False
        assert service.get_recurring_tasks() == []
        assert len(service.get_recurring_tasks(active_only=False)) == 1

    def test_missing_task(self, service):
        with pytest.raises(NotFoundError):
            service.deactivate_recurring_task("rt-missing")

    def test_filter_by_client(self, service):
        _create(service, client_id="client-a")
        _create(service, client_id="client-b")
        tasks = service.get_recurring_tasks(client_id="client-b")
        assert [t.client_id for t in tasks] == ["client-b"]


# =============================================================================
# TASK INSTANCES
# =============================================================================


class TestTaskInstances:
    def test_ad_hoc_task_is_unscheduled(self, service):
        instance = service.create_ad_hoc_task(
            client_id="client-a",
            template_id="tmpl-advice",
            name="Restructuring advice",
            estimated_hours=3,
            due_date=date(2025, 2, 20),
        )
        assert instance.is_ad_hoc
        assert [i.id for i in service.get_unscheduled_task_instances()] == [instance.id]

    def test_complete_stamps_and_reopen_clears(self, service):
        instance = service.create_ad_hoc_task("client-a", "tmpl", "Call", 1)

        done = service.update_task_instance(instance.id, status="Completed")
        assert done.status == TaskStatus.COMPLETED
        assert done.completed_at is not None

        reopened = service.update_task_instance(instance.id, status="In Progress")
        assert reopened.completed_at is None
        assert service.get_unscheduled_task_instances() == []

    def test_assign_staff(self, service):
        instance = service.create_ad_hoc_task("client-a", "tmpl", "Call", 1)
        updated = service.update_task_instance(
            instance.id, status="Scheduled", assigned_staff_id="staff-1", scheduled_start_time="2025-02-03T09:00"
        )
        stored = service.get_task_instances(status="Scheduled")
        assert [i.id for i in stored] == [updated.id]
        assert stored[0].assigned_staff_id == "staff-1"

    def test_bad_status_rejected(self, service):
        instance = service.create_ad_hoc_task("client-a", "tmpl", "Call", 1)
        with pytest.raises(ValidationError):
            service.update_task_instance(instance.id, status="Done")
        with pytest.raises(ValidationError):
            service.get_task_instances(status="Done")

    def test_delete(self, service):
        instance = service.create_ad_hoc_task("client-a", "tmpl", "Call", 1)
        assert service.delete_task_instance(instance.id) is True
        with pytest.raises(NotFoundError):
            service.delete_task_instance(instance.id)
