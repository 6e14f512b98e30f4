"""
Task Service - create, update and retire recurring tasks and task instances.

Inputs are validated before anything is written. Recurring tasks are never
hard-deleted; deactivation only clears is_active so history stays intact.
Storage failures surface as TaskServiceError with a code.
"""

import logging
import sqlite3
from collections.abc import Iterable, Mapping
from dataclasses import replace
from datetime import date
from typing import Any

from practice.database import Database
from practice.errors import NotFoundError, TaskServiceError, ValidationError
from practice.models import (
    RecurringTask,
    TaskInstance,
    TaskPriority,
    TaskStatus,
    generate_id,
    now_iso,
)
from practice.recurrence.validator import parse_pattern, validation_warnings
from practice.tasks.repository import (
    RecurringTaskRepository,
    SkillRepository,
    TaskInstanceRepository,
)

logger = logging.getLogger(__name__)

RECURRING_UPDATABLE = {
    "name",
    "description",
    "estimated_hours",
    "required_skills",
    "priority",
    "category",
    "due_date",
    "pattern",
    "is_active",
    "preferred_staff_id",
    "notes",
}

INSTANCE_UPDATABLE = {
    "name",
    "description",
    "estimated_hours",
    "required_skills",
    "priority",
    "category",
    "due_date",
    "status",
    "assigned_staff_id",
    "scheduled_start_time",
    "scheduled_end_time",
    "notes",
}


def _check_hours(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float) or value <= 0:
        raise ValidationError(f"estimated_hours must be a positive number, got {value!r}")
    return float(value)


def _check_choice(value: Any, enum_cls, field_name: str) -> str:
    allowed = [str(member) for member in enum_cls]
    if str(value) not in allowed:
        raise ValidationError(f"{field_name} must be one of {allowed}, got {value!r}")
    return str(value)


def _check_unknown(changes: Mapping, allowed: set[str]) -> None:
    unknown = sorted(set(changes) - allowed)
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(unknown)}")


class TaskService:
    """Recurring task and task instance operations."""

    def __init__(self, db: Database):
        self.db = db
        self.recurring = RecurringTaskRepository(db)
        self.instances = TaskInstanceRepository(db)
        self.skills = SkillRepository(db)

    # =========================================================================
    # Validation helpers
    # =========================================================================

    def _check_skills(self, skills: Iterable[str]) -> tuple[str, ...]:
        """
        De-duplicate skill refs and, when a skills table is populated, reject
        refs that match neither a skill id nor a skill name.
        """
        refs = tuple(dict.fromkeys(str(s) for s in skills))
        try:
            known = self.skills.name_mapping()
        except sqlite3.Error as exc:
            raise TaskServiceError(f"Failed to load skills: {exc}", code="DB_ERROR") from exc
        if not known or not refs:
            return refs
        valid = set(known) | set(known.values())
        invalid = [r for r in refs if r not in valid]
        if invalid:
            raise TaskServiceError(f"Invalid skill IDs: {', '.join(invalid)}", code="INVALID_SKILLS")
        return refs

    def _require_recurring(self, task_id: str) -> RecurringTask:
        task = self.recurring.get(task_id)
        if task is None:
            raise NotFoundError("Recurring task", task_id)
        return task

    def _require_instance(self, instance_id: str) -> TaskInstance:
        instance = self.instances.get(instance_id)
        if instance is None:
            raise NotFoundError("Task instance", instance_id)
        return instance

    # =========================================================================
    # Recurring tasks
    # =========================================================================

    def create_recurring_task(
        self,
        client_id: str,
        template_id: str,
        name: str,
        estimated_hours: float,
        pattern: Any,
        required_skills: Iterable[str] = (),
        description: str = "",
        priority: str = TaskPriority.MEDIUM,
        category: str = "Other",
        due_date: date | None = None,
        preferred_staff_id: str | None = None,
        notes: str | None = None,
    ) -> RecurringTask:
        """
        Raises:
            PatternValidationError: pattern is not a valid recurrence pattern
            ValidationError: bad hours or priority
            TaskServiceError: unknown skills or a storage failure
        """
        typed_pattern = parse_pattern(pattern)
        for warning in validation_warnings(typed_pattern):
            logger.warning("Recurring task %r: %s", name, warning)

        task = RecurringTask(
            id=generate_id("rt"),
            template_id=template_id,
            client_id=client_id,
            name=name,
            description=description,
            estimated_hours=_check_hours(estimated_hours),
            required_skills=self._check_skills(required_skills),
            priority=_check_choice(priority, TaskPriority, "priority"),
            category=category,
            due_date=due_date,
            pattern=typed_pattern,
            preferred_staff_id=preferred_staff_id,
            notes=notes,
        )
        try:
            self.recurring.insert(task)
        except sqlite3.Error as exc:
            raise TaskServiceError(f"Failed to create task: {exc}", code="DB_ERROR") from exc
        logger.info("Created recurring task %s for client %s", task.id, client_id)
        return task

    def update_recurring_task(self, task_id: str, **changes: Any) -> RecurringTask:
        """
        Apply field changes to a recurring task.

        A "pattern" change is validated as a whole; partial patterns are not
        merged with the stored one.
        """
        _check_unknown(changes, RECURRING_UPDATABLE)
        task = self._require_recurring(task_id)

        if "pattern" in changes:
            changes["pattern"] = parse_pattern(changes["pattern"])
        if "estimated_hours" in changes:
            changes["estimated_hours"] = _check_hours(changes["estimated_hours"])
        if "priority" in changes:
            changes["priority"] = _check_choice(changes["priority"], TaskPriority, "priority")
        if "required_skills" in changes:
            changes["required_skills"] = self._check_skills(changes["required_skills"])

        updated = task.with_changes(**changes)
        try:
            self.recurring.save(updated)
        except sqlite3.Error as exc:
            raise TaskServiceError(f"Failed to update task: {exc}", code="DB_ERROR") from exc
        logger.info("Updated recurring task %s: %s", task_id, ", ".join(sorted(changes)))
        return updated

    def deactivate_recurring_task(self, task_id: str) -> bool:
        self._require_recurring(task_id)
        try:
            self.recurring.set_active(task_id, False)
        except sqlite3.Error as exc:
            raise TaskServiceError(f"Failed to deactivate task: {exc}", code="DB_ERROR") from exc
        logger.info("Deactivated recurring task %s", task_id)
        return True

    def get_recurring_task(self, task_id: str) -> RecurringTask:
        return self._require_recurring(task_id)

    def get_recurring_tasks(
        self, active_only: bool = True, client_id: str | None = None
    ) -> list[RecurringTask]:
        return self.recurring.find(active_only=active_only, client_id=client_id)

    # =========================================================================
    # Task instances
    # =========================================================================

    def create_ad_hoc_task(
        self,
        client_id: str,
        template_id: str,
        name: str,
        estimated_hours: float,
        required_skills: Iterable[str] = (),
        description: str = "",
        priority: str = TaskPriority.MEDIUM,
        category: str = "Other",
        due_date: date | None = None,
        notes: str | None = None,
    ) -> TaskInstance:
        """One-off task instance with no recurring parent."""
        instance = TaskInstance(
            id=generate_id("ti"),
            template_id=template_id,
            client_id=client_id,
            name=name,
            description=description,
            estimated_hours=_check_hours(estimated_hours),
            required_skills=self._check_skills(required_skills),
            priority=_check_choice(priority, TaskPriority, "priority"),
            category=category,
            due_date=due_date,
            status=TaskStatus.UNSCHEDULED,
            notes=notes,
        )
        try:
            self.instances.insert(instance)
        except sqlite3.Error as exc:
            raise TaskServiceError(f"Failed to create ad-hoc task: {exc}", code="DB_ERROR") from exc
        logger.info("Created ad-hoc task %s for client %s", instance.id, client_id)
        return instance

    def get_task_instances(
        self,
        status: str | None = None,
        client_id: str | None = None,
        recurring_task_id: str | None = None,
    ) -> list[TaskInstance]:
        if status is not None:
            status = _check_choice(status, TaskStatus, "status")
        return self.instances.find(status=status, client_id=client_id, recurring_task_id=recurring_task_id)

    def get_unscheduled_task_instances(self) -> list[TaskInstance]:
        return self.instances.list_unscheduled()

    def update_task_instance(self, instance_id: str, **changes: Any) -> TaskInstance:
        """Moving to Completed stamps completed_at; leaving it clears the stamp."""
        _check_unknown(changes, INSTANCE_UPDATABLE)
        instance = self._require_instance(instance_id)

        if "estimated_hours" in changes:
            changes["estimated_hours"] = _check_hours(changes["estimated_hours"])
        if "priority" in changes:
            changes["priority"] = _check_choice(changes["priority"], TaskPriority, "priority")
        if "required_skills" in changes:
            changes["required_skills"] = self._check_skills(changes["required_skills"])
        if "status" in changes:
            status = _check_choice(changes["status"], TaskStatus, "status")
            changes["status"] = status
            if status == TaskStatus.COMPLETED and instance.status != TaskStatus.COMPLETED:
                changes["completed_at"] = now_iso()
            elif status != TaskStatus.COMPLETED:
                changes["completed_at"] = None

        updated = replace(instance, updated_at=now_iso(), **changes)
        try:
            self.instances.save(updated)
        except sqlite3.Error as exc:
            raise TaskServiceError(f"Failed to update task instance: {exc}", code="DB_ERROR") from exc
        logger.info("Updated task instance %s: %s", instance_id, ", ".join(sorted(changes)))
        return updated

    def delete_task_instance(self, instance_id: str) -> bool:
        self._require_instance(instance_id)
        try:
            return self.instances.delete(instance_id)
        except sqlite3.Error as exc:
            raise TaskServiceError(f"Failed to delete task instance: {exc}", code="DB_ERROR") from exc
