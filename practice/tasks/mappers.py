"""
Row <-> model mapping for recurring tasks and task instances.

Storage layout: list columns (required_skills, weekdays) are JSON text, dates
are ISO strings, booleans are 0/1, and the recurrence pattern is spread over
recurrence_type / recurrence_interval / weekdays / day_of_month /
month_of_year / custom_offset_days / end_date.
"""

import json
from dataclasses import asdict
from datetime import date
from typing import Any

from practice.models import RecurringTask, TaskInstance
from practice.recurrence.validator import parse_pattern, pattern_to_dict


def _date_or_none(value: Any) -> date | None:
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _iso_or_none(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _json_list(value: Any) -> list:
    if value in (None, ""):
        return []
    if isinstance(value, list | tuple):
        return list(value)
    parsed = json.loads(value)
    return parsed if isinstance(parsed, list) else []


def _skills(values) -> tuple[str, ...]:
    return tuple(dict.fromkeys(str(v) for v in values))


# =============================================================================
# RECURRING TASKS
# =============================================================================


def row_to_pattern_dict(row: dict) -> dict:
    weekdays = row.get("weekdays")
    return {
        "type": row.get("recurrence_type"),
        "interval": row.get("recurrence_interval"),
        "weekdays": _json_list(weekdays) if weekdays not in (None, "") else None,
        "day_of_month": row.get("day_of_month"),
        "month_of_year": row.get("month_of_year"),
        "custom_offset_days": row.get("custom_offset_days"),
        "end_date": row.get("end_date"),
    }


def row_to_recurring_task(row: dict) -> RecurringTask:
    """
    Raises:
        PatternValidationError: the stored pattern columns are not a valid pattern
    """
    return RecurringTask(
        id=row["id"],
        template_id=row["template_id"],
        client_id=row["client_id"],
        name=row["name"],
        description=row.get("description") or "",
        estimated_hours=float(row["estimated_hours"]),
        required_skills=_skills(_json_list(row.get("required_skills"))),
        priority=row.get("priority") or "Medium",
        category=row.get("category") or "Other",
        due_date=_date_or_none(row.get("due_date")),
        pattern=parse_pattern(row_to_pattern_dict(row)),
        is_active=bool(row.get("is_active", 1)),
        last_generated_date=_date_or_none(row.get("last_generated_date")),
        preferred_staff_id=row.get("preferred_staff_id"),
        notes=row.get("notes"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def recurring_task_to_row(task: RecurringTask) -> dict:
    pattern = pattern_to_dict(task.pattern)
    weekdays = pattern.get("weekdays")
    return {
        "id": task.id,
        "template_id": task.template_id,
        "client_id": task.client_id,
        "name": task.name,
        "description": task.description,
        "estimated_hours": task.estimated_hours,
        "required_skills": json.dumps(list(task.required_skills)),
        "priority": str(task.priority),
        "category": task.category,
        "due_date": _iso_or_none(task.due_date),
        "recurrence_type": pattern["type"],
        "recurrence_interval": pattern.get("interval"),
        "weekdays": json.dumps(weekdays) if weekdays is not None else None,
        "day_of_month": pattern.get("day_of_month"),
        "month_of_year": pattern.get("month_of_year"),
        "custom_offset_days": pattern.get("custom_offset_days"),
        "end_date": _iso_or_none(pattern.get("end_date")),
        "is_active": 1 if task.is_active else 0,
        "last_generated_date": _iso_or_none(task.last_generated_date),
        "preferred_staff_id": task.preferred_staff_id,
        "notes": task.notes,
        "created_at": task.created_at,
        "updated_at": task.updated_at,
    }


# =============================================================================
# TASK INSTANCES
# =============================================================================


def row_to_task_instance(row: dict) -> TaskInstance:
    return TaskInstance(
        id=row["id"],
        template_id=row["template_id"],
        client_id=row["client_id"],
        recurring_task_id=row.get("recurring_task_id"),
        name=row["name"],
        description=row.get("description") or "",
        estimated_hours=float(row["estimated_hours"]),
        required_skills=_skills(_json_list(row.get("required_skills"))),
        priority=row.get("priority") or "Medium",
        category=row.get("category") or "Other",
        due_date=_date_or_none(row.get("due_date")),
        status=row.get("status") or "Unscheduled",
        assigned_staff_id=row.get("assigned_staff_id"),
        scheduled_start_time=row.get("scheduled_start_time"),
        scheduled_end_time=row.get("scheduled_end_time"),
        completed_at=row.get("completed_at"),
        notes=row.get("notes"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def task_instance_to_row(instance: TaskInstance) -> dict:
    row = asdict(instance)
    row["required_skills"] = json.dumps(list(instance.required_skills))
    row["due_date"] = _iso_or_none(instance.due_date)
    row["priority"] = str(instance.priority)
    row["status"] = str(instance.status)
    return row


# =============================================================================
# PLAIN DICTS (API / CLI output)
# =============================================================================


def recurring_task_to_dict(task: RecurringTask) -> dict:
    pattern = pattern_to_dict(task.pattern)
    if pattern.get("end_date") is not None:
        pattern["end_date"] = pattern["end_date"].isoformat()
    return {
        "id": task.id,
        "template_id": task.template_id,
        "client_id": task.client_id,
        "name": task.name,
        "description": task.description,
        "estimated_hours": task.estimated_hours,
        "required_skills": list(task.required_skills),
        "priority": str(task.priority),
        "category": task.category,
        "due_date": _iso_or_none(task.due_date),
        "recurrence_pattern": pattern,
        "is_active": task.is_active,
        "last_generated_date": _iso_or_none(task.last_generated_date),
        "preferred_staff_id": task.preferred_staff_id,
        "notes": task.notes,
    }


def task_instance_to_dict(instance: TaskInstance) -> dict:
    data = asdict(instance)
    data["required_skills"] = list(instance.required_skills)
    data["due_date"] = _iso_or_none(instance.due_date)
    data["priority"] = str(instance.priority)
    data["status"] = str(instance.status)
    return data
