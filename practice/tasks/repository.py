"""
Practice OS - Task Repositories

Raw database operations for recurring tasks, task instances and skills.
Every write is its own transaction.
"""

import logging

from practice.database import Database
from practice.errors import PatternValidationError
from practice.models import RecurringTask, TaskInstance, TaskStatus, now_iso
from practice.tasks import mappers

logger = logging.getLogger(__name__)


class RecurringTaskRepository:
    """Repository for recurring_tasks."""

    TABLE = "recurring_tasks"

    def __init__(self, db: Database):
        self.db = db

    def insert(self, task: RecurringTask) -> str:
        self.db.insert(self.TABLE, mappers.recurring_task_to_row(task))
        return task.id

    def save(self, task: RecurringTask) -> bool:
        row = mappers.recurring_task_to_row(task)
        row.pop("id")
        return self.db.update(self.TABLE, task.id, row)

    def get_row(self, task_id: str) -> dict | None:
        return self.db.get(self.TABLE, task_id)

    def get(self, task_id: str) -> RecurringTask | None:
        row = self.get_row(task_id)
        return mappers.row_to_recurring_task(row) if row else None

    def list_rows(self, active_only: bool = False, client_id: str | None = None) -> list[dict]:
        clauses, params = [], []
        if active_only:
            clauses.append("is_active = 1")
        if client_id is not None:
            clauses.append("client_id = ?")
            params.append(client_id)
        sql = "SELECT * FROM recurring_tasks"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY created_at, id"
        return self.db.fetch_all(sql, params)

    def find(self, active_only: bool = False, client_id: str | None = None) -> list[RecurringTask]:
        """Mapped tasks; rows whose stored pattern is invalid are logged and left out."""
        tasks = []
        for row in self.list_rows(active_only=active_only, client_id=client_id):
            try:
                tasks.append(mappers.row_to_recurring_task(row))
            except PatternValidationError as exc:
                logger.warning("Recurring task %s has an invalid pattern: %s", row["id"], exc)
        return tasks

    def mark_generated(self, task_id: str, generated_date) -> bool:
        return self.db.update(
            self.TABLE,
            task_id,
            {"last_generated_date": generated_date.isoformat(), "updated_at": now_iso()},
        )

    def set_active(self, task_id: str, is_active: bool) -> bool:
        return self.db.update(
            self.TABLE, task_id, {"is_active": 1 if is_active else 0, "updated_at": now_iso()}
        )


class TaskInstanceRepository:
    """Repository for task_instances."""

    TABLE = "task_instances"

    def __init__(self, db: Database):
        self.db = db

    def insert(self, instance: TaskInstance) -> str:
        self.db.insert(self.TABLE, mappers.task_instance_to_row(instance))
        return instance.id

    def save(self, instance: TaskInstance) -> bool:
        row = mappers.task_instance_to_row(instance)
        row.pop("id")
        return self.db.update(self.TABLE, instance.id, row)

    def get(self, instance_id: str) -> TaskInstance | None:
        row = self.db.get(self.TABLE, instance_id)
        return mappers.row_to_task_instance(row) if row else None

    def delete(self, instance_id: str) -> bool:
        return self.db.delete(self.TABLE, instance_id)

    def find(
        self,
        status: str | None = None,
        client_id: str | None = None,
        recurring_task_id: str | None = None,
    ) -> list[TaskInstance]:
        clauses, params = [], []
        if status is not None:
            clauses.append("status = ?")
            params.append(str(status))
        if client_id is not None:
            clauses.append("client_id = ?")
            params.append(client_id)
        if recurring_task_id is not None:
            clauses.append("recurring_task_id = ?")
            params.append(recurring_task_id)
        sql = "SELECT * FROM task_instances"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY due_date, created_at, id"
        return [mappers.row_to_task_instance(r) for r in self.db.fetch_all(sql, params)]

    def list_unscheduled(self) -> list[TaskInstance]:
        return self.find(status=TaskStatus.UNSCHEDULED)


class SkillRepository:
    """Read access to the skills table."""

    def __init__(self, db: Database):
        self.db = db

    def name_mapping(self) -> dict[str, str]:
        """{skill_id: skill_name} for every skill; the SkillMappingCache loader."""
        return {r["id"]: r["name"] for r in self.db.fetch_all("SELECT id, name FROM skills")}

    def insert(self, skill_id: str, name: str) -> str:
        self.db.insert("skills", {"id": skill_id, "name": name, "created_at": now_iso()})
        return skill_id
