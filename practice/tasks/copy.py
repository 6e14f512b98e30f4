"""
Task Copy Service - copy recurring and ad-hoc tasks to another client.

Copies keep the template fields and the recurrence pattern. A copied
recurring task starts active with no generation history; a copied ad-hoc
task starts Unscheduled with no assignment or schedule.

Bulk copy is not atomic: each task is its own write, failures are recorded
and the batch continues.
"""

import logging
import sqlite3
from dataclasses import replace

from practice.database import Database
from practice.errors import NotFoundError, PracticeError
from practice.models import RecurringTask, TaskInstance, TaskStatus, generate_id, now_iso
from practice.observability import RunContext
from practice.tasks.repository import RecurringTaskRepository, TaskInstanceRepository
from practice.tasks.results import BatchError, CopyResult

logger = logging.getLogger(__name__)


class TaskCopyService:
    """Copies tasks between clients."""

    def __init__(self, db: Database):
        self.recurring = RecurringTaskRepository(db)
        self.instances = TaskInstanceRepository(db)

    def copy_recurring_task(self, task_id: str, target_client_id: str) -> RecurringTask:
        """
        Raises:
            NotFoundError: no recurring task with task_id
        """
        source = self.recurring.get(task_id)
        if source is None:
            raise NotFoundError("Recurring task", task_id)

        stamp = now_iso()
        copy = replace(
            source,
            id=generate_id("rt"),
            client_id=target_client_id,
            is_active=True,
            last_generated_date=None,
            created_at=stamp,
            updated_at=stamp,
        )
        self.recurring.insert(copy)
        logger.info("Copied recurring task %s to client %s as %s", task_id, target_client_id, copy.id)
        return copy

    def copy_ad_hoc_task(self, task_id: str, target_client_id: str) -> TaskInstance:
        """
        Raises:
            NotFoundError: no task instance with task_id
        """
        source = self.instances.get(task_id)
        if source is None:
            raise NotFoundError("Ad-hoc task", task_id)

        stamp = now_iso()
        copy = TaskInstance(
            id=generate_id("ti"),
            template_id=source.template_id,
            client_id=target_client_id,
            name=source.name,
            description=source.description,
            estimated_hours=source.estimated_hours,
            required_skills=source.required_skills,
            priority=source.priority,
            category=source.category,
            due_date=source.due_date,
            status=TaskStatus.UNSCHEDULED,
            notes=source.notes,
            created_at=stamp,
            updated_at=stamp,
        )
        self.instances.insert(copy)
        logger.info("Copied ad-hoc task %s to client %s as %s", task_id, target_client_id, copy.id)
        return copy

    def copy_client_tasks(
        self,
        recurring_task_ids: list[str],
        ad_hoc_task_ids: list[str],
        target_client_id: str,
    ) -> CopyResult:
        """Copy every listed task. Never raises for an individual task."""
        result = CopyResult(target_client_id=target_client_id)

        with RunContext(prefix="copy"):
            for task_id in recurring_task_ids:
                try:
                    result.recurring.append(self.copy_recurring_task(task_id, target_client_id))
                except (PracticeError, sqlite3.Error, ValueError) as exc:
                    logger.error("Failed to copy recurring task %s: %s", task_id, exc)
                    result.errors.append(BatchError(task_id, type(exc).__name__, str(exc)))

            for task_id in ad_hoc_task_ids:
                try:
                    result.ad_hoc.append(self.copy_ad_hoc_task(task_id, target_client_id))
                except (PracticeError, sqlite3.Error, ValueError) as exc:
                    logger.error("Failed to copy ad-hoc task %s: %s", task_id, exc)
                    result.errors.append(BatchError(task_id, type(exc).__name__, str(exc)))

            logger.info(
                "Copied %d recurring and %d ad-hoc tasks to %s (%d errors)",
                len(result.recurring),
                len(result.ad_hoc),
                target_client_id,
                len(result.errors),
            )
        return result


def copy_client_tasks(
    db: Database,
    recurring_task_ids: list[str],
    ad_hoc_task_ids: list[str],
    target_client_id: str,
) -> CopyResult:
    return TaskCopyService(db).copy_client_tasks(recurring_task_ids, ad_hoc_task_ids, target_client_id)
