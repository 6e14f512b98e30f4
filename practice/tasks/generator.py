"""
Task Instance Generator - turns recurring tasks into concrete work items.

An occurrence is generated on (occurrence - lead time). A pass over
[from_date, to_date] therefore looks for occurrences in
[from_date + lead, to_date + lead]:

- a task that has never generated takes its first occurrence in that span
- a task with a last_generated_date steps forward from it, passing over
  occurrences whose generation day is already behind the window

One Unscheduled TaskInstance is written per task per pass and the task's
last_generated_date moves to that occurrence.

Writes are per task. A task that fails is recorded in the result and the
pass carries on with the next one.
"""

import logging
import sqlite3
from datetime import date, datetime, timedelta, timezone

from practice import config
from practice.database import Database
from practice.errors import DateRangeError, PatternValidationError
from practice.models import RecurringTask, TaskInstance, TaskStatus, generate_id
from practice.observability import RunContext
from practice.recurrence.calculator import Err, ErrKind, RecurrenceCalculator, RecurrencePolicy
from practice.tasks import mappers
from practice.tasks.repository import RecurringTaskRepository, TaskInstanceRepository
from practice.tasks.results import BatchError, GenerationResult

logger = logging.getLogger(__name__)


def instance_from_recurring(task: RecurringTask, due_date: date) -> TaskInstance:
    """Unscheduled instance carrying the template fields of *task*."""
    return TaskInstance(
        id=generate_id("ti"),
        template_id=task.template_id,
        client_id=task.client_id,
        recurring_task_id=task.id,
        name=task.name,
        description=task.description,
        estimated_hours=task.estimated_hours,
        required_skills=task.required_skills,
        priority=task.priority,
        category=task.category,
        due_date=due_date,
        status=TaskStatus.UNSCHEDULED,
    )


class TaskInstanceGenerator:
    """Generates task instances for recurring tasks that fall due in a window."""

    def __init__(self, db: Database, calculator: RecurrenceCalculator | None = None):
        self.db = db
        self.recurring = RecurringTaskRepository(db)
        self.instances = TaskInstanceRepository(db)
        self.calculator = calculator or RecurrenceCalculator(RecurrencePolicy.from_settings())

    def _occurrence_result(self, task: RecurringTask, result) -> date | None:
        if isinstance(result, Err):
            if result.kind == ErrKind.EXHAUSTED:
                logger.debug("Task %s has no occurrences left: %s", task.id, result.reason)
                return None
            raise ValueError(result.reason)
        return result.value

    def _next_due(self, task: RecurringTask, earliest: date, latest: date) -> date | None:
        """First occurrence of *task* in [earliest, latest] that follows its last generated one."""
        if task.last_generated_date is None:
            occurrences = self._occurrence_result(task, self.calculator.expand(task.pattern, earliest, latest))
            return occurrences[0] if occurrences else None

        reference = task.last_generated_date
        while True:
            occurrence = self._occurrence_result(task, self.calculator.next_occurrence(task.pattern, reference))
            if occurrence is None or occurrence > latest:
                return None
            if occurrence >= earliest:
                return occurrence
            # occurrences whose generation day already passed are not backfilled
            reference = occurrence if occurrence > reference else reference + timedelta(days=1)

    def _generate_one(
        self, task: RecurringTask, from_date: date, to_date: date, lead_time_days: int
    ) -> TaskInstance | None:
        lead = timedelta(days=lead_time_days)
        occurrence = self._next_due(task, from_date + lead, to_date + lead)
        if occurrence is None:
            return None

        instance = instance_from_recurring(task, occurrence)
        self.instances.insert(instance)
        self.recurring.mark_generated(task.id, occurrence)
        logger.info("Generated instance %s for task %s due %s", instance.id, task.id, occurrence)
        return instance

    def generate_task_instances(
        self,
        from_date: date,
        to_date: date,
        lead_time_days: int | None = None,
    ) -> GenerationResult:
        """
        Create instances for every active recurring task due in the window.

        Args:
            from_date: First day instances may be generated on.
            to_date: Last day instances may be generated on.
            lead_time_days: Days ahead of the due date an instance is created.
                Defaults to config.DEFAULT_LEAD_TIME_DAYS.

        Returns:
            GenerationResult with the created instances and per-task errors.

        Raises:
            DateRangeError: from_date after to_date, or a negative lead time.
        """
        if lead_time_days is None:
            lead_time_days = config.DEFAULT_LEAD_TIME_DAYS
        if from_date > to_date:
            raise DateRangeError(f"from_date {from_date} is after to_date {to_date}")
        if lead_time_days < 0:
            raise DateRangeError(f"lead_time_days must be >= 0, got {lead_time_days}")

        with RunContext(prefix="gen") as run:
            result = GenerationResult(run_id=run.run_id, started_at=datetime.now(timezone.utc))
            rows = self.recurring.list_rows(active_only=True)
            logger.info(
                "Generating instances %s..%s (lead %d days) for %d active tasks",
                from_date,
                to_date,
                lead_time_days,
                len(rows),
            )

            for row in rows:
                result.considered += 1
                try:
                    task = mappers.row_to_recurring_task(row)
                    instance = self._generate_one(task, from_date, to_date, lead_time_days)
                except PatternValidationError as exc:
                    logger.warning("Task %s has an invalid pattern: %s", row["id"], exc)
                    result.errors.append(BatchError(row["id"], "invalid_pattern", str(exc)))
                    continue
                except (sqlite3.Error, ValueError, OverflowError, KeyError, TypeError) as exc:
                    logger.error("Failed to generate instance for task %s: %s", row["id"], exc)
                    result.errors.append(BatchError(row["id"], type(exc).__name__, str(exc)))
                    continue
                if instance is not None:
                    result.instances.append(instance)

            result.completed_at = datetime.now(timezone.utc)
            logger.info(
                "Generation complete: %d created, %d skipped, %d errors",
                result.created_count,
                result.skipped_count,
                len(result.errors),
            )
        return result


def generate_task_instances(
    db: Database,
    from_date: date,
    to_date: date,
    lead_time_days: int | None = None,
) -> GenerationResult:
    """Convenience wrapper around TaskInstanceGenerator."""
    return TaskInstanceGenerator(db).generate_task_instances(from_date, to_date, lead_time_days)
