"""
Skill-Hours Aggregator - Demand by skill and month.

Expands every active recurring task over a date range and sums estimated
hours per skill (and per skill-month for the demand matrix).

Rules:
- Each occurrence counts the task's full estimated_hours in the month it
  falls in; nothing is pro-rated across month boundaries.
- A task requiring several skills adds its full hours to each of them.
- Skills merge on exact string match after id -> name resolution.
- Output follows first-seen order; no sorting.
"""

import logging
import sqlite3
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from dateutil.relativedelta import relativedelta

from practice.demand.skill_cache import SkillMappingCache
from practice.errors import DateRangeError
from practice.models import RecurringTask, SkillDemand, SkillMonthlyDemand, month_key
from practice.recurrence.calculator import Err, RecurrenceCalculator, RecurrencePolicy, month_start

logger = logging.getLogger(__name__)


@dataclass
class SkippedTask:
    task_id: str
    reason: str


@dataclass
class DemandMatrix:
    """Skill-by-month hours table."""

    start: date
    end: date
    months: list[str]
    skills: list[str]
    cells: list[SkillMonthlyDemand]
    skipped_tasks: list[SkippedTask] = field(default_factory=list)

    def hours(self, skill: str, month: str) -> float:
        for cell in self.cells:
            if cell.skill == skill and cell.month == month:
                return cell.hours
        return 0.0

    @property
    def skill_totals(self) -> dict[str, float]:
        totals = {skill: 0.0 for skill in self.skills}
        for cell in self.cells:
            totals[cell.skill] += cell.hours
        return {k: round(v, 2) for k, v in totals.items()}

    @property
    def month_totals(self) -> dict[str, float]:
        totals = {m: 0.0 for m in self.months}
        for cell in self.cells:
            totals[cell.month] += cell.hours
        return {k: round(v, 2) for k, v in totals.items()}

    @property
    def total_hours(self) -> float:
        return round(sum(cell.hours for cell in self.cells), 2)

    def to_dict(self) -> dict:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "months": self.months,
            "skills": self.skills,
            "cells": [c.to_dict() for c in self.cells],
            "skill_totals": self.skill_totals,
            "month_totals": self.month_totals,
            "total_hours": self.total_hours,
            "skipped_tasks": [{"task_id": s.task_id, "reason": s.reason} for s in self.skipped_tasks],
        }


def months_between(start: date, end: date) -> list[str]:
    """YYYY-MM keys from start's month to end's month inclusive."""
    keys = []
    cursor, last = month_start(start), month_start(end)
    while cursor <= last:
        keys.append(month_key(cursor))
        cursor += relativedelta(months=1)
    return keys


class DemandAggregator:
    """
    Forecasts skill demand from recurring tasks.

    Owns its SkillMappingCache; callers invalidate or refresh it explicitly
    when the skills table changes.
    """

    def __init__(
        self,
        calculator: RecurrenceCalculator | None = None,
        skill_cache: SkillMappingCache | None = None,
    ):
        self.calculator = calculator or RecurrenceCalculator(RecurrencePolicy.from_settings())
        self.skill_cache = skill_cache or SkillMappingCache()

    # ------------------------------------------------------------ helpers

    def _resolve_skills(self, task: RecurringTask) -> list[str]:
        try:
            return self.skill_cache.resolve_many(task.required_skills)
        except (sqlite3.Error, ValueError, OSError) as exc:
            logger.warning("Skill lookup failed for task %s, using raw skill refs: %s", task.id, exc)
            return list(dict.fromkeys(task.required_skills))

    def _occurrences(self, task: RecurringTask, start: date, end: date) -> list[date] | SkippedTask:
        result = self.calculator.expand(task.pattern, start, end)
        if isinstance(result, Err):
            logger.warning("Skipping task %s in demand calculation: %s", task.id, result.reason)
            return SkippedTask(task_id=task.id, reason=result.reason)
        return result.value

    @staticmethod
    def _check_range(start: date, end: date) -> None:
        if start > end:
            raise DateRangeError(f"Range start {start} is after range end {end}")

    # ------------------------------------------------------------ public

    def monthly_occurrence_counts(self, task: RecurringTask, start: date, end: date) -> dict[str, int]:
        """Occurrences per YYYY-MM within [start, end]. Empty if the task cannot be expanded."""
        self._check_range(start, end)
        occurrences = self._occurrences(task, start, end)
        if isinstance(occurrences, SkippedTask):
            return {}
        counts: dict[str, int] = {}
        for occurrence in occurrences:
            key = month_key(occurrence)
            counts[key] = counts.get(key, 0) + 1
        return counts

    def calculate_monthly_demand_by_skill(
        self,
        tasks: Iterable[RecurringTask],
        range_start: date,
        range_end: date,
    ) -> list[SkillDemand]:
        """Total hours per skill over [range_start, range_end]."""
        self._check_range(range_start, range_end)
        totals: dict[str, float] = {}

        for task in tasks:
            if not task.is_active:
                continue
            occurrences = self._occurrences(task, range_start, range_end)
            if isinstance(occurrences, SkippedTask) or not occurrences:
                continue
            task_hours = task.estimated_hours * len(occurrences)
            for skill in self._resolve_skills(task):
                totals[skill] = totals.get(skill, 0.0) + task_hours

        return [SkillDemand(skill=skill, hours=round(hours, 2)) for skill, hours in totals.items()]

    def calculate_demand_matrix(
        self,
        tasks: Iterable[RecurringTask],
        range_start: date,
        range_end: date,
        skills: Iterable[str] | None = None,
        client_ids: Iterable[str] | None = None,
    ) -> DemandMatrix:
        """
        Skill x month hours for [range_start, range_end].

        Args:
            skills: Keep only these (resolved) skill names.
            client_ids: Keep only tasks for these clients.
        """
        self._check_range(range_start, range_end)
        skill_filter = set(skills) if skills is not None else None
        client_filter = set(client_ids) if client_ids is not None else None

        hours: dict[tuple[str, str], float] = {}
        task_sets: dict[tuple[str, str], set[str]] = {}
        skill_order: dict[str, None] = {}
        skipped: list[SkippedTask] = []

        for task in tasks:
            if not task.is_active:
                continue
            if client_filter is not None and task.client_id not in client_filter:
                continue
            occurrences = self._occurrences(task, range_start, range_end)
            if isinstance(occurrences, SkippedTask):
                skipped.append(occurrences)
                continue

            task_skills = self._resolve_skills(task)
            if skill_filter is not None:
                task_skills = [s for s in task_skills if s in skill_filter]

            for occurrence in occurrences:
                key_month = month_key(occurrence)
                for skill in task_skills:
                    skill_order.setdefault(skill, None)
                    cell = (skill, key_month)
                    hours[cell] = hours.get(cell, 0.0) + task.estimated_hours
                    task_sets.setdefault(cell, set()).add(task.id)

        cells = [
            SkillMonthlyDemand(
                skill=skill,
                month=key_month,
                hours=round(value, 2),
                task_count=len(task_sets[(skill, key_month)]),
            )
            for (skill, key_month), value in hours.items()
        ]

        logger.info(
            "Demand matrix %s..%s: %d skills, %d cells, %d skipped tasks",
            range_start,
            range_end,
            len(skill_order),
            len(cells),
            len(skipped),
        )
        return DemandMatrix(
            start=range_start,
            end=range_end,
            months=months_between(range_start, range_end),
            skills=list(skill_order),
            cells=cells,
            skipped_tasks=skipped,
        )


def calculate_monthly_demand_by_skill(
    tasks: Iterable[RecurringTask],
    range_start: date,
    range_end: date,
    skill_cache: SkillMappingCache | None = None,
) -> list[SkillDemand]:
    """Convenience wrapper building a one-off DemandAggregator."""
    return DemandAggregator(skill_cache=skill_cache).calculate_monthly_demand_by_skill(
        tasks, range_start, range_end
    )
