"""
Next-Occurrence Calculator.

Given a recurrence pattern and a reference date, computes the next calendar
date the pattern lands on. Results are explicit:

    Ok(date)                      the next occurrence
    Err(reason, EXHAUSTED)        the pattern has no further dates (end_date passed)
    Err(reason, INVALID_PATTERN)  required fields missing or out of range
    Err(reason, COMPUTATION_ERROR) date arithmetic failed

Weekdays are numbered 0=Sunday .. 6=Saturday. Weeks start on Sunday.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import StrEnum
from typing import Any

from dateutil.relativedelta import relativedelta
from dateutil.rrule import FR, MO, SA, SU, TH, TU, WE, WEEKLY, rrule

from practice import config
from practice.errors import PatternValidationError
from practice.models import (
    AnnualPattern,
    CustomPattern,
    DailyPattern,
    MonthlyPattern,
    QuarterlyPattern,
    RecurrencePattern,
    WeeklyPattern,
)
from practice.recurrence.validator import parse_pattern

logger = logging.getLogger(__name__)


# =============================================================================
# RESULT TYPE
# =============================================================================


class ErrKind(StrEnum):
    EXHAUSTED = "exhausted"
    INVALID_PATTERN = "invalid_pattern"
    COMPUTATION_ERROR = "computation_error"


@dataclass(frozen=True)
class Ok:
    value: Any

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    reason: str
    kind: ErrKind

    @property
    def is_ok(self) -> bool:
        return False


OccurrenceResult = Ok | Err


# =============================================================================
# POLICY
# =============================================================================


@dataclass(frozen=True)
class RecurrencePolicy:
    """
    Behavior for the two calendar edge cases.

    day_overflow:
        clamp  day_of_month past the month's end lands on the last day
        roll   the excess days carry into the next month (Feb 30 -> Mar 2)
    annual_rollover:
        calendar  this year's date is used only if it falls after the reference date
        legacy    compares the reference date's 0-based month index against the
                  1-based month_of_year, as older schedules were computed
    """

    day_overflow: str = "clamp"
    annual_rollover: str = "calendar"

    def __post_init__(self):
        if self.day_overflow not in config.DAY_OVERFLOW_CHOICES:
            raise ValueError(f"day_overflow must be one of {config.DAY_OVERFLOW_CHOICES}")
        if self.annual_rollover not in config.ANNUAL_ROLLOVER_CHOICES:
            raise ValueError(f"annual_rollover must be one of {config.ANNUAL_ROLLOVER_CHOICES}")

    @classmethod
    def from_settings(cls, settings=None) -> "RecurrencePolicy":
        if settings is None:
            return cls(day_overflow=config.DAY_OVERFLOW, annual_rollover=config.ANNUAL_ROLLOVER)
        return cls(day_overflow=settings.day_overflow, annual_rollover=settings.annual_rollover)


# =============================================================================
# DATE HELPERS
# =============================================================================


def sunday_weekday(d: date) -> int:
    """Weekday with 0=Sunday .. 6=Saturday."""
    return (d.weekday() + 1) % 7


# indexed by Sunday-based weekday number
RRULE_WEEKDAYS = (SU, MO, TU, WE, TH, FR, SA)


def month_start(d: date) -> date:
    return d + relativedelta(day=1)


def month_end(d: date) -> date:
    return d + relativedelta(day=31)


def place_day(anchor: date, day: int, day_overflow: str = "clamp") -> date:
    """*day* in anchor's month. Short months clamp to their last day, or roll the excess forward."""
    placed = anchor + relativedelta(day=day)
    if day_overflow == "roll" and placed.day < day:
        return placed + timedelta(days=day - placed.day)
    return placed


def quarter_start_month(d: date) -> int:
    return ((d.month - 1) // 3) * 3 + 1


# =============================================================================
# CALCULATOR
# =============================================================================


class RecurrenceCalculator:
    """
    Computes next occurrences and expands patterns over date ranges.

    Stateless apart from its policy; one instance can serve any number of
    tasks.
    """

    def __init__(self, policy: RecurrencePolicy | None = None):
        self.policy = policy or RecurrencePolicy.from_settings()

    # ---------------------------------------------------------------- next

    @staticmethod
    def _coerce(pattern: RecurrencePattern | Mapping) -> "RecurrencePattern | Err":
        try:
            return parse_pattern(pattern)
        except PatternValidationError as exc:
            return Err(str(exc), ErrKind.INVALID_PATTERN)

    def next_occurrence(self, pattern: RecurrencePattern | Mapping, from_date: date) -> OccurrenceResult:
        """Next date after from_date that satisfies the pattern."""
        pattern = self._coerce(pattern)
        if isinstance(pattern, Err):
            return pattern
        return self._next_checked(pattern, from_date)

    def _next_checked(self, pattern: RecurrencePattern, from_date: date) -> OccurrenceResult:
        try:
            value = self._compute(pattern, from_date)
        except (ValueError, OverflowError, TypeError, AttributeError) as exc:
            logger.error("Next occurrence failed for %r from %s: %s", pattern, from_date, exc)
            return Err(f"{type(exc).__name__}: {exc}", ErrKind.COMPUTATION_ERROR)

        if isinstance(value, Err):
            return value

        end_date = getattr(pattern, "end_date", None)
        if end_date is not None and value > end_date:
            return Err(f"next occurrence {value} is after end date {end_date}", ErrKind.EXHAUSTED)
        return Ok(value)

    def _compute(self, pattern: RecurrencePattern, from_date: date) -> "date | Err":
        if isinstance(pattern, DailyPattern):
            return from_date + timedelta(days=pattern.interval)
        if isinstance(pattern, WeeklyPattern):
            return self._next_weekly(pattern, from_date)
        if isinstance(pattern, MonthlyPattern):
            target = month_start(from_date) + relativedelta(months=pattern.interval)
            return place_day(target, pattern.day_of_month, self.policy.day_overflow)
        if isinstance(pattern, QuarterlyPattern):
            target = from_date + relativedelta(month=quarter_start_month(from_date), day=1, months=3)
            return place_day(target, pattern.day_of_month, self.policy.day_overflow)
        if isinstance(pattern, AnnualPattern):
            return self._next_annual(pattern, from_date)
        if isinstance(pattern, CustomPattern):
            return month_end(from_date) + timedelta(days=pattern.custom_offset_days)
        return Err(f"unsupported pattern {type(pattern).__name__}", ErrKind.INVALID_PATTERN)

    def _next_weekly(self, pattern: WeeklyPattern, from_date: date) -> "date | Err":
        if not pattern.weekdays:
            return Err("weekly pattern has no weekdays", ErrKind.INVALID_PATTERN)

        # interval counts whole Sunday-start weeks from the reference's own week
        week_start = from_date - timedelta(days=sunday_weekday(from_date))
        rule = rrule(
            WEEKLY,
            interval=pattern.interval,
            wkst=SU,
            byweekday=[RRULE_WEEKDAYS[d] for d in sorted(pattern.weekdays)],
            dtstart=datetime.combine(week_start, datetime.min.time()),
        )
        found = rule.after(datetime.combine(from_date, datetime.min.time()))
        if found is None:
            return Err(f"no weekly occurrence after {from_date}", ErrKind.COMPUTATION_ERROR)
        return found.date()

    def _next_annual(self, pattern: AnnualPattern, from_date: date) -> date:
        overflow = self.policy.day_overflow
        if self.policy.annual_rollover == "legacy":
            # 0-based month index against 1-based month_of_year
            year = from_date.year + 1 if from_date.month - 1 >= pattern.month_of_year else from_date.year
            return place_day(date(year, pattern.month_of_year, 1), pattern.day_of_month, overflow)

        this_year = date(from_date.year, pattern.month_of_year, 1)
        candidate = place_day(this_year, pattern.day_of_month, overflow)
        if candidate > from_date:
            return candidate
        return place_day(this_year + relativedelta(years=1), pattern.day_of_month, overflow)

    # ---------------------------------------------------------------- ranges

    def _expansion_seed(self, pattern: RecurrencePattern, start: date) -> date:
        """A reference date whose next occurrence is at or before the first one in range."""
        if isinstance(pattern, DailyPattern):
            return start - timedelta(days=pattern.interval)
        if isinstance(pattern, WeeklyPattern):
            return start - timedelta(days=1)
        if isinstance(pattern, MonthlyPattern):
            return month_start(start) - relativedelta(months=pattern.interval)
        if isinstance(pattern, QuarterlyPattern):
            return start + relativedelta(month=quarter_start_month(start), day=1, months=-3)
        if isinstance(pattern, AnnualPattern):
            return date(start.year - 1, 1, 1)
        return start - timedelta(days=abs(pattern.custom_offset_days) + 62)

    def expand(self, pattern: RecurrencePattern | Mapping, start: date, end: date) -> OccurrenceResult:
        """
        All occurrences in [start, end], strictly increasing.

        Returns Ok(list[date]) or the first non-exhaustion Err.
        """
        pattern = self._coerce(pattern)
        if isinstance(pattern, Err):
            return pattern

        if start > end:
            return Ok([])

        occurrences: list[date] = []
        cursor = self._expansion_seed(pattern, start)
        while cursor <= end:
            result = self._next_checked(pattern, cursor)
            if isinstance(result, Err):
                if result.kind == ErrKind.EXHAUSTED:
                    break
                return result

            found = result.value
            if found > end:
                break
            if found <= cursor:
                # patterns anchored to month ends can point backwards
                cursor += timedelta(days=1)
                continue
            if found >= start:
                occurrences.append(found)
            cursor = found

        return Ok(occurrences)

    def iter_occurrences(self, pattern: RecurrencePattern | Mapping, start: date, end: date):
        """Yield occurrences in [start, end]; yields nothing if the pattern cannot be expanded."""
        result = self.expand(pattern, start, end)
        if isinstance(result, Err):
            logger.warning("Cannot expand pattern between %s and %s: %s", start, end, result.reason)
            return
        yield from result.value


# =============================================================================
# MODULE-LEVEL API
# =============================================================================


def next_occurrence(
    pattern: RecurrencePattern | Mapping,
    from_date: date,
    policy: RecurrencePolicy | None = None,
) -> OccurrenceResult:
    return RecurrenceCalculator(policy).next_occurrence(pattern, from_date)


def next_occurrence_or_none(
    pattern: RecurrencePattern | Mapping,
    from_date: date,
    policy: RecurrencePolicy | None = None,
) -> date | None:
    """
    Null-returning form of next_occurrence.

    Exhausted patterns, invalid patterns and arithmetic failures all come back
    as None; the latter two are logged.
    """
    result = next_occurrence(pattern, from_date, policy)
    if isinstance(result, Ok):
        return result.value
    if result.kind != ErrKind.EXHAUSTED:
        logger.warning("No next occurrence from %s: %s", from_date, result.reason)
    return None


def iter_occurrences(
    pattern: RecurrencePattern | Mapping,
    start: date,
    end: date,
    policy: RecurrencePolicy | None = None,
):
    return RecurrenceCalculator(policy).iter_occurrences(pattern, start, end)
