"""
Recurrence Pattern Validator.

Checks that a pattern carries every field its type requires, each in range.
Works on raw mappings (storage rows, API payloads) and on typed patterns.
A pattern is valid or rejected as a whole.

Required fields per type:

    Daily       interval > 0
    Weekly      interval > 0, weekdays non-empty (0=Sunday .. 6=Saturday)
    Monthly     interval > 0, day_of_month in 1..31
    Quarterly   day_of_month in 1..31
    Annually    month_of_year in 1..12, day_of_month in 1..31
    Custom      custom_offset_days is an integer (negative and zero allowed)
"""

import logging
from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from datetime import date, datetime
from typing import Any

from practice.errors import PatternValidationError
from practice.models import (
    PATTERN_CLASSES,
    AnnualPattern,
    CustomPattern,
    DailyPattern,
    MonthlyPattern,
    QuarterlyPattern,
    RecurrencePattern,
    RecurrenceType,
    WeeklyPattern,
)

logger = logging.getLogger(__name__)

REQUIRED_FIELDS: dict[RecurrenceType, tuple[str, ...]] = {
    RecurrenceType.DAILY: ("interval",),
    RecurrenceType.WEEKLY: ("interval", "weekdays"),
    RecurrenceType.MONTHLY: ("interval", "day_of_month"),
    RecurrenceType.QUARTERLY: ("day_of_month",),
    RecurrenceType.ANNUALLY: ("month_of_year", "day_of_month"),
    RecurrenceType.CUSTOM: ("custom_offset_days",),
}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _in_range(value: Any, low: int, high: int) -> bool:
    return _is_int(value) and low <= value <= high


def _as_mapping(pattern: Any) -> Mapping | None:
    if isinstance(pattern, Mapping):
        return pattern
    if is_dataclass(pattern) and not isinstance(pattern, type):
        return pattern_to_dict(pattern)
    return None


def _check_field(name: str, raw: Mapping, errors: list[str]) -> None:
    value = raw.get(name)
    if value is None:
        errors.append(f"{name} is required")
        return

    if name == "interval":
        if not _is_int(value) or value <= 0:
            errors.append(f"interval must be a positive integer, got {value!r}")
    elif name == "day_of_month":
        if not _in_range(value, 1, 31):
            errors.append(f"day_of_month must be between 1 and 31, got {value!r}")
    elif name == "month_of_year":
        if not _in_range(value, 1, 12):
            errors.append(f"month_of_year must be between 1 and 12, got {value!r}")
    elif name == "custom_offset_days":
        if not _is_int(value):
            errors.append(f"custom_offset_days must be an integer, got {value!r}")
    elif name == "weekdays":
        if isinstance(value, str | bytes) or not hasattr(value, "__iter__"):
            errors.append(f"weekdays must be a collection of day numbers, got {value!r}")
            return
        days = list(value)
        if not days:
            errors.append("weekdays must not be empty")
        bad = [d for d in days if not _in_range(d, 0, 6)]
        if bad:
            errors.append(f"weekdays must be between 0 and 6, got {bad!r}")


def validation_errors(pattern: Any) -> list[str]:
    """Every rule the pattern breaks. Empty list means valid."""
    raw = _as_mapping(pattern)
    if raw is None:
        return [f"pattern must be a mapping or a recurrence pattern, got {type(pattern).__name__}"]

    recurrence_type = RecurrenceType.parse(raw.get("type"))
    if recurrence_type is None:
        return [f"unknown recurrence type {raw.get('type')!r}"]

    errors: list[str] = []
    for name in REQUIRED_FIELDS[recurrence_type]:
        _check_field(name, raw, errors)

    end_date = raw.get("end_date")
    if end_date is not None and _coerce_date(end_date) is None:
        errors.append(f"end_date is not a valid date: {end_date!r}")

    return errors


def validate(pattern: Any) -> bool:
    """True when the pattern satisfies its type's required-field rules."""
    errors = validation_errors(pattern)
    if errors:
        logger.debug("Pattern rejected: %s", "; ".join(errors))
    return not errors


def validation_warnings(pattern: Any) -> list[str]:
    """Non-fatal observations about a valid pattern."""
    raw = _as_mapping(pattern)
    if raw is None or validation_errors(raw):
        return []

    warnings = []
    recurrence_type = RecurrenceType.parse(raw.get("type"))
    if recurrence_type == RecurrenceType.WEEKLY and len(set(raw["weekdays"])) == 7:
        warnings.append("All 7 weekdays selected - consider a daily recurrence instead")
    if recurrence_type in (
        RecurrenceType.MONTHLY,
        RecurrenceType.QUARTERLY,
        RecurrenceType.ANNUALLY,
    ) and raw["day_of_month"] > 28:
        warnings.append(
            f"day_of_month {raw['day_of_month']} does not exist in every month; "
            "short months follow the configured day overflow policy"
        )
    return warnings


# =============================================================================
# PARSE / SERIALIZE
# =============================================================================


def _coerce_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def parse_pattern(raw: Any) -> RecurrencePattern:
    """
    Build a typed pattern from a raw mapping.

    Raises:
        PatternValidationError: the mapping breaks any rule in REQUIRED_FIELDS
    """
    if isinstance(raw, tuple(PATTERN_CLASSES.values())):
        errors = validation_errors(raw)
        if errors:
            raise PatternValidationError("Invalid recurrence pattern: " + "; ".join(errors), errors)
        return raw

    errors = validation_errors(raw)
    if errors:
        raise PatternValidationError("Invalid recurrence pattern: " + "; ".join(errors), errors)

    recurrence_type = RecurrenceType.parse(raw["type"])
    end_date = _coerce_date(raw.get("end_date"))

    if recurrence_type == RecurrenceType.DAILY:
        return DailyPattern(interval=raw["interval"], end_date=end_date)
    if recurrence_type == RecurrenceType.WEEKLY:
        return WeeklyPattern(
            interval=raw["interval"], weekdays=frozenset(raw["weekdays"]), end_date=end_date
        )
    if recurrence_type == RecurrenceType.MONTHLY:
        return MonthlyPattern(
            interval=raw["interval"], day_of_month=raw["day_of_month"], end_date=end_date
        )
    if recurrence_type == RecurrenceType.QUARTERLY:
        return QuarterlyPattern(day_of_month=raw["day_of_month"], end_date=end_date)
    if recurrence_type == RecurrenceType.ANNUALLY:
        return AnnualPattern(
            month_of_year=raw["month_of_year"],
            day_of_month=raw["day_of_month"],
            end_date=end_date,
        )
    return CustomPattern(custom_offset_days=raw["custom_offset_days"], end_date=end_date)


def pattern_to_dict(pattern: RecurrencePattern) -> dict:
    """Flatten a typed pattern to the raw mapping shape parse_pattern accepts."""
    data: dict[str, Any] = {"type": str(pattern.type)}
    for f in fields(pattern):
        if f.name == "type":
            continue
        value = getattr(pattern, f.name)
        if f.name == "weekdays" and value is not None:
            value = sorted(value)
        data[f.name] = value
    return data
