"""
Recurrence rules: pattern validation and next-occurrence date math.

    from practice.recurrence import validate, next_occurrence

    validate({"type": "Monthly", "interval": 1, "day_of_month": 15})   # True
    next_occurrence(pattern, date(2025, 1, 20))                          # Ok(2025-02-15)
"""

from .calculator import (
    Err,
    ErrKind,
    Ok,
    OccurrenceResult,
    RecurrenceCalculator,
    RecurrencePolicy,
    iter_occurrences,
    next_occurrence,
    next_occurrence_or_none,
)
from .validator import (
    parse_pattern,
    pattern_to_dict,
    validate,
    validation_errors,
    validation_warnings,
)

__all__ = [
    "Err",
    "ErrKind",
    "Ok",
    "OccurrenceResult",
    "RecurrenceCalculator",
    "RecurrencePolicy",
    "iter_occurrences",
    "next_occurrence",
    "next_occurrence_or_none",
    "parse_pattern",
    "pattern_to_dict",
    "validate",
    "validation_errors",
    "validation_warnings",
]
