"""
Tests for the recurrence pattern validator.

Covers:
- Required fields per recurrence type
- Range checks and boolean rejection
- Unknown types
- parse_pattern / pattern_to_dict
- Non-fatal warnings
"""

from datetime import date

import pytest

from practice.errors import PatternValidationError
from practice.models import (
    AnnualPattern,
    CustomPattern,
    DailyPattern,
    MonthlyPattern,
    QuarterlyPattern,
    RecurrenceType,
    WeeklyPattern,
)
from practice.recurrence.validator import (
    parse_pattern,
    pattern_to_dict,
    validate,
    validation_errors,
    validation_warnings,
)

# =============================================================================
# REQUIRED FIELDS
# =============================================================================


class TestRequiredFields:
    """Each type accepts exactly the patterns its rules allow."""

    @pytest.mark.parametrize(
        "pattern",
        [
            {"type": "Daily", "interval": 1},
            {"type": "Weekly", "interval": 2, "weekdays": [1, 3]},
            {"type": "Monthly", "interval": 1, "day_of_month": 31},
            {"type": "Quarterly", "day_of_month": 1},
            {"type": "Annually", "month_of_year": 12, "day_of_month": 25},
            {"type": "Custom", "custom_offset_days": 0},
            {"type": "Custom", "custom_offset_days": -5},
        ],
    )
    def test_valid_patterns(self, pattern):
        """Complete patterns validate."""
        assert validate(pattern) is True
        assert validation_errors(pattern) == []

    @pytest.mark.parametrize(
        "pattern",
        [
            {"type": "Daily"},
            {"type": "Daily", "interval": 0},
            {"type": "Daily", "interval": -1},
            {"type": "Weekly", "interval": 1},
            {"type": "Weekly", "interval": 1, "weekdays": []},
            {"type": "Weekly", "interval": 1, "weekdays": [7]},
            {"type": "Weekly", "weekdays": [1]},
            {"type": "Monthly", "interval": 1},
            {"type": "Monthly", "interval": 1, "day_of_month": 0},
            {"type": "Monthly", "interval": 1, "day_of_month": 32},
            {"type": "Quarterly"},
            {"type": "Annually", "day_of_month": 1},
            {"type": "Annually", "month_of_year": 13, "day_of_month": 1},
            {"type": "Custom"},
        ],
    )
    def test_invalid_patterns(self, pattern):
        """Missing or out-of-range fields reject the whole pattern."""
        assert validate(pattern) is False
        assert validation_errors(pattern)

    def test_boolean_is_not_an_integer(self):
        """True must not pass as interval 1."""
        assert validate({"type": "Daily", "interval": True}) is False
        assert validate({"type": "Custom", "custom_offset_days": False}) is False

    def test_unknown_type_is_invalid(self):
        """Unknown recurrence types are rejected."""
        errors = validation_errors({"type": "Fortnightly", "interval": 1})
        assert errors == ["unknown recurrence type 'Fortnightly'"]

    def test_type_is_case_insensitive_with_annual_alias(self):
        """'annual' and 'MONTHLY' are accepted spellings."""
        assert validate({"type": "annual", "month_of_year": 4, "day_of_month": 5})
        assert validate({"type": "MONTHLY", "interval": 1, "day_of_month": 5})

    def test_collects_every_error(self):
        """All broken rules are reported, not only the first."""
        errors = validation_errors({"type": "Annually", "month_of_year": 0, "day_of_month": 40})
        assert len(errors) == 2

    def test_bad_end_date_is_reported(self):
        errors = validation_errors({"type": "Daily", "interval": 1, "end_date": "soon"})
        assert any("end_date" in e for e in errors)

    def test_non_mapping_is_invalid(self):
        assert validate("Daily") is False
        assert validate(None) is False

    def test_typed_patterns_are_validated(self):
        """Typed patterns go through the same rules."""
        assert validate(MonthlyPattern(interval=1, day_of_month=15)) is True
        assert validate(WeeklyPattern(interval=1, weekdays=frozenset())) is False


# =============================================================================
# PARSE / SERIALIZE
# =============================================================================


class TestParsePattern:
    """Raw mapping -> typed pattern."""

    def test_builds_typed_patterns(self):
        assert parse_pattern({"type": "Daily", "interval": 2}) == DailyPattern(interval=2)
        assert parse_pattern({"type": "Weekly", "interval": 1, "weekdays": [3, 1, 3]}) == WeeklyPattern(
            interval=1, weekdays=frozenset({1, 3})
        )
        assert parse_pattern({"type": "Quarterly", "day_of_month": 10}) == QuarterlyPattern(day_of_month=10)
        assert parse_pattern({"type": "Annual", "month_of_year": 1, "day_of_month": 31}) == AnnualPattern(
            month_of_year=1, day_of_month=31
        )
        assert parse_pattern({"type": "Custom", "custom_offset_days": 5}) == CustomPattern(custom_offset_days=5)

    def test_end_date_string_is_coerced(self):
        pattern = parse_pattern({"type": "Monthly", "interval": 1, "day_of_month": 1, "end_date": "2025-06-30"})
        assert pattern.end_date == date(2025, 6, 30)

    def test_invalid_raises_with_error_list(self):
        with pytest.raises(PatternValidationError) as exc_info:
            parse_pattern({"type": "Monthly", "interval": 0, "day_of_month": 99})
        assert len(exc_info.value.errors) == 2

    def test_typed_pattern_passes_through(self):
        pattern = MonthlyPattern(interval=3, day_of_month=1)
        assert parse_pattern(pattern) is pattern

    def test_pattern_to_dict_shape(self):
        """Typed patterns flatten to a mapping parse_pattern accepts again."""
        data = pattern_to_dict(WeeklyPattern(interval=1, weekdays=frozenset({5, 1})))
        assert data == {"type": "Weekly", "interval": 1, "weekdays": [1, 5], "end_date": None}
        assert parse_pattern(data).type == RecurrenceType.WEEKLY


# =============================================================================
# WARNINGS
# =============================================================================


class TestWarnings:
    """Non-fatal observations."""

    def test_all_weekdays_warns(self):
        warnings = validation_warnings({"type": "Weekly", "interval": 1, "weekdays": list(range(7))})
        assert len(warnings) == 1
        assert "daily" in warnings[0]

    def test_late_day_of_month_warns(self):
        warnings = validation_warnings({"type": "Monthly", "interval": 1, "day_of_month": 30})
        assert len(warnings) == 1
        assert "day_of_month 30" in warnings[0]

    def test_ordinary_pattern_has_no_warnings(self):
        assert validation_warnings({"type": "Monthly", "interval": 1, "day_of_month": 15}) == []

    def test_invalid_pattern_has_no_warnings(self):
        assert validation_warnings({"type": "Weekly", "interval": 1}) == []
