"""
Practice OS - Domain Models

Recurrence patterns are a tagged union: one frozen dataclass per recurrence
type, each carrying only the fields that type uses.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from enum import StrEnum

# =============================================================================
# ID / TIME HELPERS
# =============================================================================


def generate_id(prefix: str = "") -> str:
    """Generate a unique ID with optional prefix."""
    uid = uuid.uuid4().hex[:16]
    if prefix:
        return f"{prefix}_{uid}"
    return uid


def now_iso() -> str:
    """Current UTC time in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def month_key(d: date) -> str:
    """YYYY-MM bucket for a date."""
    return f"{d.year:04d}-{d.month:02d}"


# =============================================================================
# ENUMS
# =============================================================================


class RecurrenceType(StrEnum):
    """How often a recurring task repeats."""

    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    ANNUALLY = "Annually"
    CUSTOM = "Custom"

    @classmethod
    def parse(cls, value) -> "RecurrenceType | None":
        """Case-insensitive lookup; "annual" is accepted for ANNUALLY."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower()
        if key == "annual":
            return cls.ANNUALLY
        for member in cls:
            if member.value.lower() == key:
                return member
        return None


class TaskStatus(StrEnum):
    UNSCHEDULED = "Unscheduled"
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELED = "Canceled"


class TaskPriority(StrEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


# =============================================================================
# RECURRENCE PATTERNS
# =============================================================================


@dataclass(frozen=True)
class DailyPattern:
    interval: int
    end_date: date | None = None
    type: RecurrenceType = field(default=RecurrenceType.DAILY, init=False)


@dataclass(frozen=True)
class WeeklyPattern:
    """weekdays: 0=Sunday .. 6=Saturday."""

    interval: int
    weekdays: frozenset[int]
    end_date: date | None = None
    type: RecurrenceType = field(default=RecurrenceType.WEEKLY, init=False)


@dataclass(frozen=True)
class MonthlyPattern:
    interval: int
    day_of_month: int
    end_date: date | None = None
    type: RecurrenceType = field(default=RecurrenceType.MONTHLY, init=False)


@dataclass(frozen=True)
class QuarterlyPattern:
    day_of_month: int
    end_date: date | None = None
    type: RecurrenceType = field(default=RecurrenceType.QUARTERLY, init=False)


@dataclass(frozen=True)
class AnnualPattern:
    """month_of_year is 1-based (1=January)."""

    month_of_year: int
    day_of_month: int
    end_date: date | None = None
    type: RecurrenceType = field(default=RecurrenceType.ANNUALLY, init=False)


@dataclass(frozen=True)
class CustomPattern:
    """Offset in days from the last day of the reference month. May be <= 0."""

    custom_offset_days: int
    end_date: date | None = None
    type: RecurrenceType = field(default=RecurrenceType.CUSTOM, init=False)


RecurrencePattern = (
    DailyPattern | WeeklyPattern | MonthlyPattern | QuarterlyPattern | AnnualPattern | CustomPattern
)

PATTERN_CLASSES: dict[RecurrenceType, type] = {
    RecurrenceType.DAILY: DailyPattern,
    RecurrenceType.WEEKLY: WeeklyPattern,
    RecurrenceType.MONTHLY: MonthlyPattern,
    RecurrenceType.QUARTERLY: QuarterlyPattern,
    RecurrenceType.ANNUALLY: AnnualPattern,
    RecurrenceType.CUSTOM: CustomPattern,
}


# =============================================================================
# TASKS
# =============================================================================


@dataclass
class RecurringTask:
    """Template-driven task definition that spawns periodic instances."""

    id: str
    template_id: str
    client_id: str
    name: str
    estimated_hours: float
    pattern: RecurrencePattern
    required_skills: tuple[str, ...] = ()
    description: str = ""
    priority: str = TaskPriority.MEDIUM
    category: str = "Other"
    due_date: date | None = None
    is_active: bool = True
    last_generated_date: date | None = None
    preferred_staff_id: str | None = None
    notes: str | None = None
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)

    def with_changes(self, **changes) -> "RecurringTask":
        return replace(self, updated_at=now_iso(), **changes)


@dataclass
class TaskInstance:
    """One concrete, schedulable occurrence of work."""

    id: str
    template_id: str
    client_id: str
    name: str
    estimated_hours: float
    recurring_task_id: str | None = None
    required_skills: tuple[str, ...] = ()
    description: str = ""
    priority: str = TaskPriority.MEDIUM
    category: str = "Other"
    due_date: date | None = None
    status: str = TaskStatus.UNSCHEDULED
    assigned_staff_id: str | None = None
    scheduled_start_time: str | None = None
    scheduled_end_time: str | None = None
    completed_at: str | None = None
    notes: str | None = None
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)

    @property
    def is_ad_hoc(self) -> bool:
        return self.recurring_task_id is None


# =============================================================================
# DEMAND
# =============================================================================


@dataclass(frozen=True)
class SkillDemand:
    skill: str
    hours: float

    def to_dict(self) -> dict:
        return {"skill": self.skill, "hours": self.hours}


@dataclass(frozen=True)
class SkillMonthlyDemand:
    """Derived cell of the demand matrix. Never persisted."""

    skill: str
    month: str
    hours: float
    task_count: int = 0

    def to_dict(self) -> dict:
        return {
            "skill": self.skill,
            "month": self.month,
            "hours": self.hours,
            "task_count": self.task_count,
        }
