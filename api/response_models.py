"""
Shared Pydantic models for the practice API.

Field names are snake_case in Python and camelCase on the wire; requests
accept either spelling.

Usage:
    from api.response_models import DemandBySkillResponse

    @router.get("/demand/skills", response_model=DemandBySkillResponse)
    def demand_by_skill(): ...
"""

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ==== Recurrence ====


class RecurrencePatternBody(CamelModel):
    """Recurrence pattern as sent by clients. Checked by the validator, not here."""

    type: str
    interval: int | None = None
    weekdays: list[int] | None = None
    day_of_month: int | None = None
    month_of_year: int | None = None
    custom_offset_days: int | None = None
    end_date: date | None = None

    def to_raw(self) -> dict[str, Any]:
        return self.model_dump()


class PatternValidationResponse(CamelModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class NextOccurrenceResponse(CamelModel):
    """Next occurrence, or why there is none."""

    from_date: date
    next_date: date | None = None
    exhausted: bool = False
    error: str | None = None
    error_kind: str | None = None


# ==== Demand ====


class SkillDemandItem(CamelModel):
    skill: str
    hours: float


class DemandBySkillResponse(CamelModel):
    start: date
    end: date
    items: list[SkillDemandItem] = Field(default_factory=list)
    total_hours: float = 0.0


class DemandCell(CamelModel):
    skill: str
    month: str
    hours: float
    task_count: int = 0


class SkippedTaskItem(CamelModel):
    task_id: str
    reason: str


class DemandMatrixResponse(CamelModel):
    start: date
    end: date
    months: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    cells: list[DemandCell] = Field(default_factory=list)
    skill_totals: dict[str, float] = Field(default_factory=dict)
    month_totals: dict[str, float] = Field(default_factory=dict)
    total_hours: float = 0.0
    skipped_tasks: list[SkippedTaskItem] = Field(default_factory=list)


class SkillCacheResponse(CamelModel):
    hits: int
    misses: int
    loads: int
    size: int
    age_seconds: float | None = None


# ==== Tasks ====


class RecurringTaskResponse(CamelModel):
    id: str
    template_id: str
    client_id: str
    name: str
    description: str = ""
    estimated_hours: float
    required_skills: list[str] = Field(default_factory=list)
    priority: str
    category: str
    due_date: date | None = None
    recurrence_pattern: RecurrencePatternBody
    is_active: bool
    last_generated_date: date | None = None
    preferred_staff_id: str | None = None
    notes: str | None = None


class TaskInstanceResponse(CamelModel):
    id: str
    template_id: str
    client_id: str
    recurring_task_id: str | None = None
    name: str
    description: str = ""
    estimated_hours: float
    required_skills: list[str] = Field(default_factory=list)
    priority: str
    category: str
    due_date: date | None = None
    status: str
    assigned_staff_id: str | None = None
    notes: str | None = None


class RecurringTaskListResponse(CamelModel):
    items: list[RecurringTaskResponse] = Field(default_factory=list)
    total: int = 0


class TaskInstanceListResponse(CamelModel):
    items: list[TaskInstanceResponse] = Field(default_factory=list)
    total: int = 0


# ==== Batches ====


class BatchErrorItem(CamelModel):
    item_id: str
    kind: str
    message: str


class GenerationResponse(CamelModel):
    run_id: str
    considered: int
    created_count: int
    skipped_count: int
    instances: list[TaskInstanceResponse] = Field(default_factory=list)
    errors: list[BatchErrorItem] = Field(default_factory=list)


class CopyResponse(CamelModel):
    target_client_id: str
    copied_count: int
    recurring: list[RecurringTaskResponse] = Field(default_factory=list)
    ad_hoc: list[TaskInstanceResponse] = Field(default_factory=list)
    errors: list[BatchErrorItem] = Field(default_factory=list)


class MutationResponse(CamelModel):
    """Standard mutation result."""

    success: bool = Field(description="Whether the operation succeeded")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")
