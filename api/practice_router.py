"""
Practice API Router - recurrence, demand forecasting and task batches.

Provides endpoints for:
- Validating recurrence patterns and computing next occurrences
- Skill demand totals and the skill x month demand matrix
- Recurring task and task instance management
- Instance generation and bulk task copy

Errors: validation -> 400, unknown ids -> 404, storage -> 500.
"""

import logging
import sqlite3
from collections.abc import Generator
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import Field

from api.response_models import (
    CamelModel,
    CopyResponse,
    DemandBySkillResponse,
    DemandMatrixResponse,
    GenerationResponse,
    MutationResponse,
    NextOccurrenceResponse,
    PatternValidationResponse,
    RecurrencePatternBody,
    RecurringTaskListResponse,
    RecurringTaskResponse,
    SkillCacheResponse,
    TaskInstanceListResponse,
    TaskInstanceResponse,
)
from practice import paths
from practice.config import Settings, load_settings
from practice.database import Database
from practice.demand import DemandAggregator, SkillMappingCache
from practice.errors import NotFoundError, PracticeError, TaskServiceError, ValidationError
from practice.recurrence import (
    Err,
    ErrKind,
    RecurrenceCalculator,
    RecurrencePolicy,
    validation_errors,
    validation_warnings,
)
from practice.tasks import (
    SkillRepository,
    TaskCopyService,
    TaskInstanceGenerator,
    TaskService,
)
from practice.tasks.mappers import recurring_task_to_dict, task_instance_to_dict

logger = logging.getLogger(__name__)

practice_router = APIRouter(
    prefix="/api/practice",
    tags=["Practice"],
)


# ==== Request bodies ====


class NextOccurrenceRequest(CamelModel):
    pattern: RecurrencePatternBody
    from_date: date


class RecurringTaskCreateRequest(CamelModel):
    client_id: str
    template_id: str
    name: str
    estimated_hours: float
    recurrence_pattern: RecurrencePatternBody
    required_skills: list[str] = Field(default_factory=list)
    description: str = ""
    priority: str = "Medium"
    category: str = "Other"
    due_date: date | None = None
    preferred_staff_id: str | None = None
    notes: str | None = None


class TaskInstanceUpdateRequest(CamelModel):
    status: str | None = None
    assigned_staff_id: str | None = None
    scheduled_start_time: str | None = None
    scheduled_end_time: str | None = None
    notes: str | None = None


class GenerateRequest(CamelModel):
    from_date: date
    to_date: date
    lead_time_days: int | None = None


class CopyRequest(CamelModel):
    target_client_id: str
    recurring_task_ids: list[str] = Field(default_factory=list)
    ad_hoc_task_ids: list[str] = Field(default_factory=list)


# ==== Dependencies ====


def get_db() -> Generator[Database, None, None]:
    """Database for one request; schema is created on first use."""
    db = Database(paths.db_path())
    try:
        db.init_schema()
        yield db
    finally:
        db.close()


def get_settings(request: Request) -> Settings:
    """Settings loaded once per app from config/practice.yaml and the environment."""
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        settings = request.app.state.settings = load_settings()
    return settings


def _skill_loader(db_path: str):
    """Loader reading skill names through its own short-lived connection."""

    def load() -> dict[str, str]:
        skill_db = Database(db_path)
        try:
            return SkillRepository(skill_db).name_mapping()
        finally:
            skill_db.close()

    return load


def get_aggregator(
    request: Request,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> DemandAggregator:
    """
    DemandAggregator for the request's database. One per app and database,
    so the skill cache lives across requests until its TTL runs out.
    """
    state = request.app.state
    aggregators = getattr(state, "demand_aggregators", None)
    if aggregators is None:
        aggregators = state.demand_aggregators = {}
    aggregator = aggregators.get(db.db_path)
    if aggregator is None:
        cache = SkillMappingCache(
            loader=_skill_loader(db.db_path), ttl_seconds=settings.skill_cache_ttl_seconds
        )
        aggregator = DemandAggregator(
            calculator=RecurrenceCalculator(RecurrencePolicy.from_settings(settings)),
            skill_cache=cache,
        )
        aggregators[db.db_path] = aggregator
    return aggregator


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=400, detail={"message": str(exc), "errors": exc.errors})
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, TaskServiceError) and exc.code == "INVALID_SKILLS":
        return HTTPException(status_code=400, detail={"message": str(exc), "code": exc.code})
    logger.error(f"Practice API error: {exc}")
    return HTTPException(status_code=500, detail=str(exc))


# ==== Recurrence ====


@practice_router.post("/patterns/validate", response_model=PatternValidationResponse)
def validate_pattern(pattern: RecurrencePatternBody) -> dict:
    """Validate a recurrence pattern without saving anything."""
    raw = pattern.to_raw()
    errors = validation_errors(raw)
    return {
        "valid": not errors,
        "errors": errors,
        "warnings": validation_warnings(raw) if not errors else [],
    }


@practice_router.post("/patterns/next-occurrence", response_model=NextOccurrenceResponse)
def next_occurrence(body: NextOccurrenceRequest, settings: Settings = Depends(get_settings)) -> dict:
    """Next date after fromDate matching the pattern."""
    calculator = RecurrenceCalculator(RecurrencePolicy.from_settings(settings))
    result = calculator.next_occurrence(body.pattern.to_raw(), body.from_date)
    if isinstance(result, Err):
        if result.kind == ErrKind.INVALID_PATTERN:
            raise HTTPException(status_code=400, detail={"message": result.reason, "errors": [result.reason]})
        return {
            "from_date": body.from_date,
            "exhausted": result.kind == ErrKind.EXHAUSTED,
            "error": result.reason,
            "error_kind": str(result.kind),
        }
    return {"from_date": body.from_date, "next_date": result.value}


# ==== Demand ====


@practice_router.get("/demand/skills", response_model=DemandBySkillResponse)
def demand_by_skill(
    start: date = Query(..., description="Range start (inclusive)"),
    end: date = Query(..., description="Range end (inclusive)"),
    db: Database = Depends(get_db),
    aggregator: DemandAggregator = Depends(get_aggregator),
) -> dict:
    """Total estimated hours per skill for all active recurring tasks."""
    try:
        tasks = TaskService(db).get_recurring_tasks(active_only=True)
        demand = aggregator.calculate_monthly_demand_by_skill(tasks, start, end)
    except (PracticeError, sqlite3.Error) as e:
        raise _http_error(e) from e
    return {
        "start": start,
        "end": end,
        "items": [d.to_dict() for d in demand],
        "total_hours": round(sum(d.hours for d in demand), 2),
    }


@practice_router.get("/demand/matrix", response_model=DemandMatrixResponse)
def demand_matrix(
    start: date = Query(..., description="Range start (inclusive)"),
    end: date = Query(..., description="Range end (inclusive)"),
    skills: list[str] | None = Query(None, description="Only these skills"),
    client_ids: list[str] | None = Query(None, alias="clientIds", description="Only these clients"),
    db: Database = Depends(get_db),
    aggregator: DemandAggregator = Depends(get_aggregator),
) -> dict:
    """Skill x month demand matrix."""
    try:
        tasks = TaskService(db).get_recurring_tasks(active_only=True)
        matrix = aggregator.calculate_demand_matrix(
            tasks, start, end, skills=skills, client_ids=client_ids
        )
    except (PracticeError, sqlite3.Error) as e:
        raise _http_error(e) from e
    return matrix.to_dict()


@practice_router.get("/skills/cache", response_model=SkillCacheResponse)
def skill_cache_stats(aggregator: DemandAggregator = Depends(get_aggregator)) -> dict:
    return aggregator.skill_cache.stats().to_dict()


@practice_router.post("/skills/cache/invalidate", response_model=MutationResponse)
def invalidate_skill_cache(aggregator: DemandAggregator = Depends(get_aggregator)) -> dict:
    """Drop cached skill names; the next demand request reloads them."""
    aggregator.skill_cache.invalidate()
    return {"success": True}


# ==== Recurring tasks ====


@practice_router.get("/recurring-tasks", response_model=RecurringTaskListResponse)
def list_recurring_tasks(
    active_only: bool = Query(True, alias="activeOnly"),
    client_id: str | None = Query(None, alias="clientId"),
    db: Database = Depends(get_db),
) -> dict:
    tasks = TaskService(db).get_recurring_tasks(active_only=active_only, client_id=client_id)
    return {"items": [recurring_task_to_dict(t) for t in tasks], "total": len(tasks)}


@practice_router.post("/recurring-tasks", response_model=RecurringTaskResponse, status_code=201)
def create_recurring_task(body: RecurringTaskCreateRequest, db: Database = Depends(get_db)) -> dict:
    try:
        task = TaskService(db).create_recurring_task(
            client_id=body.client_id,
            template_id=body.template_id,
            name=body.name,
            estimated_hours=body.estimated_hours,
            pattern=body.recurrence_pattern.to_raw(),
            required_skills=body.required_skills,
            description=body.description,
            priority=body.priority,
            category=body.category,
            due_date=body.due_date,
            preferred_staff_id=body.preferred_staff_id,
            notes=body.notes,
        )
    except (PracticeError, sqlite3.Error) as e:
        raise _http_error(e) from e
    return recurring_task_to_dict(task)


@practice_router.delete("/recurring-tasks/{task_id}", response_model=MutationResponse)
def deactivate_recurring_task(task_id: str, db: Database = Depends(get_db)) -> dict:
    """Deactivate; recurring tasks are never hard-deleted."""
    try:
        TaskService(db).deactivate_recurring_task(task_id)
    except (PracticeError, sqlite3.Error) as e:
        raise _http_error(e) from e
    return {"success": True, "id": task_id}


# ==== Task instances ====


@practice_router.get("/task-instances/unscheduled", response_model=TaskInstanceListResponse)
def list_unscheduled(db: Database = Depends(get_db)) -> dict:
    instances = TaskService(db).get_unscheduled_task_instances()
    return {"items": [task_instance_to_dict(i) for i in instances], "total": len(instances)}


@practice_router.patch("/task-instances/{instance_id}", response_model=TaskInstanceResponse)
def update_task_instance(
    instance_id: str, body: TaskInstanceUpdateRequest, db: Database = Depends(get_db)
) -> dict:
    changes = body.model_dump(exclude_unset=True)
    try:
        instance = TaskService(db).update_task_instance(instance_id, **changes)
    except (PracticeError, sqlite3.Error) as e:
        raise _http_error(e) from e
    return task_instance_to_dict(instance)


# ==== Batches ====


@practice_router.post("/task-instances/generate", response_model=GenerationResponse)
def generate_instances(
    body: GenerateRequest,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Create Unscheduled instances for recurring tasks falling due in the window."""
    lead_time_days = body.lead_time_days if body.lead_time_days is not None else settings.lead_time_days
    generator = TaskInstanceGenerator(db, RecurrenceCalculator(RecurrencePolicy.from_settings(settings)))
    try:
        result = generator.generate_task_instances(body.from_date, body.to_date, lead_time_days)
    except (PracticeError, sqlite3.Error) as e:
        raise _http_error(e) from e
    return result.to_dict()


@practice_router.post("/tasks/copy", response_model=CopyResponse)
def copy_tasks(body: CopyRequest, db: Database = Depends(get_db)) -> dict:
    """Copy tasks to another client. Per-task failures are listed in errors."""
    result = TaskCopyService(db).copy_client_tasks(
        body.recurring_task_ids, body.ad_hoc_task_ids, body.target_client_id
    )
    return result.to_dict()
