"""
Result records for batch operations (instance generation, bulk copy).

A batch never raises for a single bad item: failures are collected as
BatchError entries next to the items that succeeded.
"""

from dataclasses import dataclass, field
from datetime import datetime

from practice.models import RecurringTask, TaskInstance
from practice.tasks.mappers import recurring_task_to_dict, task_instance_to_dict


@dataclass
class BatchError:
    """Failure of one item in a batch."""

    item_id: str
    kind: str
    message: str

    def to_dict(self) -> dict:
        return {"item_id": self.item_id, "kind": self.kind, "message": self.message}


@dataclass
class GenerationResult:
    """Outcome of one generate_task_instances pass."""

    run_id: str
    started_at: datetime
    completed_at: datetime | None = None
    instances: list[TaskInstance] = field(default_factory=list)
    errors: list[BatchError] = field(default_factory=list)
    considered: int = 0

    @property
    def duration_seconds(self) -> float:
        if self.completed_at is None:
            return 0.0
        return (self.completed_at - self.started_at).total_seconds()

    @property
    def created_count(self) -> int:
        return len(self.instances)

    @property
    def skipped_count(self) -> int:
        """Tasks examined that were not due in the window and did not fail."""
        return self.considered - self.created_count - len(self.errors)

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "considered": self.considered,
            "created_count": self.created_count,
            "skipped_count": self.skipped_count,
            "instances": [task_instance_to_dict(i) for i in self.instances],
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass
class CopyResult:
    """Outcome of copying a client's tasks to another client."""

    target_client_id: str
    recurring: list[RecurringTask] = field(default_factory=list)
    ad_hoc: list[TaskInstance] = field(default_factory=list)
    errors: list[BatchError] = field(default_factory=list)

    @property
    def copied_count(self) -> int:
        return len(self.recurring) + len(self.ad_hoc)

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "target_client_id": self.target_client_id,
            "copied_count": self.copied_count,
            "recurring": [recurring_task_to_dict(t) for t in self.recurring],
            "ad_hoc": [task_instance_to_dict(t) for t in self.ad_hoc],
            "errors": [e.to_dict() for e in self.errors],
        }
