"""
Task lifecycle: recurring task definitions, generated instances, copies.

Provides:
- TaskService: create / update / deactivate recurring tasks, manage instances
- TaskInstanceGenerator: recurring task -> Unscheduled instance when due
- TaskCopyService: copy tasks between clients
- Repositories over the recurring_tasks, task_instances and skills tables
"""

from .copy import TaskCopyService, copy_client_tasks
from .generator import TaskInstanceGenerator, generate_task_instances, instance_from_recurring
from .repository import RecurringTaskRepository, SkillRepository, TaskInstanceRepository
from .results import BatchError, CopyResult, GenerationResult
from .service import TaskService

__all__ = [
    "BatchError",
    "CopyResult",
    "GenerationResult",
    "RecurringTaskRepository",
    "SkillRepository",
    "TaskCopyService",
    "TaskInstanceGenerator",
    "TaskInstanceRepository",
    "TaskService",
    "copy_client_tasks",
    "generate_task_instances",
    "instance_from_recurring",
]
