"""
Batch run context for log correlation.
"""

import contextvars
import uuid
from typing import Optional

_run_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("run_id", default=None)


def get_run_id() -> Optional[str]:
    """Get the current batch run ID from context."""
    return _run_id_var.get()


def generate_run_id(prefix: str = "run") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class RunContext:
    """
    Scope a batch operation (generation pass, bulk copy) under one run ID.

    Usage:
        with RunContext(prefix="gen") as run:
            logger.info("Generating")   # record carries run.run_id
    """

    def __init__(self, run_id: Optional[str] = None, prefix: str = "run"):
        self.run_id = run_id or generate_run_id(prefix)
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> "RunContext":
        self._token = _run_id_var.set(self.run_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _run_id_var.reset(self._token)
            self._token = None
