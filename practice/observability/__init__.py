"""
Observability: log formatting and batch run correlation.

Usage:
    from practice.observability import configure_logging, RunContext

    configure_logging("INFO")
    with RunContext(prefix="gen"):
        ...
"""

from .context import RunContext, generate_run_id, get_run_id
from .logging import HumanFormatter, JSONFormatter, RunIdFilter, configure_logging

__all__ = [
    "RunContext",
    "generate_run_id",
    "get_run_id",
    "HumanFormatter",
    "JSONFormatter",
    "RunIdFilter",
    "configure_logging",
]
