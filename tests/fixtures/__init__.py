"""
Test fixtures for deterministic testing.

This module provides:
- create_fixture_db: temp SQLite database seeded with a pinned practice
"""

from .fixture_db import AD_HOC_TASKS, CLIENTS, RECURRING_TASKS, SKILLS, create_fixture_db

__all__ = ["AD_HOC_TASKS", "CLIENTS", "RECURRING_TASKS", "SKILLS", "create_fixture_db"]
