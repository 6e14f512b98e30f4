"""
Test configuration - repo root on sys.path + isolation from the live database.

Every test runs with PRACTICE_OS_HOME / PRACTICE_OS_DB pointed at a temp
directory, so nothing can read or write ~/.practice_os.
"""

import logging
import sys
from datetime import date
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import practice.*, api.*, cli.*
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from practice.database import Database  # noqa: E402
from practice.models import (  # noqa: E402
    MonthlyPattern,
    RecurringTask,
    TaskInstance,
    generate_id,
)

# =============================================================================
# ISOLATION GUARD: never touch the user's home database
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point every Practice OS path at a per-test temp directory."""
    home = tmp_path / "practice_home"
    monkeypatch.setenv("PRACTICE_OS_HOME", str(home))
    monkeypatch.setenv("PRACTICE_OS_DB", str(home / "data" / "practice_os.db"))
    return home


@pytest.fixture
def restore_root_logger():
    """Undo configure_logging() calls made by the code under test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture
def db(tmp_path):
    """Empty database with schema."""
    database = Database(tmp_path / "test.db")
    database.init_schema()
    yield database
    database.close()


def make_recurring_task(**overrides) -> RecurringTask:
    """RecurringTask with sensible defaults; override any field."""
    defaults = {
        "id": generate_id("rt"),
        "template_id": "tmpl-bookkeeping",
        "client_id": "client-a",
        "name": "Monthly bookkeeping",
        "estimated_hours": 4.0,
        "pattern": MonthlyPattern(interval=1, day_of_month=15),
        "required_skills": ("Bookkeeping",),
    }
    defaults.update(overrides)
    return RecurringTask(**defaults)


def make_task_instance(**overrides) -> TaskInstance:
    """Ad-hoc TaskInstance with sensible defaults; override any field."""
    defaults = {
        "id": generate_id("ti"),
        "template_id": "tmpl-advisory",
        "client_id": "client-a",
        "name": "Year-end advisory call",
        "estimated_hours": 1.5,
        "required_skills": ("Advisory",),
        "due_date": date(2025, 3, 1),
    }
    defaults.update(overrides)
    return TaskInstance(**defaults)


@pytest.fixture
def recurring_factory():
    return make_recurring_task


@pytest.fixture
def instance_factory():
    return make_task_instance
