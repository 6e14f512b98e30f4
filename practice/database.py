"""
Practice OS - Database Module

SQLite connection, schema, transactions and identifier-checked SQL helpers.
Values always travel as ? parameters; table and column names are checked
against _SAFE_IDENTIFIER_RE before they are interpolated.
"""

# ruff: noqa: S608

import logging
import re
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from practice import paths

logger = logging.getLogger(__name__)

_SAFE_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

SCHEMA = """
CREATE TABLE IF NOT EXISTS clients (
    id TEXT PRIMARY KEY,
    legal_name TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'Active',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS staff (
    id TEXT PRIMARY KEY,
    full_name TEXT NOT NULL,
    skills TEXT,
    status TEXT NOT NULL DEFAULT 'active',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS skills (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS recurring_tasks (
    id TEXT PRIMARY KEY,
    template_id TEXT NOT NULL,
    client_id TEXT NOT NULL,
    name TEXT NOT NULL,
    description TEXT,
    estimated_hours REAL NOT NULL CHECK (estimated_hours > 0),
    required_skills TEXT,
    priority TEXT,
    category TEXT,
    due_date TEXT,
    recurrence_type TEXT NOT NULL,
    recurrence_interval INTEGER,
    weekdays TEXT,
    day_of_month INTEGER,
    month_of_year INTEGER,
    custom_offset_days INTEGER,
    end_date TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    last_generated_date TEXT,
    preferred_staff_id TEXT,
    notes TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS task_instances (
    id TEXT PRIMARY KEY,
    template_id TEXT NOT NULL,
    client_id TEXT NOT NULL,
    recurring_task_id TEXT REFERENCES recurring_tasks(id),
    name TEXT NOT NULL,
    description TEXT,
    estimated_hours REAL NOT NULL,
    required_skills TEXT,
    priority TEXT,
    category TEXT,
    due_date TEXT,
    status TEXT NOT NULL DEFAULT 'Unscheduled',
    assigned_staff_id TEXT,
    scheduled_start_time TEXT,
    scheduled_end_time TEXT,
    completed_at TEXT,
    notes TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_recurring_client ON recurring_tasks(client_id);
CREATE INDEX IF NOT EXISTS idx_recurring_active ON recurring_tasks(is_active);
CREATE INDEX IF NOT EXISTS idx_instances_client ON task_instances(client_id);
CREATE INDEX IF NOT EXISTS idx_instances_status ON task_instances(status);
CREATE INDEX IF NOT EXISTS idx_instances_recurring ON task_instances(recurring_task_id);
"""


def validate_identifier(name: str) -> str:
    """Return *name* if it is a safe SQL identifier; raise ValueError otherwise."""
    if not _SAFE_IDENTIFIER_RE.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


class Database:
    """Database connection and query manager."""

    def __init__(self, db_path: str | Path | None = None):
        """
        Args:
            db_path: SQLite file, ":memory:", or None for paths.db_path()
        """
        self.db_path = str(db_path) if db_path is not None else str(paths.db_path())
        self._connection: sqlite3.Connection | None = None

        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

    def get_connection(self) -> sqlite3.Connection:
        """Shared connection, created on first use."""
        if self._connection is None:
            # FastAPI runs a request's dependencies and handler on pool threads
            self._connection = sqlite3.connect(self.db_path, timeout=30.0, check_same_thread=False)
            self._connection.row_factory = self._dict_factory
            self._connection.execute("PRAGMA foreign_keys = ON")
        return self._connection

    @staticmethod
    def _dict_factory(cursor: sqlite3.Cursor, row: tuple) -> dict[str, Any]:
        return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def init_schema(self) -> None:
        """Create tables and indexes. Safe to call repeatedly."""
        conn = self.get_connection()
        conn.executescript(SCHEMA)
        conn.commit()
        logger.info("Database schema ready at %s", self.db_path)

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Commit on success, roll back on exception.

        Usage:
            with db.transaction() as conn:
                conn.execute("INSERT INTO ...")
        """
        conn = self.get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    # =========================================================================
    # Query Helpers
    # =========================================================================

    def fetch_one(self, sql: str, params: tuple | list | None = None) -> dict[str, Any] | None:
        return self.get_connection().execute(sql, params or ()).fetchone()

    def fetch_all(self, sql: str, params: tuple | list | None = None) -> list[dict[str, Any]]:
        return self.get_connection().execute(sql, params or ()).fetchall()

    def insert(self, table: str, data: dict[str, Any]) -> None:
        validate_identifier(table)
        columns = [validate_identifier(c) for c in data]
        placeholders = ",".join("?" for _ in columns)
        sql = f"INSERT INTO {table} ({','.join(columns)}) VALUES ({placeholders})"
        with self.transaction() as conn:
            conn.execute(sql, list(data.values()))

    def update(self, table: str, row_id: str, data: dict[str, Any]) -> bool:
        """Update one row by id. Returns False when nothing matched."""
        if not data:
            return False
        validate_identifier(table)
        sets = ",".join(f"{validate_identifier(c)} = ?" for c in data)
        sql = f"UPDATE {table} SET {sets} WHERE id = ?"
        with self.transaction() as conn:
            cursor = conn.execute(sql, [*data.values(), row_id])
            return cursor.rowcount > 0

    def delete(self, table: str, row_id: str) -> bool:
        validate_identifier(table)
        with self.transaction() as conn:
            cursor = conn.execute(f"DELETE FROM {table} WHERE id = ?", [row_id])
            return cursor.rowcount > 0

    def get(self, table: str, row_id: str) -> dict[str, Any] | None:
        validate_identifier(table)
        return self.fetch_one(f"SELECT * FROM {table} WHERE id = ?", [row_id])

    def count(self, table: str, where: str | None = None, params: list | None = None) -> int:
        validate_identifier(table)
        sql = f"SELECT COUNT(*) AS c FROM {table}"
        if where:
            sql += f" WHERE {where}"
        row = self.fetch_one(sql, params)
        return row["c"] if row else 0
