"""
Centralized configuration for Practice OS.

Deployment-specific values live here. Environment variables override the
defaults; config/practice.yaml overrides both for the values it names.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from practice import paths

logger = logging.getLogger(__name__)

# ============================================================
# Task generation
# ============================================================

DEFAULT_LEAD_TIME_DAYS: int = int(os.environ.get("PRACTICE_OS_LEAD_TIME_DAYS", "14"))
"""Days before an occurrence's due date that its instance is generated."""

# ============================================================
# Demand forecasting
# ============================================================

SKILL_CACHE_TTL_SECONDS: int = int(os.environ.get("PRACTICE_OS_SKILL_CACHE_TTL", "300"))
"""Lifetime of resolved skill-id -> skill-name mappings."""

# ============================================================
# Recurrence policies
# ============================================================

DAY_OVERFLOW_CHOICES = ("clamp", "roll")
ANNUAL_ROLLOVER_CHOICES = ("calendar", "legacy")

DAY_OVERFLOW: str = os.environ.get("PRACTICE_OS_DAY_OVERFLOW", "clamp")
"""clamp: day 31 in April becomes April 30. roll: it becomes May 1."""

ANNUAL_ROLLOVER: str = os.environ.get("PRACTICE_OS_ANNUAL_ROLLOVER", "calendar")
"""calendar: compare month/day against the reference date. legacy: month index only."""

# ============================================================
# Logging
# ============================================================

LOG_LEVEL: str = os.environ.get("PRACTICE_OS_LOG_LEVEL", "INFO")


@dataclass
class Settings:
    """Resolved runtime settings."""

    lead_time_days: int = DEFAULT_LEAD_TIME_DAYS
    skill_cache_ttl_seconds: int = SKILL_CACHE_TTL_SECONDS
    day_overflow: str = DAY_OVERFLOW
    annual_rollover: str = ANNUAL_ROLLOVER
    log_level: str = LOG_LEVEL
    source: str | None = None
    extra: dict = field(default_factory=dict)


def _load_yaml(config_path: Path) -> dict:
    """Load YAML config, return empty dict on failure."""
    if not config_path.exists():
        logger.warning("Practice config not found at %s, using defaults", config_path)
        return {}
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError) as exc:
        logger.error("Failed to load practice config %s: %s", config_path, exc)
        return {}
    if not isinstance(data, dict):
        logger.error("Practice config %s is not a mapping, ignoring it", config_path)
        return {}
    return data


def _choice(section: dict, key: str, choices: tuple[str, ...], default: str) -> str:
    value = str(section.get(key, default))
    if value not in choices:
        logger.error("Invalid %s %r in practice config, expected one of %s; using %r", key, value, choices, default)
        return default
    return value


def load_settings(config_path: Path | None = None) -> Settings:
    """Build Settings from defaults, environment and the YAML file."""
    if config_path is None:
        config_path = paths.config_path()

    data = _load_yaml(config_path)
    generation = data.get("generation", {}) or {}
    demand = data.get("demand", {}) or {}
    recurrence = data.get("recurrence", {}) or {}
    logging_cfg = data.get("logging", {}) or {}

    known = {"generation", "demand", "recurrence", "logging"}
    return Settings(
        lead_time_days=int(generation.get("lead_time_days", DEFAULT_LEAD_TIME_DAYS)),
        skill_cache_ttl_seconds=int(demand.get("skill_cache_ttl_seconds", SKILL_CACHE_TTL_SECONDS)),
        day_overflow=_choice(recurrence, "day_overflow", DAY_OVERFLOW_CHOICES, DAY_OVERFLOW),
        annual_rollover=_choice(recurrence, "annual_rollover", ANNUAL_ROLLOVER_CHOICES, ANNUAL_ROLLOVER),
        log_level=str(logging_cfg.get("level", LOG_LEVEL)),
        source=str(config_path) if data else None,
        extra={k: v for k, v in data.items() if k not in known},
    )
