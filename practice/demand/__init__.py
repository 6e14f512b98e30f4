"""
Demand forecasting: skill-hours per month from recurring work.

Objects:
- DemandAggregator (expands tasks, sums hours per skill / skill-month)
- DemandMatrix (skill x month table)
- SkillMappingCache (skill id -> name, explicit TTL)

Invariants:
- Multi-skill tasks add full hours to every skill
- One occurrence counts once, in its own month
"""

from .aggregator import (
    DemandAggregator,
    DemandMatrix,
    SkippedTask,
    calculate_monthly_demand_by_skill,
    months_between,
)
from .skill_cache import SkillCacheStats, SkillMappingCache

__all__ = [
    "DemandAggregator",
    "DemandMatrix",
    "SkippedTask",
    "calculate_monthly_demand_by_skill",
    "months_between",
    "SkillCacheStats",
    "SkillMappingCache",
]
