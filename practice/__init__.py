# Practice OS - Core Library
"""
Recurring work and capacity planning for an accounting practice.

Subpackages:
- practice.recurrence: pattern validation and next-occurrence date math
- practice.demand: skill-hours demand forecasting
- practice.tasks: recurring tasks, generated instances, bulk copy
- practice.observability: logging setup and batch run correlation
"""

__version__ = "0.1.0"
