"""
Exception hierarchy for Practice OS.

Validation errors are raised before any write happens. Computation errors in
the recurrence calculator never escape as exceptions; they come back as Err
results. Batch operations collect per-item failures instead of raising.
"""


class PracticeError(Exception):
    """Base class for all Practice OS errors."""

    pass


class ValidationError(PracticeError):
    """Input rejected before any side effect."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = list(errors or [message])


class PatternValidationError(ValidationError):
    """Recurrence pattern is missing a required field or has one out of range."""

    pass


class DateRangeError(ValidationError):
    """Range start falls after range end, or a lead time is negative."""

    pass


class NotFoundError(PracticeError):
    """Referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} with ID {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class TaskServiceError(PracticeError):
    """Storage-level failure while reading or writing tasks."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code
