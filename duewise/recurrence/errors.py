"""Error kinds raised by the schedule engine.

All of these are caller-recoverable value errors; none is process-fatal.
"""

from typing import Optional


class ScheduleEngineError(ValueError):
    """Base class for engine errors that can be surfaced to a caller as a 4xx."""


class InvalidRange(ScheduleEngineError):
    """A generation range was missing a bound or inverted."""


class DuplicatePeriod(ScheduleEngineError):
    """A configuration produced the same period key twice in one generation run."""

    def __init__(self, period_key: str):
        super().__init__(f"Duplicate period key generated: {period_key}")
        self.period_key = period_key


class PeriodNotFound(ScheduleEngineError):
    """A status update referenced a period absent from the store."""

    def __init__(self, period: str):
        super().__init__(f"Period not found: {period}")
        self.period = period


class InvalidFrequencyConfig(ScheduleEngineError):
    """Frequency configuration failed validation.

    `field` names the offending configuration field (when known) so API callers
    can render a field-level message; `reason` is the message without the field.
    """

    def __init__(self, message: str, *, field: Optional[str] = None, reason: Optional[str] = None):
        super().__init__(message)
        self.field = field
        self.reason = reason or message


class SweepAbortedError(RuntimeError):
    """A systemic failure (e.g. storage unavailable) stopped a reconciliation cycle."""
