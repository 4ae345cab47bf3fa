"""Errors raised by the availability and booking engine.

Route handlers translate these into HTTP responses; the engine itself never
retries or recovers from them.
"""


class SchedulingError(Exception):
    """Base class for availability and booking failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(SchedulingError):
    """A professional, customer, appointment or service does not exist."""


class SchedulingValidationError(SchedulingError):
    """Input or stored configuration cannot be used to compute slots or book."""


class ConflictError(SchedulingError):
    """A proposed appointment overlaps one or more active appointments."""

    def __init__(self, conflicts: list[dict], message: str = 'The selected time is no longer available.'):
        super().__init__(message)
        self.conflicts = conflicts
