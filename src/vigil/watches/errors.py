"""Errors returned to control-surface callers.

These are validation errors: they describe a bad request, not a system
fault, and callers are expected to report them back rather than log them.
"""

from vigil.durations import InvalidDurationError
from vigil.watches.types import WatchStatus


class WatchError(Exception):
    """Base class for watch control errors."""


class WatchValidationError(WatchError, ValueError):
    """Invalid input for a watch operation."""


class TriggerNotFoundError(WatchError):
    """The named trigger does not exist or is not executable."""

    def __init__(self, trigger: str):
        self.trigger = trigger
        super().__init__(
            f'Trigger "{trigger}" not found. '
            "Use list_triggers to see available triggers."
        )


class WatchNotFoundError(WatchError):
    """No watch exists with the given ID."""

    def __init__(self, watch_id: str):
        self.watch_id = watch_id
        super().__init__(f"Watch not found: {watch_id}")


class WatchNotActiveError(WatchError):
    """The watch is in a terminal state and cannot transition."""

    def __init__(self, watch_id: str, status: WatchStatus):
        self.watch_id = watch_id
        self.status = status
        super().__init__(
            f'Cannot cancel watch with status "{status.value}". '
            "Only active watches can be cancelled."
        )


__all__ = [
    "InvalidDurationError",
    "TriggerNotFoundError",
    "WatchError",
    "WatchNotActiveError",
    "WatchNotFoundError",
    "WatchValidationError",
]
