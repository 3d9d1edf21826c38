"""Duration strings, watch ids and human-readable time formatting.

Durations use the compact notation accepted everywhere a TTL or polling
interval is configured: ``"500ms"``, ``"30s"``, ``"5m"``, ``"1.5h"``,
``"7d"``, ``"2w"``. A bare number is read as milliseconds.
"""

import re
import uuid
from datetime import UTC, datetime, timedelta

_DURATION_PATTERN = re.compile(
    r"^(?P<value>-?(?:\d+)?\.?\d+) *(?P<unit>"
    r"milliseconds?|msecs?|ms|"
    r"seconds?|secs?|s|"
    r"minutes?|mins?|m|"
    r"hours?|hrs?|h|"
    r"days?|d|"
    r"weeks?|w|"
    r"years?|yrs?|y"
    r")?$",
    re.IGNORECASE,
)

_UNIT_SECONDS = {
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
    "y": 31557600,  # 365.25 days
}


class InvalidDurationError(ValueError):
    """Raised when a duration string cannot be parsed."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid duration: {value!r}")


def _normalize_unit(unit: str | None) -> str:
    if not unit:
        return "ms"
    unit = unit.lower()
    if unit.startswith(("ms", "milli")):
        return "ms"
    if unit.startswith("min"):
        return "m"
    return unit[0]


def parse_duration(value: str) -> timedelta:
    """Parse a duration string into a timedelta.

    Raises:
        InvalidDurationError: If the string is empty, malformed, too long or
            out of range.
    """
    if not isinstance(value, str) or not value.strip() or len(value) > 100:
        raise InvalidDurationError(str(value))

    match = _DURATION_PATTERN.match(value.strip())
    if match is None:
        raise InvalidDurationError(value)

    unit = _normalize_unit(match.group("unit"))
    if unit not in _UNIT_SECONDS:
        raise InvalidDurationError(value)

    seconds = float(match.group("value")) * _UNIT_SECONDS[unit]
    try:
        return timedelta(seconds=seconds)
    except OverflowError:
        raise InvalidDurationError(value) from None


def generate_watch_id() -> str:
    """Generate a unique watch ID (``w_`` + 8 hex chars)."""
    return f"w_{uuid.uuid4().hex[:8]}"


def format_delay(seconds: float) -> str:
    """Format delay in human-readable form."""
    minutes = seconds / 60
    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"~{int(minutes)} minutes"
    hours = minutes / 60
    if hours < 24:
        return f"~{hours:.1f} hours"
    days = hours / 24
    return f"~{days:.1f} days"


def format_countdown(target: datetime | None, now: datetime | None = None) -> str:
    """Format a countdown string until ``target`` (e.g. ``in 3h 20m``)."""
    if target is None:
        return "?"

    now = now or datetime.now(UTC)
    if target <= now:
        return "now"

    total_seconds = int((target - now).total_seconds())
    if total_seconds < 60:
        return f"in {total_seconds}s"

    total_minutes = total_seconds // 60
    if total_minutes < 60:
        return f"in {total_minutes}m"

    hours = total_minutes // 60
    minutes = total_minutes % 60
    if hours < 24:
        if minutes:
            return f"in {hours}h {minutes}m"
        return f"in {hours}h"

    days = hours // 24
    hours = hours % 24
    if hours:
        return f"in {days}d {hours}h"
    return f"in {days}d"
