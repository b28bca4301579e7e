"""UTC datetime utilities.

All timestamps are stored as ISO-8601 strings in UTC.
"""

from datetime import datetime, timezone

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def utc_now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def epoch_millis(moment: datetime | None = None) -> int:
    """Return milliseconds since the Unix epoch for moment (default: now)."""
    if moment is None:
        moment = datetime.now(timezone.utc)
    return int(moment.timestamp() * 1000)


def to_base36(value: int) -> str:
    """Encode a non-negative integer in lowercase base 36.

    Raises:
        ValueError: If value is negative.
    """
    if value < 0:
        raise ValueError(f"value must be non-negative, got {value}")
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))
