"""
Domain time utilities (pure).

Centralized timestamp helpers.

Behavior and error messages must remain consistent across the domain model.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Enforces that timestamps are UTC.

    Invariants:
    - Timestamps must be timezone-aware.
    - Timestamps must have UTC offset 0.
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _whole_seconds(value: float) -> int:
    # NaN and infinities cannot be converted to int
    try:
        return int(value)
    except (ValueError, OverflowError):
        return 0


def to_epoch_seconds(value: Any) -> int:
    """
    Convert a stored sale timestamp into whole epoch seconds.

    Stores hand timestamps back in several shapes:
    - timestamp maps (`{"_seconds": n}` or `{"seconds": n}`)
    - datetime objects (naive values are read as UTC)
    - ISO-8601 strings, sometimes with a trailing 'Z'
    - plain numbers

    Anything missing or unreadable counts as epoch 0.
    """

    if value is None or isinstance(value, bool):
        return 0

    if isinstance(value, dict):
        seconds = value.get("_seconds", value.get("seconds"))
        return to_epoch_seconds(seconds) if seconds is not None else 0

    if isinstance(value, datetime):
        if value.tzinfo is None or value.utcoffset() is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp())

    if isinstance(value, (int, float)):
        return _whole_seconds(value)

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            return _whole_seconds(float(text))
        except ValueError:
            pass
        try:
            return to_epoch_seconds(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError:
            return 0

    # Client timestamp objects (e.g. DatetimeWithNanoseconds, proto Timestamps)
    seconds = getattr(value, "seconds", None)
    if isinstance(seconds, (int, float)):
        return _whole_seconds(seconds)
    return 0
