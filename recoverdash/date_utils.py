"""Shared timestamp conversion helpers."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

# 9999-12-31T23:59:59Z, the last instant datetime can represent.
_MAX_EPOCH_MS = 253402300799000


def _format_datetime_utc(value: datetime) -> str:
    dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    text = dt.isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def coerce_epoch_ms(value: Any) -> int | None:
    """Return a positive epoch-millisecond integer, or None for unusable input.

    Manifests store timestamps as JSON numbers. Booleans, strings and zero are
    treated as missing. Negative (pre-1970) values are rejected as well: the
    editor never writes them, and `datetime.fromtimestamp` cannot convert them
    on every platform.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value != value:  # NaN
        return None
    try:
        millis = int(value)
    except (OverflowError, ValueError):
        return None
    if millis <= 0 or millis >= _MAX_EPOCH_MS:
        return None
    return millis


def epoch_ms_to_datetime(millis: int) -> datetime:
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def datetime_to_epoch_ms(value: datetime) -> int:
    dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return int(round(dt.timestamp() * 1000))


def to_iso(value: datetime | None) -> str:
    if value is None:
        return ""
    return _format_datetime_utc(value)
