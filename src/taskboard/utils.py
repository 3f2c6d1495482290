"""Provide utility helpers for timestamps and due dates."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any, Optional


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        if not isinstance(value, str):
            value = str(value)
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        dt = datetime.fromisoformat(value)
        # If a naive timestamp slips in, assume UTC to avoid crashes.
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    except ValueError:
        return None


def _coerce_datetime(value: Any) -> Optional[datetime]:
    """Turn a date, datetime or ISO string into a naive UTC datetime.

    A bare date becomes midnight of that day. Aware values are converted to
    UTC before the tzinfo is dropped. Returns None for empty or unparseable
    input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        return datetime.combine(value, time.min)
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _normalize_due(value: Any) -> Optional[str]:
    """Normalize a due date to the stored ``YYYY-MM-DDTHH:MM:SS`` form."""
    dt = _coerce_datetime(value)
    if dt is None:
        return None
    return dt.replace(microsecond=0).isoformat()


def _coerce_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None
