# Overview: UTC timestamp helpers for storage and snapshot documents.

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional


def utcnow() -> datetime:
    """Current time as a naive UTC datetime, the form every column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def coerce_datetime(value: Any) -> Optional[datetime]:
    """
    Read a snapshot timestamp into a naive UTC datetime.

    Accepts datetimes and ISO-8601 strings, with or without an offset or a
    trailing Z; offset-less values are taken as UTC. Blank or unparseable
    input gives None.
    """
    if value is None or value == "":
        return None
    if not isinstance(value, datetime):
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Whole-second ISO-8601 with a trailing Z; naive input counts as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.replace(microsecond=0).isoformat() + "Z"
