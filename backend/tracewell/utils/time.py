from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union

__all__ = [
    "utc_now",
    "utc_iso",
    "parse_iso",
    "minutes_between",
]

def utc_now() -> datetime:
    """Timezone-aware UTC now."""
    return datetime.now(timezone.utc)

def utc_iso(dt: Optional[datetime] = None) -> str:
    """RFC3339 / ISO8601 with trailing Z."""
    dt = _as_utc(dt or utc_now())
    return dt.isoformat().replace("+00:00", "Z")

def parse_iso(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse an ISO string (or pass through a datetime) to an aware UTC datetime. None on failure."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    try:
        s = str(value).strip()
        # support both Z and +00:00
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        return _as_utc(datetime.fromisoformat(s))
    except ValueError:
        return None

def minutes_between(earlier: datetime, later: datetime) -> float:
    """Elapsed minutes from earlier to later. Naive datetimes are taken as UTC."""
    return (_as_utc(later) - _as_utc(earlier)).total_seconds() / 60.0

def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
