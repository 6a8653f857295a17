from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_naive() -> datetime:
    """Naive UTC timestamp, the form stored in DateTime columns."""
    return utc_now().replace(tzinfo=None)


def local_midnight_utc(tz_name: str, now: datetime | None = None) -> datetime:
    """Start of the current day in `tz_name`, returned as naive UTC.

    `now` may be passed (aware or naive UTC) to pin the clock in tests.
    """
    tz = ZoneInfo(tz_name)
    if now is None:
        now = utc_now()
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local_now = now.astimezone(tz)
    midnight = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(timezone.utc).replace(tzinfo=None)


def to_local_iso(dt: datetime | None, tz_name: str) -> str | None:
    if not dt:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(ZoneInfo(tz_name)).isoformat()
