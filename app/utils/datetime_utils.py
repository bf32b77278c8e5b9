"""
Timezone-aware datetime helpers.
- Store and compute in UTC in DB.
- The attendance day and the late cutoff are evaluated in settings.APP_TIMEZONE.
- API responses expose datetimes in settings.APP_TIMEZONE with an explicit offset; never Z.
"""
from datetime import date, datetime, timezone
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo

from app.core.config import settings

UTC = timezone.utc


@lru_cache(maxsize=None)
def _zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def local_tz() -> ZoneInfo:
    """The configured local timezone."""
    return _zone(settings.APP_TIMEZONE)


def now_utc() -> datetime:
    """Current time in UTC (timezone-aware). Use for clock_in, check_in, approved_at, etc."""
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """If dt is naive, treat as UTC and return timezone-aware UTC. If already aware, convert to UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_local(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert to the local timezone. Naive datetimes are treated as UTC before converting."""
    if dt is None:
        return None
    return ensure_utc(dt).astimezone(local_tz())


def local_date(dt: Optional[datetime] = None) -> date:
    """Local calendar day for the given instant (default now); the attendance 'today'."""
    return to_local(dt or now_utc()).date()


def iso_local(dt: Optional[datetime]) -> Optional[str]:
    """Serialize as ISO-8601 in the local timezone with offset. Never returns Z."""
    if dt is None:
        return None
    return to_local(dt).isoformat()


def minutes_between(start: Optional[datetime], end: Optional[datetime]) -> Optional[int]:
    """Whole minutes from start to end, or None if either is missing."""
    if start is None or end is None:
        return None
    return int((ensure_utc(end) - ensure_utc(start)).total_seconds() // 60)
