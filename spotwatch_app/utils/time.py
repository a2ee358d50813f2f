"""
Time helpers for wall-clock and exchange-local time handling.

Offsets are always resolved through ``zoneinfo`` for the instant being
converted, so daylight-saving transitions are handled per date rather than
with an offset computed once at startup.
"""

from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..errors import ConfigurationError


@lru_cache(maxsize=16)
def get_exchange_zone(name: str) -> ZoneInfo:
    """
    Resolve an IANA timezone name.

    Raises:
        ConfigurationError: if the name is unknown to the tz database
    """
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(
            f"Unknown exchange timezone: {name!r}",
            context={"timezone": name}
        ) from e


def utc_now() -> datetime:
    """Current wall-clock time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_aware(instant: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant


def to_exchange_time(instant: datetime, zone: ZoneInfo) -> datetime:
    """Convert an instant to exchange-local wall time."""
    return ensure_aware(instant).astimezone(zone)


def exchange_today(zone: ZoneInfo, now: Optional[datetime] = None) -> date:
    """Exchange-local calendar date for ``now`` (defaults to wall clock)."""
    if now is None:
        now = utc_now()
    return to_exchange_time(now, zone).date()


def local_instant(day: date, hour: int, minute: int, zone: ZoneInfo) -> datetime:
    """Aware datetime for a local wall time on a given exchange date."""
    return datetime.combine(day, time(hour, minute), tzinfo=zone)


def next_local_occurrence(
    now: datetime,
    hour: int,
    minute: int,
    zone: ZoneInfo
) -> datetime:
    """
    Next instant strictly after ``now`` whose exchange-local wall time is
    ``hour:minute``.

    Args:
        now: Reference instant
        hour: Local hour of day
        minute: Local minute
        zone: Exchange timezone

    Returns:
        Aware datetime in the exchange timezone
    """
    local_now = to_exchange_time(now, zone)
    candidate = local_instant(local_now.date(), hour, minute, zone)
    if candidate.astimezone(timezone.utc) <= local_now.astimezone(timezone.utc):
        candidate = local_instant(local_now.date() + timedelta(days=1), hour, minute, zone)
    return candidate


def format_market_time(instant: datetime) -> str:
    """ISO8601 representation used in logs and snapshots."""
    return ensure_aware(instant).isoformat()
