"""
Weekly trading calendar in the exchange timezone.

The calendar is the authoritative negative signal for the status engine:
outside the scheduled window the market is closed regardless of what the
feed reports. Everything here is pure and recomputed on every tick.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional

from ..config.defaults import ScheduleParams
from ..state.models import BreakWindow, MarketStatus, TradingWindow
from ..utils.time import get_exchange_zone, local_instant, to_exchange_time


def _window_span_days(params: ScheduleParams) -> int:
    span = (params.close_weekday - params.open_weekday) % 7
    if span == 0 and (params.close_hour, params.close_minute) <= (params.open_hour, params.open_minute):
        span = 7
    return span


def _build_window(open_date: date, params: ScheduleParams) -> TradingWindow:
    zone = get_exchange_zone(params.timezone)
    span = _window_span_days(params)
    close_date = open_date + timedelta(days=span)

    opens_at = local_instant(open_date, params.open_hour, params.open_minute, zone)
    closes_at = local_instant(close_date, params.close_hour, params.close_minute, zone)

    breaks = []
    for offset in range(1, span):
        day = open_date + timedelta(days=offset)
        start = local_instant(day, params.break_start_hour, params.break_start_minute, zone)
        end = local_instant(day, params.break_end_hour, params.break_end_minute, zone)
        # Breaks must sit strictly inside the open window
        if opens_at < start and end < closes_at:
            breaks.append(BreakWindow(start=start, end=end))

    return TradingWindow(opens_at=opens_at, closes_at=closes_at, breaks=tuple(breaks))


def compute_trading_window(now: datetime, params: ScheduleParams) -> TradingWindow:
    """
    Compute this week's trading window for ``now``.

    The window opens on the most recent ``open_weekday`` (today included) at
    the configured local time and closes ``close_weekday`` at the configured
    local time. If ``now`` precedes this week's open while last week's window
    is still running, last week's window is returned instead.

    Args:
        now: Instant to evaluate (naive values are treated as UTC)
        params: Weekly schedule

    Returns:
        TradingWindow with exchange-local aware datetimes
    """
    zone = get_exchange_zone(params.timezone)
    local_now = to_exchange_time(now, zone)

    days_since_open = (local_now.weekday() - params.open_weekday) % 7
    window = _build_window(local_now.date() - timedelta(days=days_since_open), params)

    if local_now.astimezone(timezone.utc) < window.opens_at.astimezone(timezone.utc):
        previous = _build_window(window.opens_at.date() - timedelta(days=7), params)
        if previous.is_open_at(local_now):
            return previous

    return window


def scheduled_status(now: datetime, window: TradingWindow) -> MarketStatus:
    """Scheduled status only; freeze detection is layered on top by the state machine."""
    if not window.is_open_at(now):
        return MarketStatus.CLOSED
    if window.break_at(now) is not None:
        return MarketStatus.BREAK
    return MarketStatus.OPEN


def scheduled_status_at(now: datetime, params: ScheduleParams,
                        window: Optional[TradingWindow] = None) -> MarketStatus:
    """Convenience wrapper computing the window when not supplied."""
    if window is None:
        window = compute_trading_window(now, params)
    return scheduled_status(now, window)
