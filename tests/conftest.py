"""Pytest configuration and shared fixtures."""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from spotwatch_app.config.defaults import get_default_config
from spotwatch_app.feed.memory import ScriptedFeed
from spotwatch_app.state.models import ReferenceClose

ET = ZoneInfo("America/New_York")


def et(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    """Aware datetime at an America/New_York wall time."""
    return datetime(year, month, day, hour, minute, tzinfo=ET)


def ref(horizon_days: int, price: float, source_date: date) -> ReferenceClose:
    return ReferenceClose(horizon_days=horizon_days, price=price, source_date=source_date)


class SimClock:
    """Settable clock injected wherever the engine reads wall time."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class ManualTimer:
    """Timer stand-in that only fires when a test tells it to."""

    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.started = False
        self.cancelled = False
        self.daemon = False
        self.fired = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        assert self.started and not self.cancelled, "timer is not armed"
        self.function()


class ManualTimerFactory:
    """Records every timer created so tests can inspect and fire them."""

    def __init__(self):
        self.timers: list[ManualTimer] = []

    def __call__(self, interval, function) -> ManualTimer:
        timer = ManualTimer(interval, function)
        self.timers.append(timer)
        return timer

    def pending(self) -> list[ManualTimer]:
        return [t for t in self.timers if t.started and not t.cancelled and not t.fired]

    def fire_next(self, owner=None) -> ManualTimer:
        """Fire the oldest pending timer (optionally bound to ``owner``)."""
        for timer in self.pending():
            if owner is None or getattr(timer.function, "__self__", None) is owner:
                timer.fired = True
                timer.function()
                return timer
        raise AssertionError("no pending timer")


@pytest.fixture
def default_config():
    """Built-in defaults (America/New_York, Sun 18:00 to Fri 17:00)."""
    return get_default_config()


@pytest.fixture
def timer_factory() -> ManualTimerFactory:
    return ManualTimerFactory()


@pytest.fixture
def wednesday_noon() -> datetime:
    """A plain mid-week trading instant: Wed 2024-03-20 12:00 EDT."""
    return et(2024, 3, 20, 12, 0)


@pytest.fixture
def sim_clock(wednesday_noon) -> SimClock:
    return SimClock(wednesday_noon)


@pytest.fixture
def sample_closes() -> dict[date, float]:
    """Historical closes around 2024-03-20 with weekend gaps."""
    return {
        date(2024, 3, 19): 24.50,
        date(2024, 3, 18): 24.20,
        date(2024, 3, 15): 24.00,
        date(2024, 3, 14): 23.90,
        date(2024, 2, 19): 22.80,
        # 2023-03-21 (365 days back) present
        date(2023, 3, 21): 20.10,
    }


@pytest.fixture
def scripted_feed(sample_closes, sim_clock) -> ScriptedFeed:
    return ScriptedFeed(closes=sample_closes, clock=sim_clock)
