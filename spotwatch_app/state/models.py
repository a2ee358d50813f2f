"""
Market status data models.

Immutable data structures for spot readings, reference closes, trading
windows, polling policy and delta sets. The mutable engine record that holds
the latest of each lives in ``state.runtime``.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional


def _utc(instant: datetime) -> datetime:
    # Same-zone comparisons use wall time; compare in UTC to stay correct across DST folds
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


class MarketStatus(str, Enum):
    """Best-effort market status published to consumers."""
    OPEN = "open"
    BREAK = "break"
    CLOSED = "closed"
    FROZEN = "frozen"


@dataclass(frozen=True)
class BreakWindow:
    """A scheduled intraday break, as absolute instants."""
    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return _utc(self.start) <= _utc(instant) < _utc(self.end)


@dataclass(frozen=True)
class TradingWindow:
    """This week's scheduled open/close instants and intraday breaks."""
    opens_at: datetime
    closes_at: datetime
    breaks: tuple[BreakWindow, ...] = ()

    def is_open_at(self, instant: datetime) -> bool:
        return _utc(self.opens_at) <= _utc(instant) < _utc(self.closes_at)

    def break_at(self, instant: datetime) -> Optional[BreakWindow]:
        for window in self.breaks:
            if window.contains(instant):
                return window
        return None


@dataclass(frozen=True)
class SpotReading:
    """A single observation from the spot feed."""
    price: float
    observed_at: datetime


@dataclass(frozen=True)
class ReferenceClose:
    """A resolved historical close for a calendar horizon.

    ``source_date`` is the date the value actually came from and may be
    earlier than ``nominal_date`` when the fallback search stepped back over
    non-trading days.
    """
    horizon_days: int
    price: float
    source_date: date
    nominal_date: Optional[date] = None

    @property
    def fallback_days(self) -> int:
        if self.nominal_date is None:
            return 0
        return (self.nominal_date - self.source_date).days


@dataclass(frozen=True)
class PollingPolicy:
    """Cadence the poller uses to schedule its next tick."""
    interval_seconds: float
    default_interval_seconds: float
    confirmation_threshold: int = 5

    @property
    def is_default(self) -> bool:
        return self.interval_seconds == self.default_interval_seconds

    def with_interval(self, interval_seconds: float) -> 'PollingPolicy':
        return replace(self, interval_seconds=interval_seconds)

    def reset(self) -> 'PollingPolicy':
        return PollingPolicy(
            interval_seconds=self.default_interval_seconds,
            default_interval_seconds=self.default_interval_seconds,
            confirmation_threshold=self.confirmation_threshold,
        )


@dataclass(frozen=True)
class HorizonDelta:
    """Absolute and percentage change against one reference close."""
    delta: float
    delta_pct: float
    reference: float


@dataclass(frozen=True)
class DeltaSet:
    """Session, monthly and annual deltas.

    Missing horizons are ``None`` until their reference first resolves; a
    horizon whose reference later goes missing keeps its previous value.
    """
    session: Optional[HorizonDelta] = None
    month: Optional[HorizonDelta] = None
    year: Optional[HorizonDelta] = None

    @property
    def session_delta(self) -> Optional[float]:
        return self.session.delta if self.session else None

    @property
    def session_delta_pct(self) -> Optional[float]:
        return self.session.delta_pct if self.session else None

    @property
    def month_delta(self) -> Optional[float]:
        return self.month.delta if self.month else None

    @property
    def month_delta_pct(self) -> Optional[float]:
        return self.month.delta_pct if self.month else None

    @property
    def year_delta(self) -> Optional[float]:
        return self.year.delta if self.year else None

    @property
    def year_delta_pct(self) -> Optional[float]:
        return self.year.delta_pct if self.year else None

    def to_dict(self) -> dict:
        return {
            "session_delta": self.session_delta,
            "session_delta_pct": self.session_delta_pct,
            "month_delta": self.month_delta,
            "month_delta_pct": self.month_delta_pct,
            "year_delta": self.year_delta,
            "year_delta_pct": self.year_delta_pct,
        }


@dataclass(frozen=True)
class TickOutcome:
    """Result of feeding one spot reading into the state machine."""
    status: MarketStatus
    scheduled_status: MarketStatus
    previous_status: Optional[MarketStatus]
    interval_seconds: float
    interval_changed: bool = False
    same_count: int = 0
    confirm_count: int = 0
    notes: tuple[str, ...] = field(default_factory=tuple)

    @property
    def status_changed(self) -> bool:
        return self.previous_status != self.status
