"""
Runtime record and status publisher.

The engine owns a single ``MarketStateRecord``. The state machine is the sole
writer of status, polling policy, readings, counters and deltas; the daily
reference refresh is the sole writer of the reference closes and the median
signal. Everything else reads through ``StatusPublisher`` snapshots.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..utils.time import format_market_time
from .models import DeltaSet, MarketStatus, PollingPolicy, ReferenceClose, SpotReading


@dataclass
class MarketStateRecord:
    """Mutable engine state shared between the tick and refresh paths."""

    instrument: str
    policy: PollingPolicy
    units_per_token: float = 1.0

    # Written by the state machine
    status: Optional[MarketStatus] = None
    latest: Optional[SpotReading] = None
    previous: Optional[SpotReading] = None
    same_count: int = 0
    confirm_count: int = 0
    fast_confirm: bool = False
    deltas: DeltaSet = field(default_factory=DeltaSet)
    session_reference: Optional[ReferenceClose] = None
    updated_at: Optional[datetime] = None

    # Written by the reference refresh
    references: dict[int, ReferenceClose] = field(default_factory=dict)
    median_signal: Optional[float] = None
    references_refreshed_at: Optional[datetime] = None

    def reset_counters(self) -> None:
        self.same_count = 0
        self.confirm_count = 0
        self.fast_confirm = False


@dataclass(frozen=True)
class StatusSnapshot:
    """Read-only view of the engine state at one point in time."""

    instrument: str
    status: Optional[MarketStatus]
    spot: Optional[float]
    spot_per_unit: Optional[float]
    deltas: DeltaSet
    session_reference: Optional[float]
    median_signal: Optional[float]
    interval_seconds: float
    updated_at: Optional[datetime]
    ready: bool

    def to_dict(self) -> dict[str, Any]:
        """Plain dict for serialisation by the HTTP layer."""
        return {
            "instrument": self.instrument,
            "status": self.status.value if self.status else None,
            "spot": self.spot,
            "spot_per_unit": self.spot_per_unit,
            **self.deltas.to_dict(),
            "session_reference": self.session_reference,
            "median_signal": self.median_signal,
            "interval_seconds": self.interval_seconds,
            "updated_at": format_market_time(self.updated_at) if self.updated_at else None,
            "ready": self.ready,
        }


def _round(value: Optional[float], digits: int) -> Optional[float]:
    return round(value, digits) if value is not None else None


class StatusPublisher:
    """Read-only access to the engine record for downstream consumers."""

    def __init__(self, record: MarketStateRecord):
        self._record = record

    @property
    def ready(self) -> bool:
        """True once a spot reading and a reference refresh have both landed."""
        return (self._record.latest is not None
                and self._record.references_refreshed_at is not None)

    def get_status(self) -> Optional[MarketStatus]:
        """Current status, or None until the first spot reading has been applied.

        Consumers that see None have no observation yet and should treat the
        market as unknown rather than as CLOSED.
        """
        return self._record.status

    def get_delta_set(self) -> DeltaSet:
        return self._record.deltas

    def get_session_reference(self) -> Optional[float]:
        """Reference price behind the session delta, or None when unresolved."""
        reference = self._record.session_reference
        return reference.price if reference is not None else None

    def get_polling_policy(self) -> PollingPolicy:
        return self._record.policy

    def snapshot(self) -> StatusSnapshot:
        record = self._record
        spot = record.latest.price if record.latest else None
        return StatusSnapshot(
            instrument=record.instrument,
            status=record.status,
            spot=_round(spot, 2),
            spot_per_unit=_round(spot * record.units_per_token, 2) if spot is not None else None,
            deltas=record.deltas,
            session_reference=self.get_session_reference(),
            median_signal=_round(record.median_signal, 2),
            interval_seconds=record.policy.interval_seconds,
            updated_at=record.updated_at,
            ready=self.ready,
        )
