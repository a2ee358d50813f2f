"""
Delta calculator.

Computes ``spot - reference`` and ``100 * delta / reference`` per horizon.
A horizon whose reference is unresolved keeps its previous value rather than
being reset, so a transient failure never blanks a published delta.
"""

from dataclasses import replace
from typing import Mapping, Optional

from ..logging.config import get_logger
from ..state.models import DeltaSet, HorizonDelta, MarketStatus, ReferenceClose

logger = get_logger(__name__)


def horizon_delta(spot: float, reference: float) -> HorizonDelta:
    """Absolute delta rounded to 2 dp and percentage delta rounded to 1 dp."""
    delta = spot - reference
    return HorizonDelta(
        delta=round(delta, 2),
        delta_pct=round(100.0 * delta / reference, 1),
        reference=reference,
    )


class DeltaCalculator:
    """Session-aware delta calculator."""

    def __init__(self, session_horizon: int = 1, month_horizon: int = 30, year_horizon: int = 365):
        self.session_horizon = session_horizon
        self.month_horizon = month_horizon
        self.year_horizon = year_horizon
        self.logger = logger

    def select_session_reference(
        self,
        status: Optional[MarketStatus],
        references: Mapping[int, ReferenceClose],
        pinned: Optional[ReferenceClose]
    ) -> Optional[ReferenceClose]:
        """
        Reference for the session delta.

        While OPEN the reference tracks the latest resolved session close.
        Otherwise it stays pinned to the last reference used before the
        market stopped trading, falling back to the latest resolved close
        only when nothing has been pinned yet.
        """
        latest = references.get(self.session_horizon)
        if status == MarketStatus.OPEN:
            return latest if latest is not None else pinned
        return pinned if pinned is not None else latest

    def compute(
        self,
        spot: Optional[float],
        session_reference: Optional[ReferenceClose],
        references: Mapping[int, ReferenceClose],
        previous: DeltaSet
    ) -> DeltaSet:
        """
        Recompute the delta set for the current spot.

        Args:
            spot: Latest spot price
            session_reference: Reference chosen for the session delta
            references: Resolved reference closes keyed by horizon
            previous: Delta set published on the previous tick

        Returns:
            New DeltaSet; horizons without a reference keep their previous value
        """
        if spot is None:
            self.logger.debug("Delta skipped: missing spot")
            return previous

        result = previous
        inputs = (
            ("session", session_reference),
            ("month", references.get(self.month_horizon)),
            ("year", references.get(self.year_horizon)),
        )
        for name, reference in inputs:
            if reference is None:
                self.logger.debug("Delta skipped: unresolved reference", horizon=name)
                continue
            result = replace(result, **{name: horizon_delta(spot, reference.price)})

        return result
