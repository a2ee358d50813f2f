"""
Market status state machine.

Two-tier decision per tick:

1. The trading calendar decides CLOSED unconditionally. Heuristics never
   override a scheduled closure, and a closure clears all freeze state.
2. While the calendar says OPEN (or BREAK, unless break suspension is
   enabled), a confirmation heuristic watches for a stalled feed: the second
   identical reading in a row switches polling to the fast-confirm cadence,
   and ``confirmation_threshold`` further identical readings declare FROZEN
   and restore the default cadence. Any price change ends a freeze at once.

The machine is the sole writer of status, polling policy, readings, counters
and deltas on the shared record, and all of those writes happen inside
``tick``.
"""

from datetime import datetime
from typing import Optional

from ..config.defaults import PollingParams, ScheduleParams
from ..logging.config import get_state_logger, log_state_transition
from ..market.calendar import scheduled_status_at
from ..metrics.deltas import DeltaCalculator
from .models import MarketStatus, PollingPolicy, SpotReading, TickOutcome
from .runtime import MarketStateRecord

state_logger = get_state_logger(__name__)


def prices_equal(a: float, b: float, epsilon: float) -> bool:
    """Equality within the feed's serialisation noise."""
    return abs(a - b) <= epsilon


def initial_policy(params: PollingParams) -> PollingPolicy:
    return PollingPolicy(
        interval_seconds=params.default_interval_seconds,
        default_interval_seconds=params.default_interval_seconds,
        confirmation_threshold=params.confirmation_threshold,
    )


class MarketStatusMachine:
    """Freeze/status state machine for a single instrument."""

    def __init__(
        self,
        record: MarketStateRecord,
        schedule: ScheduleParams,
        polling: PollingParams,
        delta_calculator: Optional[DeltaCalculator] = None
    ):
        self.record = record
        self.schedule = schedule
        self.polling = polling
        self.delta_calculator = delta_calculator or DeltaCalculator()
        self.logger = state_logger

    def tick(self, reading: SpotReading, now: Optional[datetime] = None) -> TickOutcome:
        """
        Apply one successful spot observation.

        Args:
            reading: New spot reading
            now: Evaluation instant, defaults to the reading's observation time

        Returns:
            TickOutcome describing the decision
        """
        if now is None:
            now = reading.observed_at

        record = self.record
        previous_status = record.status
        previous_interval = record.policy.interval_seconds

        scheduled = scheduled_status_at(now, self.schedule)

        if scheduled == MarketStatus.CLOSED:
            new_status, trigger = self._suspend(MarketStatus.CLOSED), "scheduled_close"
        elif scheduled == MarketStatus.BREAK and self.polling.suspend_detection_during_break:
            new_status, trigger = self._suspend(MarketStatus.BREAK), "scheduled_break"
        else:
            new_status, trigger = self._observe(reading, scheduled)

        record.status = new_status
        record.previous = record.latest
        record.latest = reading
        record.updated_at = now

        self._update_deltas(reading)

        outcome = TickOutcome(
            status=new_status,
            scheduled_status=scheduled,
            previous_status=previous_status,
            interval_seconds=record.policy.interval_seconds,
            interval_changed=record.policy.interval_seconds != previous_interval,
            same_count=record.same_count,
            confirm_count=record.confirm_count,
            notes=(trigger,),
        )

        if outcome.status_changed:
            log_state_transition(
                self.logger,
                instrument=record.instrument,
                from_state=previous_status.value if previous_status else "none",
                to_state=new_status.value,
                trigger=trigger,
                context={
                    "price": reading.price,
                    "scheduled_status": scheduled.value,
                    "same_count": record.same_count,
                    "confirm_count": record.confirm_count,
                    "timestamp": now.isoformat(),
                }
            )

        return outcome

    def observe_failure(self, error: Exception, now: Optional[datetime] = None) -> None:
        """A failed fetch is no observation: counters, status and readings are untouched."""
        self.logger.warning(
            "Spot fetch failed, holding previous state",
            instrument=self.record.instrument,
            status=self.record.status.value if self.record.status else None,
            error=str(error),
            error_type=type(error).__name__,
            timestamp=now.isoformat() if now else None
        )

    def _suspend(self, status: MarketStatus) -> MarketStatus:
        """Scheduled non-trading period: clear freeze detection and restore cadence."""
        self.record.reset_counters()
        self._restore_default_cadence()
        return status

    def _observe(self, reading: SpotReading, scheduled: MarketStatus) -> tuple[MarketStatus, str]:
        record = self.record
        last = record.latest

        if last is None:
            record.reset_counters()
            return scheduled, "first_reading"

        if not prices_equal(reading.price, last.price, self.polling.price_epsilon):
            was_frozen = record.status == MarketStatus.FROZEN
            record.reset_counters()
            self._restore_default_cadence()
            return scheduled, "price_change" if was_frozen else "scheduled"

        record.same_count += 1

        if record.status == MarketStatus.FROZEN:
            return MarketStatus.FROZEN, "still_frozen"

        if not record.fast_confirm:
            # same_count excludes the first reading of the run
            if record.same_count + 1 >= self.polling.identical_readings_before_confirm:
                record.fast_confirm = True
                record.policy = record.policy.with_interval(self.polling.confirm_interval_seconds)
                self.logger.info(
                    "Repeated spot reading, switching to fast-confirm cadence",
                    instrument=record.instrument,
                    price=reading.price,
                    same_count=record.same_count,
                    interval_seconds=record.policy.interval_seconds
                )
            return scheduled, "awaiting_confirmation"

        record.confirm_count += 1
        if record.confirm_count >= self.polling.confirmation_threshold:
            record.fast_confirm = False
            self._restore_default_cadence()
            return MarketStatus.FROZEN, "freeze_confirmed"

        self.logger.debug(
            "Freeze confirmation pending",
            instrument=record.instrument,
            confirm_count=record.confirm_count,
            threshold=self.polling.confirmation_threshold
        )
        return scheduled, "awaiting_confirmation"

    def _restore_default_cadence(self) -> None:
        if not self.record.policy.is_default:
            self.record.policy = self.record.policy.reset()

    def _update_deltas(self, reading: SpotReading) -> None:
        record = self.record
        record.session_reference = self.delta_calculator.select_session_reference(
            record.status, record.references, record.session_reference
        )
        record.deltas = self.delta_calculator.compute(
            reading.price, record.session_reference, record.references, record.deltas
        )
