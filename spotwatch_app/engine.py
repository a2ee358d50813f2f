"""
Market status engine coordinator.

Wires the calendar, spot poller, state machine, reference resolvers and
delta calculator around a single owned state record, and exposes read-only
accessors for the HTTP and pricing collaborators.

Pipeline:
    Spot poller → State machine (calendar + freeze heuristic) → Deltas → Publisher
    Daily trigger → Reference resolver / trading series → Record references
"""

import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union

import structlog

from .config.defaults import EngineConfig
from .config.loader import ConfigLoader
from .feed.base import PriceFeed
from .feed.client import MetalsFeedClient
from .metrics.deltas import DeltaCalculator
from .reference.resolver import ReferenceCloseResolver, TradingSeriesResolver
from .scheduling.poller import DailyTrigger, SpotFeedPoller, TimerFactory
from .state.machine import MarketStatusMachine, initial_policy
from .state.models import DeltaSet, MarketStatus, ReferenceClose, SpotReading, TickOutcome
from .state.runtime import MarketStateRecord, StatusPublisher, StatusSnapshot
from .utils.time import exchange_today, get_exchange_zone, utc_now

logger = structlog.get_logger(__name__)


class MarketStatusEngine:
    """
    Best-effort market status for a single instrument.

    Startup resolves the reference closes, takes one spot reading, then arms
    the spot poller and the daily reference refresh.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        feed: Optional[PriceFeed] = None,
        clock: Callable[[], datetime] = utc_now,
        timer_factory: TimerFactory = threading.Timer,
        config_dir: Optional[Union[str, Path]] = None
    ) -> None:
        """Initialize the engine; configuration errors are fatal here."""
        self.logger = logger

        if config is None:
            config = ConfigLoader.create(Path(config_dir) if config_dir else None).load()
        self.config = config
        self.clock = clock
        self.zone = get_exchange_zone(config.schedule.timezone)

        self.feed = feed if feed is not None else MetalsFeedClient(config.feed)

        self.record = MarketStateRecord(
            instrument=config.feed.instrument,
            policy=initial_policy(config.polling),
            units_per_token=config.feed.units_per_token,
        )
        self.publisher = StatusPublisher(self.record)

        reference = config.reference
        self.machine = MarketStatusMachine(
            record=self.record,
            schedule=config.schedule,
            polling=config.polling,
            delta_calculator=DeltaCalculator(
                session_horizon=reference.session_horizon_days,
                month_horizon=reference.month_horizon_days,
                year_horizon=reference.year_horizon_days,
            ),
        )
        self.reference_resolver = ReferenceCloseResolver(self.feed, reference.max_lookback_days)
        self.series_resolver = TradingSeriesResolver(
            self.feed, reference.series_days, reference.median_window
        )

        self.poller = SpotFeedPoller(
            source=self.feed,
            on_reading=self._handle_reading,
            interval_provider=lambda: self.publisher.get_polling_policy().interval_seconds,
            on_failure=self._handle_failure,
            timer_factory=timer_factory,
        )
        self.refresh_trigger = DailyTrigger(
            job=self.refresh_references,
            hour=reference.refresh_hour,
            minute=reference.refresh_minute,
            zone=self.zone,
            timer_factory=timer_factory,
            clock=clock,
            name="reference_refresh",
        )

        self._last_outcome: Optional[TickOutcome] = None

        self.logger.info(
            "Market status engine initialized",
            instrument=config.feed.instrument,
            timezone=config.schedule.timezone,
            default_interval_seconds=config.polling.default_interval_seconds
        )

    @property
    def horizons(self) -> tuple[int, ...]:
        reference = self.config.reference
        return (reference.session_horizon_days, reference.month_horizon_days,
                reference.year_horizon_days)

    def start(self) -> None:
        """Warm up synchronously, then hand over to the timers."""
        self.refresh_references()
        self.poll_once()
        self.poller.start()
        self.refresh_trigger.start()
        self.logger.info("Market status engine started", ready=self.publisher.ready)

    def stop(self) -> None:
        self.poller.stop()
        self.refresh_trigger.stop()
        self.logger.info("Market status engine stopped")

    def poll_once(self) -> Optional[TickOutcome]:
        """
        Run one spot tick outside the timer.

        Returns:
            The tick outcome, or None when the fetch failed
        """
        self._last_outcome = None
        self.poller.run_once()
        return self._last_outcome

    def refresh_references(self) -> dict[int, Optional[ReferenceClose]]:
        """
        Resolve every horizon and the median signal for today.

        Horizons that fail to resolve keep their previously resolved close.

        Returns:
            Mapping of horizon to the close resolved by this refresh (None if unresolved)
        """
        today = exchange_today(self.zone, self.clock())
        resolved: dict[int, Optional[ReferenceClose]] = {}
        references = dict(self.record.references)

        for horizon in self.horizons:
            close = self.reference_resolver.resolve(horizon, today)
            resolved[horizon] = close
            if close is not None:
                references[horizon] = close

        # Swap in a new mapping so a concurrent tick sees old or new, never partial
        self.record.references = references

        median = self.series_resolver.median_signal(today)
        if median is not None:
            self.record.median_signal = median

        self.record.references_refreshed_at = self.clock()

        self.logger.info(
            "Reference closes refreshed",
            today=today.isoformat(),
            references={h: (c.price if c else None) for h, c in resolved.items()},
            median_signal=self.record.median_signal
        )
        return resolved

    def get_status(self) -> Optional[MarketStatus]:
        """Published status; None before the first successful spot tick."""
        return self.publisher.get_status()

    def get_delta_set(self) -> DeltaSet:
        return self.publisher.get_delta_set()

    def get_session_reference(self) -> Optional[float]:
        return self.publisher.get_session_reference()

    def snapshot(self) -> StatusSnapshot:
        return self.publisher.snapshot()

    def _handle_reading(self, reading: SpotReading) -> None:
        outcome = self.machine.tick(reading, now=self.clock())
        self._last_outcome = outcome

        if outcome.interval_changed:
            self.logger.info(
                "Polling interval changed",
                instrument=self.record.instrument,
                interval_seconds=outcome.interval_seconds,
                status=outcome.status.value
            )
            self.poller.reschedule()

        self.logger.debug(
            "Spot tick processed",
            price=reading.price,
            status=outcome.status.value,
            scheduled_status=outcome.scheduled_status.value,
            same_count=outcome.same_count,
            confirm_count=outcome.confirm_count
        )

    def _handle_failure(self, error: Exception) -> None:
        self.machine.observe_failure(error, self.clock())
