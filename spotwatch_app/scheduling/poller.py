"""
Spot feed poller and daily trigger.

Each poll tick runs to completion, including the awaited fetch, before the
next timer is armed, so ticks never overlap. The delay is read from the
polling policy when arming; a policy change made outside a tick cancels the
pending timer and arms a new one immediately.
"""

import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional
from zoneinfo import ZoneInfo

from ..errors import FeedError
from ..feed.base import SpotSource
from ..logging.config import get_logger
from ..state.models import SpotReading
from ..utils.time import ensure_aware, next_local_occurrence, utc_now

logger = get_logger(__name__)

TimerFactory = Callable[[float, Callable[[], None]], Any]


def _start_timer(timer_factory: TimerFactory, delay: float, callback: Callable[[], None]) -> Any:
    timer = timer_factory(delay, callback)
    if hasattr(timer, "daemon"):
        timer.daemon = True
    timer.start()
    return timer


class SpotFeedPoller:
    """Single repeating timer that fetches spot on a mutable interval."""

    def __init__(
        self,
        source: SpotSource,
        on_reading: Callable[[SpotReading], None],
        interval_provider: Callable[[], float],
        on_failure: Optional[Callable[[Exception], None]] = None,
        timer_factory: TimerFactory = threading.Timer
    ):
        self.source = source
        self.on_reading = on_reading
        self.on_failure = on_failure
        self.interval_provider = interval_provider
        self.timer_factory = timer_factory
        self.logger = logger

        self._lock = threading.RLock()
        self._timer: Any = None
        self._running = False
        self._in_tick = False
        self._armed_interval: Optional[float] = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def armed_interval(self) -> Optional[float]:
        """Delay of the currently pending timer, if any."""
        return self._armed_interval

    def start(self, initial_delay: Optional[float] = None) -> None:
        """Start polling; the first tick fires after ``initial_delay`` (default: the policy interval)."""
        with self._lock:
            if self._running:
                return
            self._running = True
            self._arm(self.interval_provider() if initial_delay is None else initial_delay)
        self.logger.info("Spot poller started", interval_seconds=self.interval_provider())

    def stop(self) -> None:
        with self._lock:
            self._running = False
            self._cancel()
        self.logger.info("Spot poller stopped")

    def reschedule(self) -> None:
        """Apply a new policy interval now; inside a tick the next arm picks it up."""
        with self._lock:
            if not self._running or self._in_tick:
                return
            interval = self.interval_provider()
            if interval == self._armed_interval:
                return
            self._cancel()
            self._arm(interval)
        self.logger.info("Spot poller rescheduled", interval_seconds=interval)

    def run_once(self) -> Optional[SpotReading]:
        """
        Fetch one reading and hand it downstream.

        Returns:
            The reading, or None when the fetch failed
        """
        try:
            reading = self.source.fetch_spot()
        except FeedError as e:
            if self.on_failure is not None:
                self.on_failure(e)
            else:
                self.logger.warning("Spot fetch failed", error=str(e), error_type=type(e).__name__)
            return None

        self.on_reading(reading)
        return reading

    def _fire(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._timer = None
            self._armed_interval = None
            self._in_tick = True

        try:
            self.run_once()
        except Exception as e:
            # Keep polling; the next tick retries
            self.logger.error(
                "Unexpected error during poll tick",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True
            )
        finally:
            with self._lock:
                self._in_tick = False
                if self._running:
                    self._arm(self.interval_provider())

    def _arm(self, delay: float) -> None:
        self._timer = _start_timer(self.timer_factory, delay, self._fire)
        self._armed_interval = delay

    def _cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._armed_interval = None


class DailyTrigger:
    """Runs a job once a day at a local wall time in a named timezone."""

    def __init__(
        self,
        job: Callable[[], None],
        hour: int,
        minute: int,
        zone: ZoneInfo,
        timer_factory: TimerFactory = threading.Timer,
        clock: Callable[[], datetime] = utc_now,
        name: str = "daily"
    ):
        self.job = job
        self.hour = hour
        self.minute = minute
        self.zone = zone
        self.timer_factory = timer_factory
        self.clock = clock
        self.name = name
        self.logger = logger

        self._lock = threading.Lock()
        self._timer: Any = None
        self._running = False
        self.next_run_at: Optional[datetime] = None

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
            self._arm()

    def stop(self) -> None:
        with self._lock:
            self._running = False
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self.next_run_at = None

    def _arm(self) -> None:
        now = self.clock()
        self.next_run_at = next_local_occurrence(now, self.hour, self.minute, self.zone)
        delay = max(0.0, (
            self.next_run_at.astimezone(timezone.utc) - ensure_aware(now).astimezone(timezone.utc)
        ).total_seconds())
        self._timer = _start_timer(self.timer_factory, delay, self._fire)
        self.logger.info(
            "Daily trigger armed",
            trigger=self.name,
            next_run_at=self.next_run_at.isoformat(),
            delay_seconds=round(delay, 1)
        )

    def _fire(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._timer = None

        try:
            self.job()
        except Exception as e:
            # A failed run must not cancel tomorrow's
            self.logger.error(
                "Daily job failed",
                trigger=self.name,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True
            )
        finally:
            with self._lock:
                if self._running:
                    self._arm()
