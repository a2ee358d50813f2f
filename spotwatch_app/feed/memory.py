"""In-memory price feed for offline runs and tests."""

from collections import deque
from datetime import date, datetime
from typing import Callable, Iterable, Optional, Union

from ..errors import FeedUnavailableError
from ..state.models import SpotReading
from ..utils.time import utc_now
from .base import PriceFeed

# A scripted spot step is a price, or an exception to raise for that tick
SpotStep = Union[float, Exception]


class ScriptedFeed(PriceFeed):
    """
    Feed that replays scripted spot prices and serves closes from a dict.

    Once the script is exhausted the last price repeats, which is exactly
    what a stalled upstream feed looks like.
    """

    def __init__(
        self,
        spots: Iterable[SpotStep] = (),
        closes: Optional[dict[date, float]] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self._spots = deque(spots)
        self._last_price: Optional[float] = None
        self.closes = dict(closes or {})
        self.clock = clock
        self.spot_calls = 0
        self.close_calls: list[date] = []

    def push_spot(self, *steps: SpotStep) -> None:
        self._spots.extend(steps)

    def fetch_spot(self) -> SpotReading:
        self.spot_calls += 1
        if self._spots:
            step = self._spots.popleft()
            if isinstance(step, Exception):
                raise step
            self._last_price = float(step)

        if self._last_price is None:
            raise FeedUnavailableError("No scripted spot price", endpoint="memory")
        return SpotReading(price=self._last_price, observed_at=self.clock())

    def fetch_close_for_date(self, day: date) -> Optional[float]:
        self.close_calls.append(day)
        return self.closes.get(day)

    def fetch_timeseries(self, start: date, end: date) -> dict[date, float]:
        return {day: value for day, value in sorted(self.closes.items()) if start <= day <= end}
