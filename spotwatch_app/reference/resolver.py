"""
Reference close resolution.

A requested horizon date may fall on a weekend or holiday, for which the feed
has no close. The resolver steps back one day at a time, up to a bounded
lookback, until it finds a usable value. Exhausting the bound is not fatal:
the horizon is reported as unresolved and consumers treat its delta as
unavailable.
"""

from datetime import date, timedelta
from typing import Any, Callable, Iterable, Optional, Sequence

from ..errors import FeedError, InsufficientDataError
from ..feed.base import CloseSource
from ..logging.config import get_logger
from ..state.models import ReferenceClose

logger = get_logger(__name__)


def dedupe_consecutive(items: Iterable[Any], key: Optional[Callable[[Any], Any]] = None) -> list[Any]:
    """Drop items whose key equals that of their immediate predecessor.

    Consecutive identical closes are placeholder rows the feed emits for
    non-trading days.
    """
    if key is None:
        key = lambda item: item  # noqa: E731

    result: list[Any] = []
    for item in items:
        if not result or key(item) != key(result[-1]):
            result.append(item)
    return result


def upper_median(values: Sequence[float]) -> float:
    """
    Median that takes the larger central value for even-sized inputs.

    Raises:
        InsufficientDataError: if ``values`` is empty
    """
    if not values:
        raise InsufficientDataError(
            "Cannot take the median of an empty series",
            required_count=1,
            available_count=0
        )

    ordered = sorted(values)
    n = len(ordered)
    if n % 2:
        return ordered[(n - 1) // 2]
    return max(ordered[n // 2 - 1], ordered[n // 2])


class ReferenceCloseResolver:
    """Resolves ``today - horizon_days`` closes with bounded fallback."""

    def __init__(self, source: CloseSource, max_lookback_days: int = 10):
        self.source = source
        self.max_lookback_days = max_lookback_days
        self.logger = logger

    def resolve(self, horizon_days: int, today: date) -> Optional[ReferenceClose]:
        """
        Resolve the close for ``today - horizon_days``.

        Args:
            horizon_days: Calendar days back from ``today``
            today: Exchange-local date the horizon is anchored to

        Returns:
            ReferenceClose, or None when no close exists within the lookback
            bound or the feed failed during the search
        """
        nominal = today - timedelta(days=horizon_days)

        for step in range(self.max_lookback_days + 1):
            day = nominal - timedelta(days=step)
            try:
                value = self.source.fetch_close_for_date(day)
            except FeedError as e:
                self.logger.warning(
                    "Reference close fetch failed",
                    horizon_days=horizon_days,
                    date=day.isoformat(),
                    error=str(e),
                    error_type=type(e).__name__
                )
                return None

            if value is None:
                continue

            close = ReferenceClose(
                horizon_days=horizon_days,
                price=value,
                source_date=day,
                nominal_date=nominal
            )
            if close.fallback_days:
                self.logger.info(
                    "Reference close fallback used",
                    horizon_days=horizon_days,
                    nominal_date=nominal.isoformat(),
                    source_date=day.isoformat(),
                    days_back=close.fallback_days
                )
            return close

        self.logger.warning(
            "Reference close unresolved",
            horizon_days=horizon_days,
            nominal_date=nominal.isoformat(),
            max_lookback_days=self.max_lookback_days
        )
        return None


class TradingSeriesResolver:
    """Builds the deduplicated trading-day close series and its median signal."""

    def __init__(self, source: CloseSource, series_days: int = 30, median_window: int = 7):
        self.source = source
        self.series_days = series_days
        self.median_window = median_window
        self.logger = logger

    def trading_series(self, today: date) -> list[tuple[date, float]]:
        """
        Closes for ``[today - series_days, today - 1]`` with consecutive
        duplicates removed, oldest first.
        """
        closes = self.source.fetch_timeseries(
            today - timedelta(days=self.series_days),
            today - timedelta(days=1)
        )

        series = dedupe_consecutive(sorted(closes.items()), key=lambda item: item[1])

        self.logger.debug(
            "Trading series built",
            calendar_closes=len(closes),
            trading_days=len(series)
        )
        return series

    def median_signal(self, today: date) -> Optional[float]:
        """Upper median over the most recent ``median_window`` trading days."""
        try:
            series = self.trading_series(today)
            window = [value for _, value in series[-self.median_window:]]
            return upper_median(window)
        except FeedError as e:
            self.logger.warning(
                "Median signal unavailable",
                error=str(e),
                error_type=type(e).__name__
            )
            return None
