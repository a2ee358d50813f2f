"""Base classes for price feed sources."""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from ..state.models import SpotReading


class SpotSource(ABC):
    """Source of live spot readings."""

    @abstractmethod
    def fetch_spot(self) -> SpotReading:
        """
        Fetch the current spot price.

        Raises:
            FeedUnavailableError: network, HTTP status or timeout failures
            DataQualityError: payload could not be interpreted
        """
        pass


class CloseSource(ABC):
    """Source of historical daily closes."""

    @abstractmethod
    def fetch_close_for_date(self, day: date) -> Optional[float]:
        """
        Fetch the close for a single calendar date.

        Returns:
            The close, or None when the feed has no value for that date
        """
        pass

    @abstractmethod
    def fetch_timeseries(self, start: date, end: date) -> dict[date, float]:
        """Fetch all available closes in ``[start, end]`` keyed by date."""
        pass


class PriceFeed(SpotSource, CloseSource):
    """A feed serving both live spot and historical closes."""
    pass
