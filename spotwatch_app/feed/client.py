"""HTTP client for the metals spot and timeseries endpoints."""

import socket
from datetime import date
from http.client import HTTPException
from typing import Any, Callable, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode, urlparse
from urllib.request import Request, urlopen

from ..config.defaults import FeedParams
from ..errors import ConfigurationError, FeedUnavailableError
from ..logging.config import get_logger
from ..state.models import SpotReading
from .base import PriceFeed
from .parsers import parse_spot_payload, parse_timeseries_payload

logger = get_logger(__name__)


class MetalsFeedClient(PriceFeed):
    """Spot and historical-close source backed by a metals.dev-style API."""

    def __init__(self, config: FeedParams, opener: Optional[Callable[..., Any]] = None):
        parsed = urlparse(config.base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ConfigurationError(f"Invalid feed URL: {config.base_url}")
        if not config.api_key:
            raise ConfigurationError(
                f"Missing feed API key (set {config.api_key_env})",
                context={"api_key_env": config.api_key_env}
            )

        self.config = config
        self.logger = logger
        self._opener = opener or urlopen

    def fetch_spot(self) -> SpotReading:
        """Fetch the current spot price."""
        payload = self._get("metal/spot", {
            "metal": self.config.instrument,
            "currency": self.config.currency,
        })
        reading = parse_spot_payload(payload)

        self.logger.debug(
            "Fetched spot",
            instrument=self.config.instrument,
            price=reading.price,
            observed_at=reading.observed_at.isoformat()
        )
        return reading

    def fetch_close_for_date(self, day: date) -> Optional[float]:
        """Fetch a single calendar close; None when the date has no data."""
        closes = self.fetch_timeseries(day, day)
        return closes.get(day)

    def fetch_timeseries(self, start: date, end: date) -> dict[date, float]:
        """Fetch available closes in ``[start, end]``."""
        payload = self._get("timeseries", {
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
        })
        return parse_timeseries_payload(payload, self.config.instrument)

    def _get(self, path: str, params: dict[str, str]) -> bytes:
        """Perform a GET request and return the raw body."""
        query = urlencode({"api_key": self.config.api_key, **params})
        url = f"{self.config.base_url.rstrip('/')}/{path}?{query}"
        req = Request(url, headers={
            "Accept": "application/json",
            "User-Agent": "spotwatch/1.0",
        }, method="GET")

        try:
            with self._opener(req, timeout=self.config.timeout_seconds) as response:
                response_code = response.getcode()
                body = response.read()

        except HTTPError as e:
            self.logger.warning(
                "Feed HTTP error",
                endpoint=path,
                error_code=e.code,
                error_reason=str(e.reason)
            )
            raise FeedUnavailableError(
                f"HTTP {e.code}: {e.reason}", endpoint=path, status_code=e.code
            ) from e

        except (OSError, URLError, socket.timeout, HTTPException) as e:
            # HTTPException covers a connection dropped mid-body (IncompleteRead)
            self.logger.warning("Feed network error", endpoint=path, error=str(e))
            raise FeedUnavailableError(f"Network error: {e}", endpoint=path) from e

        if not 200 <= response_code < 300:
            self.logger.warning("Feed returned non-success status", endpoint=path,
                                response_code=response_code)
            raise FeedUnavailableError(
                f"HTTP {response_code}", endpoint=path, status_code=response_code
            )

        return body
