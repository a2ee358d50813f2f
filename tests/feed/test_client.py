"""Tests for the metals HTTP feed client."""

import json
import socket
from dataclasses import replace
from datetime import date
from http.client import IncompleteRead
from io import BytesIO
from urllib.error import HTTPError, URLError
from urllib.parse import parse_qs, urlparse

import pytest

from spotwatch_app.config.defaults import FeedParams
from spotwatch_app.errors import ConfigurationError, FeedUnavailableError, MissingDataError
from spotwatch_app.feed.client import MetalsFeedClient
from spotwatch_app.reference.resolver import ReferenceCloseResolver


class FakeResponse:

    def __init__(self, body, code=200):
        self._body = body if isinstance(body, bytes) else json.dumps(body).encode("utf-8")
        self._code = code

    def getcode(self):
        return self._code

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class TruncatedResponse(FakeResponse):
    """Response whose connection closes before the declared length arrives."""

    def __init__(self):
        super().__init__(b"")

    def read(self):
        raise IncompleteRead(b'{"rate": {"pri', 40)


class FakeOpener:
    """Records requests and replays canned responses or errors."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []
        self.timeouts = []

    def __call__(self, request, timeout=None):
        self.requests.append(request)
        self.timeouts.append(timeout)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def query(self, index=-1):
        url = urlparse(self.requests[index].full_url)
        return url.path, {k: v[0] for k, v in parse_qs(url.query).items()}


@pytest.fixture
def feed_params():
    return FeedParams(api_key="test-key", timeout_seconds=5)


class TestClientConfiguration:

    def test_missing_api_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            MetalsFeedClient(FeedParams(api_key=""))
        assert "SPOTWATCH_API_KEY" in str(exc_info.value)

    def test_invalid_url(self, feed_params):
        with pytest.raises(ConfigurationError):
            MetalsFeedClient(replace(feed_params, base_url="not a url"))


class TestFetchSpot:

    def test_request_and_parse(self, feed_params):
        opener = FakeOpener(FakeResponse({"rate": {"price": 24.81}, "timestamp": "2024-03-20T16:00:00Z"}))
        client = MetalsFeedClient(feed_params, opener=opener)

        reading = client.fetch_spot()

        assert reading.price == 24.81
        path, query = opener.query()
        assert path == "/v1/metal/spot"
        assert query == {"api_key": "test-key", "metal": "silver", "currency": "USD"}
        assert opener.timeouts == [5]
        assert opener.requests[0].get_header("Accept") == "application/json"

    def test_http_error(self, feed_params):
        error = HTTPError("https://api.metals.dev/v1/metal/spot", 429, "Too Many Requests", {}, BytesIO())
        client = MetalsFeedClient(feed_params, opener=FakeOpener(error))

        with pytest.raises(FeedUnavailableError) as exc_info:
            client.fetch_spot()

        assert exc_info.value.status_code == 429
        assert exc_info.value.endpoint == "metal/spot"
        assert exc_info.value.recoverable

    @pytest.mark.parametrize("error", [
        URLError("Name or service not known"),
        socket.timeout("timed out"),
        ConnectionResetError("reset by peer"),
    ])
    def test_network_errors(self, feed_params, error):
        client = MetalsFeedClient(feed_params, opener=FakeOpener(error))
        with pytest.raises(FeedUnavailableError) as exc_info:
            client.fetch_spot()
        assert exc_info.value.status_code is None

    def test_non_success_status(self, feed_params):
        client = MetalsFeedClient(feed_params, opener=FakeOpener(FakeResponse({}, code=304)))
        with pytest.raises(FeedUnavailableError) as exc_info:
            client.fetch_spot()
        assert exc_info.value.status_code == 304

    def test_connection_dropped_mid_body(self, feed_params):
        client = MetalsFeedClient(feed_params, opener=FakeOpener(TruncatedResponse()))
        with pytest.raises(FeedUnavailableError) as exc_info:
            client.fetch_spot()
        assert exc_info.value.endpoint == "metal/spot"
        assert isinstance(exc_info.value.__cause__, IncompleteRead)

    def test_payload_without_price(self, feed_params):
        opener = FakeOpener(FakeResponse({"status": "failure", "error_code": 1101}))
        client = MetalsFeedClient(feed_params, opener=opener)
        with pytest.raises(MissingDataError):
            client.fetch_spot()


class TestFetchCloses:

    def test_timeseries_range(self, feed_params):
        body = {"rates": {
            "2024-03-18": {"metals": {"silver": 24.2}},
            "2024-03-19": {"metals": {"silver": 24.5}},
        }}
        opener = FakeOpener(FakeResponse(body))
        client = MetalsFeedClient(feed_params, opener=opener)

        closes = client.fetch_timeseries(date(2024, 3, 18), date(2024, 3, 19))

        assert closes == {date(2024, 3, 18): 24.2, date(2024, 3, 19): 24.5}
        path, query = opener.query()
        assert path == "/v1/timeseries"
        assert query["start_date"] == "2024-03-18"
        assert query["end_date"] == "2024-03-19"

    def test_close_for_date(self, feed_params):
        body = {"rates": {"2024-03-19": {"metals": {"silver": 24.5}}}}
        client = MetalsFeedClient(feed_params, opener=FakeOpener(FakeResponse(body)))
        assert client.fetch_close_for_date(date(2024, 3, 19)) == 24.5

    def test_close_for_date_without_data(self, feed_params):
        body = {"rates": {"2024-03-17": {"metals": {}}}}
        client = MetalsFeedClient(feed_params, opener=FakeOpener(FakeResponse(body)))
        assert client.fetch_close_for_date(date(2024, 3, 17)) is None

    def test_truncated_timeseries_leaves_reference_unresolved(self, feed_params):
        client = MetalsFeedClient(feed_params, opener=FakeOpener(TruncatedResponse()))
        assert ReferenceCloseResolver(client).resolve(1, date(2024, 3, 20)) is None
