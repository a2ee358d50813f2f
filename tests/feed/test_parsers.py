"""Tests for metals feed payload parsing."""

import json
from datetime import date, datetime, timezone

import pytest

from spotwatch_app.errors import MalformedDataError, MissingDataError
from spotwatch_app.feed.parsers import (
    decode_payload, parse_price, parse_spot_payload, parse_timeseries_payload
)


class TestDecodePayload:

    def test_bytes(self):
        assert decode_payload(b'{"status": "success"}') == {"status": "success"}

    def test_dict_passthrough(self):
        data = {"a": 1}
        assert decode_payload(data) is data

    def test_invalid_json(self):
        with pytest.raises(MalformedDataError) as exc_info:
            decode_payload(b"<html>gateway timeout</html>")
        assert exc_info.value.expected_format == "json"

    def test_non_object(self):
        with pytest.raises(MalformedDataError):
            decode_payload("[1, 2, 3]")


class TestParsePrice:

    @pytest.mark.parametrize("value,expected", [
        (24.51, 24.51),
        ("24.51", 24.51),
        (25, 25.0),
    ])
    def test_valid(self, value, expected):
        assert parse_price(value) == expected

    @pytest.mark.parametrize("value", [None, "", "n/a", 0, -1.5, float("nan"), float("inf"), True, [24.5]])
    def test_invalid(self, value):
        assert parse_price(value) is None


class TestParseSpotPayload:

    def test_price_and_timestamp(self):
        raw = json.dumps({
            "status": "success",
            "currency": "USD",
            "timestamp": "2024-03-20T16:00:05.123Z",
            "rate": {"price": 24.8123, "ask": 24.85, "bid": 24.78},
        })

        reading = parse_spot_payload(raw)

        assert reading.price == 24.8123
        assert reading.observed_at == datetime(2024, 3, 20, 16, 0, 5, 123000, tzinfo=timezone.utc)

    def test_missing_timestamp_uses_observed_at(self):
        observed = datetime(2024, 3, 20, 16, 0, tzinfo=timezone.utc)
        reading = parse_spot_payload({"rate": {"price": 24.8}}, observed_at=observed)
        assert reading.observed_at == observed

    def test_missing_price(self):
        with pytest.raises(MissingDataError) as exc_info:
            parse_spot_payload({"status": "failure", "error_message": "Invalid API key"})
        assert exc_info.value.data_type == "spot"
        assert exc_info.value.context["status"] == "failure"

    def test_zero_price_is_missing(self):
        with pytest.raises(MissingDataError):
            parse_spot_payload({"rate": {"price": 0}})


class TestParseTimeseriesPayload:

    def test_sorted_instrument_closes(self):
        raw = {
            "rates": {
                "2024-03-19": {"metals": {"silver": 24.5, "gold": 2150.0}},
                "2024-03-15": {"metals": {"silver": 24.0}},
                "2024-03-16": {"metals": {"gold": 2155.0}},
                "2024-03-17": {"metals": {"silver": None}},
                "not-a-date": {"metals": {"silver": 1.0}},
                "2024-03-18": "garbage",
            }
        }

        closes = parse_timeseries_payload(raw, "silver")

        assert list(closes.items()) == [
            (date(2024, 3, 15), 24.0),
            (date(2024, 3, 19), 24.5),
        ]

    def test_empty_rates(self):
        assert parse_timeseries_payload({"status": "success", "rates": {}}, "silver") == {}
        assert parse_timeseries_payload({"status": "success"}, "silver") == {}

    def test_rates_not_object(self):
        with pytest.raises(MalformedDataError):
            parse_timeseries_payload({"rates": [1, 2]}, "silver")
