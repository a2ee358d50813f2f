"""
Metals feed payload parsers.

Converts raw JSON payloads from the spot and timeseries endpoints into
typed values, raising data quality errors for anything unusable.
"""

import json
import math
from datetime import date, datetime
from typing import Any, Optional, Union

from ..errors import MalformedDataError, MissingDataError
from ..state.models import SpotReading
from ..utils.time import ensure_aware, utc_now

RawPayload = Union[bytes, str, dict]


def decode_payload(raw: RawPayload) -> dict[str, Any]:
    """Decode a JSON payload into a dict."""
    if isinstance(raw, dict):
        return raw

    try:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        data = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedDataError(
            f"Feed payload is not valid JSON: {e}",
            raw_data=str(raw)[:100],
            expected_format="json"
        ) from e

    if not isinstance(data, dict):
        raise MalformedDataError(
            f"Feed payload must be a JSON object, got {type(data).__name__}",
            raw_data=str(data)[:100],
            expected_format="object"
        )
    return data


def parse_price(value: Any) -> Optional[float]:
    """Coerce a feed value to a finite positive float, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(price) or price <= 0:
        return None
    return price


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    try:
        return ensure_aware(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        return None


def parse_spot_payload(raw: RawPayload, observed_at: Optional[datetime] = None) -> SpotReading:
    """
    Parse a spot endpoint payload.

    Expects ``{"rate": {"price": ...}, "timestamp": "..."}``. The feed
    timestamp is used as the observation time when present.

    Raises:
        MalformedDataError: payload is not a JSON object
        MissingDataError: no usable price in the payload
    """
    data = decode_payload(raw)

    rate = data.get("rate")
    price = parse_price(rate.get("price")) if isinstance(rate, dict) else None
    if price is None:
        raise MissingDataError(
            "Spot payload has no usable price",
            data_type="spot",
            context={"status": data.get("status"), "rate": rate}
        )

    timestamp = _parse_timestamp(data.get("timestamp"))
    if timestamp is None:
        timestamp = observed_at or utc_now()

    return SpotReading(price=price, observed_at=timestamp)


def parse_timeseries_payload(raw: RawPayload, instrument: str) -> dict[date, float]:
    """
    Parse a timeseries endpoint payload.

    Expects ``{"rates": {"YYYY-MM-DD": {"metals": {instrument: ...}}}}``.
    Dates without a usable value are omitted; an empty result is valid and
    means the feed has no data for the requested range.
    """
    data = decode_payload(raw)

    rates = data.get("rates") or {}
    if not isinstance(rates, dict):
        raise MalformedDataError(
            "Timeseries 'rates' must be an object",
            raw_data=str(rates)[:100],
            expected_format="object"
        )

    closes: dict[date, float] = {}
    for day_str, entry in rates.items():
        try:
            day = date.fromisoformat(day_str)
        except (TypeError, ValueError):
            continue
        metals = entry.get("metals") if isinstance(entry, dict) else None
        if not isinstance(metals, dict):
            continue
        price = parse_price(metals.get(instrument))
        if price is not None:
            closes[day] = price

    return dict(sorted(closes.items()))
