"""
Data quality errors raised while reading the metals feed.

Every one of these is recoverable: a spot tick that hits one records no
observation, and a reference lookup that hits one is left unresolved.
"""

from typing import Optional, Dict, Any


class DataQualityError(Exception):
    """A feed response arrived but could not be used."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class MissingDataError(DataQualityError):
    """The payload decoded but carries no usable price (``data_type`` is "spot" or "close")."""

    def __init__(self, message: str, data_type: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.data_type = data_type


class MalformedDataError(DataQualityError):
    """The payload is not the JSON shape the feed documents.

    ``raw_data`` holds the first bytes of the offending body for the log.
    """

    def __init__(self, message: str, raw_data: Optional[str] = None,
                 expected_format: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.raw_data = raw_data
        self.expected_format = expected_format


class InsufficientDataError(DataQualityError):
    """A trading-day series is too short for the requested statistic."""

    def __init__(self, message: str, required_count: Optional[int] = None,
                 available_count: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.required_count = required_count
        self.available_count = available_count
