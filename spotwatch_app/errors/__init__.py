"""
Error classification for the market status engine.

Runtime failures (feed outages, bad payloads, empty series) are recoverable
and degrade to "hold previous value and keep polling". Configuration errors
are unrecoverable and stop the engine at startup.
"""

from .data_quality import (
    DataQualityError,
    MissingDataError,
    MalformedDataError,
    InsufficientDataError,
)
from .system_failures import (
    SystemFailureError,
    ConfigurationError,
)
from .recovery import (
    RecoverableError,
    FeedUnavailableError,
)

# Everything a feed fetch may raise; callers treat these as "no observation".
FeedError = (DataQualityError, FeedUnavailableError)

__all__ = [
    # Data Quality Errors
    "DataQualityError",
    "MissingDataError",
    "MalformedDataError",
    "InsufficientDataError",
    # System Failures
    "SystemFailureError",
    "ConfigurationError",
    # Recovery Categories
    "RecoverableError",
    "FeedUnavailableError",
    "FeedError",
]
