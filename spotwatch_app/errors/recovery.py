"""
Recovery strategy classifications for error handling.

A recoverable error ends the current fetch only: the poller retries on its
next tick and the reference refresh leaves the horizon unresolved.
"""

from typing import Optional


class RecoverableError(Exception):
    """Errors that are recovered from automatically on the next attempt."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message)
        self.recoverable = True


class FeedUnavailableError(RecoverableError):
    """The price feed could not be reached, dropped the response, or answered with an error status."""

    def __init__(self, message: str, endpoint: Optional[str] = None,
                 status_code: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.endpoint = endpoint
        self.status_code = status_code
