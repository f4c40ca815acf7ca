"""
Error types for the calendar subscription engine.
"""

from typing import Optional


class FeedError(Exception):
    """Base class for failures while refreshing a calendar feed."""


class NetworkError(FeedError):
    """
    The feed could not be retrieved.

    Covers DNS/connection failures, timeouts and non-success responses.
    status_code is set when the server answered with an HTTP error.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class FormatError(FeedError):
    """The fetched text is not recognizable calendar data."""
