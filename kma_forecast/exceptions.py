"""
Errors raised when a forecast cannot be fetched.
"""

from typing import Optional


class ForecastFetchError(RuntimeError):
    """Base class for failures of the single upstream request."""


class TransportError(ForecastFetchError):
    """The request never produced a response (connection failure, timeout)."""


class UpstreamError(ForecastFetchError):
    """
    The service answered but reported a failure.

    Attributes:
        status_code: HTTP status of the response, if known
        result_code: resultCode from the response header, if the service sent one
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        result_code: Optional[str] = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.result_code = result_code
