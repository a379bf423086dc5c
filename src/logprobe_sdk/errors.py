from __future__ import annotations
from typing import Optional


class LogServiceError(Exception):
    """A call to the log service did not produce a usable response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class LogRequestRejected(LogServiceError):
    """The log understood the request and refused it (4xx)."""


class LogUnavailable(LogServiceError):
    """Transient failure: server error, throttling or connection trouble."""


class LogDeadlineExceeded(LogServiceError):
    """The call did not complete within its deadline."""


TRANSIENT_ERRORS = (LogUnavailable, LogDeadlineExceeded)
