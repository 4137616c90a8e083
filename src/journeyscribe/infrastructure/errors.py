"""Errors raised by upstream API calls."""

from __future__ import annotations

from typing import Optional


class FetchError(Exception):
    """Base class for terminal outcomes of a retried fetch."""

    def __init__(self, message: str, *, url: str, attempts: int):
        super().__init__(message)
        self.url = url
        self.attempts = attempts


class NetworkExhausted(FetchError):
    """Every attempt ended in a transport failure or a rate-limit response."""

    def __init__(
        self,
        url: str,
        attempts: int,
        *,
        last_status: Optional[int] = None,
        last_error: Optional[BaseException] = None,
    ):
        if last_error is not None:
            cause = f"last error: {last_error}"
        elif last_status is not None:
            cause = f"last status: {last_status}"
        else:
            cause = "no response"
        super().__init__(
            f"Failed to fetch {url} after {attempts} attempts ({cause})",
            url=url,
            attempts=attempts,
        )
        self.last_status = last_status
        self.last_error = last_error


class FetchCancelled(FetchError):
    """The caller aborted the fetch or its deadline passed."""

    def __init__(self, url: str, attempts: int, *, reason: str = "cancelled"):
        super().__init__(
            f"Fetch of {url} {'timed out' if reason == 'timeout' else 'was cancelled'} "
            f"after {attempts} attempts",
            url=url,
            attempts=attempts,
        )
        self.reason = reason


class UpstreamError(Exception):
    """Upstream API answered with a non-retryable error response."""

    def __init__(self, service: str, status_code: int, detail: str):
        super().__init__(f"{service} API error ({status_code}): {detail}")
        self.service = service
        self.status_code = status_code
        self.detail = detail


class AuthenticationError(Exception):
    """Access token could not be obtained."""

    pass


class ConversionError(Exception):
    """Currency or timezone conversion failed."""

    pass
