"""
Unified error types for the Pivotal Tracker client.

Errors are reported to callers as values (``ApiResult.error`` or the
``on_complete`` argument); they are raised only from the async iterator form
of the paginator.
"""

from typing import Any


class PivotalError(Exception):
    """Base exception for Pivotal Tracker client errors."""

    def __init__(self, message: str, suggestion: str | None = None):
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}. {self.suggestion}"
        return self.message


class TransportError(PivotalError):
    """Network, DNS or timeout failure raised by the HTTP layer."""

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        suggestion: str | None = None,
    ):
        super().__init__(message, suggestion)
        self.cause = cause


class ProtocolError(PivotalError):
    """The request went through but the response did not have the expected shape."""

    def __init__(
        self,
        message: str,
        response: Any = None,
        suggestion: str | None = None,
    ):
        super().__init__(message, suggestion)
        self.response = response


class StatusError(ProtocolError):
    """Server answered with an error status (only when ``status_errors`` is on)."""

    def __init__(self, status_code: int, response: Any = None):
        super().__init__(
            f"Pivotal Tracker returned HTTP {status_code}",
            response=response,
            suggestion=_STATUS_HINTS.get(status_code),
        )
        self.status_code = status_code


class PaginationStalledError(ProtocolError):
    """Server returned an empty page while still reporting items remaining."""

    pass


_STATUS_HINTS = {
    400: "Bad request. Please check your input parameters",
    401: "Authentication required. Please check your API token",
    403: "Access denied. The token has no access to this resource",
    404: "Resource not found. Please check the project or story id",
    429: "Rate limit exceeded. Please wait before making more requests",
    500: "Pivotal Tracker server error. Please try again later",
    503: "Pivotal Tracker service unavailable. Please try again later",
}


def format_status_error(status_code: int, message: str = "") -> str:
    """Format an API error status with an appropriate hint."""
    default_message = f"API error (status {status_code})."
    base_message = _STATUS_HINTS.get(status_code)
    base_message = f"{base_message}." if base_message else default_message

    if message:
        return f"Error: {base_message} Details: {message}"
    return f"Error: {base_message}"
