"""Normalized outcome of a single API call."""

from typing import Any, NamedTuple


class ApiResult(NamedTuple):
    """``(error, result)`` pair, unpackable like a callback's arguments.

    ``error`` is None on success; ``result`` is the parsed response body.
    """

    error: Exception | None
    result: Any = None

    @property
    def ok(self) -> bool:
        """Whether the call completed without an error."""
        return self.error is None
