"""
Pagination models for enveloped collection endpoints.

Collection endpoints called with ``envelope=true`` answer with
``{"data": [...], "pagination": {"returned", "total", "offset", "limit"}}``.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pivotal_tracker.settings import DEFAULT_PAGE_LIMIT

# Query keys owned by the paginator; caller values are always overwritten
RESERVED_QUERY_KEYS = frozenset({"offset", "limit", "envelope"})


class PageRequest(BaseModel):
    """A single request against a collection endpoint.

    Immutable; the paginator derives a new one for every round trip.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    path: str = Field(..., min_length=1, description="Collection path relative to the API base")
    offset: int = Field(default=0, ge=0, description="Number of items to skip")
    limit: int = Field(default=DEFAULT_PAGE_LIMIT, ge=1, description="Page size")
    params: dict[str, Any] = Field(
        default_factory=dict, description="Extra query parameters (filters)"
    )

    def query(self) -> dict[str, Any]:
        """Query parameters for this request, reserved keys included."""
        query = dict(self.params)
        query.update(offset=self.offset, limit=self.limit, envelope="true")
        return query


class Pagination(BaseModel):
    """Pagination block of an enveloped response."""

    model_config = ConfigDict(extra="allow")

    returned: int = Field(..., ge=0, description="Number of items in this page")
    total: int = Field(..., ge=0, description="Total items in the collection")
    offset: int | None = Field(default=None, description="Offset the server applied")
    limit: int | None = Field(default=None, description="Limit the server applied")


class Page(BaseModel):
    """One page of a collection."""

    items: list[Any] = Field(default_factory=list)
    pagination: Pagination
