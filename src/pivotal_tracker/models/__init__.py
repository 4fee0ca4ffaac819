"""Models for Pivotal Tracker requests and responses."""

from .pagination import RESERVED_QUERY_KEYS, Page, PageRequest, Pagination
from .results import ApiResult

__all__ = [
    "ApiResult",
    "Page",
    "PageRequest",
    "Pagination",
    "RESERVED_QUERY_KEYS",
]
