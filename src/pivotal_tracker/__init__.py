"""
pivotal-tracker-client - async client for the Pivotal Tracker REST API.

Exposes projects, stories, tasks, iterations, comments, labels, activity and
attachments as method calls returning normalized ``(error, result)`` outcomes,
with offset/limit pagination over collection endpoints.
"""

__version__ = "1.0.0"

from pivotal_tracker.clients import PivotalClient
from pivotal_tracker.models import ApiResult, Page, PageRequest, Pagination
from pivotal_tracker.services import Continuation, PagePhase, PageState, Paginator, paginate
from pivotal_tracker.settings import PivotalSettings, get_settings
from pivotal_tracker.utils.errors import (
    PaginationStalledError,
    PivotalError,
    ProtocolError,
    StatusError,
    TransportError,
)

__all__ = [
    "__version__",
    # Client
    "PivotalClient",
    "PivotalSettings",
    "get_settings",
    # Pagination
    "Paginator",
    "paginate",
    "Continuation",
    "PageState",
    "PagePhase",
    # Models
    "ApiResult",
    "Page",
    "PageRequest",
    "Pagination",
    # Errors
    "PivotalError",
    "TransportError",
    "ProtocolError",
    "StatusError",
    "PaginationStalledError",
]
