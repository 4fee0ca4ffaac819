"""Services built on top of the Pivotal Tracker client."""

from .pagination import (
    Continuation,
    PagePhase,
    PageState,
    Paginator,
    RequestExecutor,
    paginate,
)

__all__ = [
    "Continuation",
    "PagePhase",
    "PageState",
    "Paginator",
    "RequestExecutor",
    "paginate",
]
