"""
Offset/limit pagination over enveloped collection endpoints.

A pagination session walks one collection endpoint page by page. Each page
is handed back to the caller, who decides whether the next request is made:

- callback form: ``await paginate(client, path, offset, limit, params,
  on_page, on_complete)`` where ``on_page`` receives a single-use
  ``Continuation``;
- iterator form: ``async for page in Paginator(client, path)``, where pulling
  the next page continues and leaving the loop stops.

Session state is an immutable ``PageState``; every transition returns a new
one. At most one request is in flight per session.
"""

import asyncio
from collections.abc import AsyncIterator, Callable, Mapping
from dataclasses import dataclass, replace
from enum import Enum
import logging
from typing import Any, Protocol

from pydantic import ValidationError

from pivotal_tracker.models import (
    RESERVED_QUERY_KEYS,
    ApiResult,
    Page,
    PageRequest,
    Pagination,
)
from pivotal_tracker.settings import DEFAULT_PAGE_LIMIT
from pivotal_tracker.utils.callbacks import invoke_callback
from pivotal_tracker.utils.errors import PaginationStalledError, ProtocolError

logger = logging.getLogger(__name__)


class RequestExecutor(Protocol):
    """Anything that can perform a single normalized API call."""

    async def api(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        **options: Any,
    ) -> ApiResult: ...


class PagePhase(str, Enum):
    """Where a pagination session currently stands."""

    REQUESTING = "requesting"
    AWAITING_CONTINUATION = "awaiting_continuation"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class PageState:
    """Immutable snapshot of a pagination session.

    In ``REQUESTING`` the request describes the call about to be made. In
    ``AWAITING_CONTINUATION`` its offset has already been advanced past the
    page just received.
    """

    request: PageRequest
    phase: PagePhase = PagePhase.REQUESTING
    pagination: Pagination | None = None
    error: Exception | None = None

    @property
    def finished(self) -> bool:
        return self.phase in (PagePhase.DONE, PagePhase.FAILED)

    def received(self, pagination: Pagination) -> "PageState":
        """Record a page and advance the offset by what the server returned."""
        self._expect(PagePhase.REQUESTING)
        request = self.request.model_copy(
            update={"offset": self.request.offset + pagination.returned}
        )
        return replace(
            self,
            request=request,
            phase=PagePhase.AWAITING_CONTINUATION,
            pagination=pagination,
        )

    def resume(self, should_continue: bool) -> "PageState":
        """Apply the caller's decision after a page."""
        self._expect(PagePhase.AWAITING_CONTINUATION)
        if not should_continue:
            return replace(self, phase=PagePhase.DONE)

        remaining = self.pagination.total - self.request.offset
        if remaining <= 0:
            return replace(self, phase=PagePhase.DONE)

        if self.pagination.returned == 0:
            return self.fail(
                PaginationStalledError(
                    f"{self.request.path} returned no items at offset "
                    f"{self.request.offset} with {remaining} remaining",
                    response=self.pagination.model_dump(),
                )
            )

        # Never ask for more than is left
        request = self.request.model_copy(
            update={"limit": min(remaining, self.request.limit)}
        )
        return PageState(request=request)

    def fail(self, error: Exception) -> "PageState":
        return replace(self, phase=PagePhase.FAILED, error=error)

    def _expect(self, phase: PagePhase) -> None:
        if self.phase is not phase:
            raise RuntimeError(
                f"Invalid pagination transition from {self.phase.value} "
                f"(expected {phase.value})"
            )


class Continuation:
    """Single-use decision point handed to ``on_page``.

    Call it with a truthy value to fetch the next page, or a falsy one to stop.
    It may be called inside ``on_page`` or later from another task; the
    session waits until it is.
    """

    def __init__(self) -> None:
        self._decision: asyncio.Future[bool] = (
            asyncio.get_running_loop().create_future()
        )

    @property
    def used(self) -> bool:
        return self._decision.done()

    def __call__(self, should_continue: Any) -> None:
        if self._decision.done():
            raise RuntimeError("Continuation already used")
        self._decision.set_result(bool(should_continue))

    async def wait(self) -> bool:
        return await self._decision


class Paginator:
    """
    Page-by-page walk over one collection endpoint.

    Iterating never prefetches: each page is requested only when the
    previous one has been consumed.

    Example:
        >>> async for page in Paginator(client, "projects/99/stories", limit=50):
        ...     print(page.pagination.returned, len(page.items))
    """

    def __init__(
        self,
        client: RequestExecutor,
        path: str,
        *,
        offset: int | None = None,
        limit: int | None = None,
        params: Mapping[str, Any] | None = None,
    ):
        """
        Initialize a paginator.

        Args:
            client: Request executor (usually a PivotalClient)
            path: Collection path relative to the API base
            offset: Initial number of items to skip (default 0)
            limit: Page size (default 128)
            params: Extra query parameters sent with every request;
                offset, limit and envelope are reserved and dropped

        Raises:
            ValueError: If offset is negative or limit is negative
        """
        params = dict(params or {})
        reserved = RESERVED_QUERY_KEYS.intersection(params)
        if reserved:
            logger.debug(f"Dropping reserved query keys for {path}: {sorted(reserved)}")
            for key in reserved:
                del params[key]

        self._client = client
        self.request = PageRequest(
            path=path,
            offset=offset or 0,
            limit=limit or DEFAULT_PAGE_LIMIT,
            params=params,
        )

    def initial_state(self) -> PageState:
        return PageState(request=self.request)

    async def fetch(self, state: PageState) -> tuple[PageState, Page | None]:
        """
        Perform the request described by a ``REQUESTING`` state.

        Returns:
            The next state and the page received. On failure the state is
            ``FAILED`` and the page is None.
        """
        request = state.request
        logger.debug(
            f"Fetching {request.path} offset={request.offset} limit={request.limit}"
        )

        outcome = await self._client.api("get", request.path, params=request.query())
        if outcome.error is not None:
            return state.fail(outcome.error), None

        body = outcome.result
        if not isinstance(body, dict) or "pagination" not in body:
            return (
                state.fail(
                    ProtocolError(
                        f"Response from {request.path} has no pagination envelope",
                        response=body,
                    )
                ),
                None,
            )

        try:
            page = Page(items=body.get("data") or [], pagination=body["pagination"])
        except ValidationError as e:
            return (
                state.fail(
                    ProtocolError(
                        f"Malformed envelope from {request.path}: {e}",
                        response=body,
                    )
                ),
                None,
            )

        return state.received(page.pagination), page

    def __aiter__(self) -> AsyncIterator[Page]:
        return self.pages()

    async def pages(self) -> AsyncIterator[Page]:
        """
        Yield pages until the collection is exhausted.

        Raises:
            TransportError: If a request fails
            ProtocolError: If a response is not a valid envelope
        """
        state = self.initial_state()
        while True:
            state, page = await self.fetch(state)
            if state.error is not None:
                raise state.error

            yield page

            state = state.resume(True)
            if state.error is not None:
                raise state.error
            if state.finished:
                return

    async def items(self) -> AsyncIterator[Any]:
        """Yield the items of every page in order."""
        async for page in self.pages():
            for item in page.items:
                yield item

    async def collect(self) -> list[Any]:
        """Fetch the whole collection into a list."""
        return [item async for item in self.items()]

    async def run(
        self,
        on_page: Callable[..., Any],
        on_complete: Callable[..., Any] | None = None,
    ) -> None:
        """
        Drive the session through callbacks.

        ``on_page(None, items, pagination, continuation)`` is called for each
        page. ``on_complete()`` is called with no arguments when the
        collection is exhausted or the caller declines to continue, and
        ``on_complete(error)`` on failure. Errors never reach ``on_page``.
        Returns once ``on_complete`` has been called.
        """
        state = self.initial_state()
        pages = 0
        while True:
            state, page = await self.fetch(state)
            if state.finished:
                break

            pages += 1
            continuation = Continuation()
            await invoke_callback(on_page, None, page.items, page.pagination, continuation)
            state = state.resume(await continuation.wait())
            if state.finished:
                break

        if state.phase is PagePhase.FAILED:
            logger.debug(f"Pagination of {self.request.path} failed: {state.error}")
            await invoke_callback(on_complete, state.error)
        else:
            logger.debug(
                f"Pagination of {self.request.path} finished after {pages} page(s)"
            )
            await invoke_callback(on_complete)


async def paginate(
    client: RequestExecutor,
    path: str,
    offset: int | None = None,
    limit: int | None = None,
    params: Mapping[str, Any] | None = None,
    on_page: Callable[..., Any] | None = None,
    on_complete: Callable[..., Any] | None = None,
) -> None:
    """
    Fetch a collection page by page through callbacks.

    Args:
        client: Request executor (usually a PivotalClient)
        path: Collection path relative to the API base
        offset: Initial number of items to skip (default 0)
        limit: Page size (default 128)
        params: Extra query parameters (filters)
        on_page: ``on_page(None, items, pagination, continuation)``
        on_complete: ``on_complete()`` on success, ``on_complete(error)`` on failure
    """
    if on_page is None:
        raise TypeError("paginate() requires an on_page callback")
    paginator = Paginator(client, path, offset=offset, limit=limit, params=params)
    await paginator.run(on_page, on_complete)
