from typing import Any

import httpx
import pytest
import pytest_asyncio

from pivotal_tracker.clients import PivotalClient
from pivotal_tracker.models import ApiResult

BASE_URL = "https://tracker.test/services/v5/"
API_TOKEN = "test-token"


def api_url(path: str) -> str:
    """Absolute URL for a path under the test base URL."""
    return BASE_URL + path.lstrip("/")


def envelope(offset: int, limit: int, total: int) -> dict[str, Any]:
    """Enveloped page of ``{"id": n}`` items as the server would send it."""
    data = [{"id": n} for n in range(offset, min(offset + limit, total))]
    return {
        "data": data,
        "pagination": {
            "total": total,
            "offset": offset,
            "limit": limit,
            "returned": len(data),
        },
    }


def envelope_handler(total: int, calls: list[tuple[int, int]]):
    """respx side effect serving an enveloped collection of ``total`` items."""

    def handler(request: httpx.Request) -> httpx.Response:
        offset = int(request.url.params["offset"])
        limit = int(request.url.params["limit"])
        calls.append((offset, limit))
        return httpx.Response(200, json=envelope(offset, limit, total))

    return handler


class FakeTracker:
    """In-memory request executor serving one enveloped collection."""

    def __init__(
        self,
        total: int = 0,
        *,
        error: Exception | None = None,
        body: Any = None,
        returned_override: int | None = None,
    ):
        self.total = total
        self.error = error
        self.body = body
        self.returned_override = returned_override
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    @property
    def offsets(self) -> list[int]:
        return [params["offset"] for _, _, params in self.calls]

    @property
    def limits(self) -> list[int]:
        return [params["limit"] for _, _, params in self.calls]

    async def api(self, method: str, path: str, *, params=None, **options) -> ApiResult:
        self.calls.append((method, path, dict(params or {})))
        if self.error is not None:
            return ApiResult(self.error)
        if self.body is not None:
            return ApiResult(None, self.body)

        page = envelope(params["offset"], params["limit"], self.total)
        if self.returned_override is not None:
            page["data"] = page["data"][: self.returned_override]
            page["pagination"]["returned"] = len(page["data"])
        return ApiResult(None, page)


@pytest.fixture
def fake_tracker():
    """Factory for FakeTracker executors."""
    return FakeTracker


@pytest.fixture(name="api_url")
def api_url_fixture():
    return api_url


@pytest.fixture(name="envelope_handler")
def envelope_handler_fixture():
    return envelope_handler


@pytest_asyncio.fixture
async def client():
    """PivotalClient pointed at the test base URL."""
    tracker = PivotalClient(API_TOKEN, base_url=BASE_URL)
    yield tracker
    await tracker.close()
