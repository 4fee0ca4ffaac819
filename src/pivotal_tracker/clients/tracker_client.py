"""
Pivotal Tracker API client.

Every call goes through ``PivotalClient.api``, which sends one authenticated
request and normalizes the outcome into an ``ApiResult(error, result)``.
Collection endpoints return a ``Paginator`` instead.

API Docs: https://www.pivotaltracker.com/help/api/rest/v5
"""

from collections.abc import Callable, Mapping, Sequence
import logging
from typing import Any

import httpx

from pivotal_tracker.models import ApiResult
from pivotal_tracker.services.pagination import Paginator, paginate
from pivotal_tracker.settings import (
    DEFAULT_PAGE_LIMIT,
    PIVOTAL_API_BASE,
    PivotalSettings,
    get_settings,
)
from pivotal_tracker.utils.callbacks import invoke_callback
from pivotal_tracker.utils.errors import ProtocolError, StatusError, TransportError
from pivotal_tracker.utils.logging_config import PerformanceMonitor

logger = logging.getLogger(__name__)

# Header carrying the API token
TOKEN_HEADER = "X-TrackerToken"

ALLOWED_METHODS = frozenset({"GET", "POST", "PUT", "DELETE"})

Callback = Callable[..., Any]


class PivotalClient:
    """Client for the Pivotal Tracker v5 REST API."""

    def __init__(
        self,
        api_token: str,
        *,
        base_url: str = PIVOTAL_API_BASE,
        timeout: float | None = None,
        page_size: int = DEFAULT_PAGE_LIMIT,
        status_errors: bool = False,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the Pivotal Tracker client.

        Args:
            api_token: API token from the Pivotal Tracker profile page
            base_url: Service base URL
            timeout: Request timeout in seconds (None waits indefinitely)
            page_size: Default page size for collection endpoints
            status_errors: Report HTTP status >= 400 as StatusError instead of
                passing the error body through as a result
            http_client: Externally managed httpx client; not closed by close()
        """
        self.api_token = api_token
        self.base_url = base_url if base_url.endswith("/") else f"{base_url}/"
        self.timeout = timeout
        self.page_size = page_size
        self.status_errors = status_errors
        self._client = http_client
        self._owns_client = http_client is None

    @classmethod
    def from_settings(cls, settings: PivotalSettings | None = None) -> "PivotalClient":
        """Build a client from PIVOTAL_* environment settings."""
        settings = settings or get_settings()
        return cls(
            settings.api_token,
            base_url=settings.base_url,
            timeout=settings.timeout,
            page_size=settings.page_size,
            status_errors=settings.status_errors,
        )

    @property
    def headers(self) -> dict[str, str]:
        """Default request headers."""
        return {TOKEN_HEADER: self.api_token}

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "PivotalClient":
        await self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def url(self, path: str) -> str:
        """Absolute URL for a path relative to the API base."""
        return self.base_url + path.lstrip("/")

    # -------------------- Request Executor --------------------

    async def api(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        data: Mapping[str, Any] | None = None,
        content: bytes | str | None = None,
        files: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        parse_json: bool = True,
        callback: Callback | None = None,
    ) -> ApiResult:
        """
        Send one authenticated request.

        Args:
            method: HTTP verb (get, post, put, delete)
            path: Path relative to the API base
            params: Query string parameters
            json: JSON request body
            data: Form-encoded request body
            content: Raw request body
            files: Multipart files
            headers: Extra headers, merged over the defaults
            parse_json: Parse the response body as JSON (raw text otherwise)
            callback: Optional ``callback(error, result)``

        Returns:
            ApiResult with the parsed body, or a TransportError / StatusError

        Raises:
            ValueError: If the method is not supported
        """
        verb = method.upper()
        if verb not in ALLOWED_METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")

        client = await self._get_client()
        request_headers = {**self.headers, **(headers or {})}

        try:
            with PerformanceMonitor(logger, f"{verb} {path}"):
                response = await client.request(
                    verb,
                    self.url(path),
                    params=params,
                    json=json,
                    data=data,
                    content=content,
                    files=files,
                    headers=request_headers,
                )
        except httpx.HTTPError as e:
            logger.debug(f"{verb} {path} transport failure: {e!r}")
            outcome = ApiResult(TransportError(f"{verb} {path} failed: {e}", cause=e))
        else:
            outcome = self._normalize(response, parse_json)

        await invoke_callback(callback, *outcome)
        return outcome

    def _normalize(self, response: httpx.Response, parse_json: bool) -> ApiResult:
        body = self._read_body(response, parse_json)
        if self.status_errors and response.is_error:
            return ApiResult(StatusError(response.status_code, body), body)
        return ApiResult(None, body)

    @staticmethod
    def _read_body(response: httpx.Response, parse_json: bool) -> Any:
        if not response.content:
            return None
        if not parse_json:
            return response.text
        try:
            return response.json()
        except ValueError:
            # Not JSON; hand back what the server sent
            return response.text

    # -------------------- Pagination --------------------

    def paginator(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
        offset: int | None = None,
        limit: int | None = None,
    ) -> Paginator:
        """Paginator over any enveloped collection path."""
        return Paginator(
            self, path, offset=offset, limit=limit or self.page_size, params=params
        )

    async def paginated(
        self,
        path: str,
        offset: int | None = None,
        limit: int | None = None,
        params: Mapping[str, Any] | None = None,
        on_page: Callback | None = None,
        on_complete: Callback | None = None,
    ) -> None:
        """Callback-driven pagination; see ``paginate``."""
        await paginate(
            self,
            path,
            offset=offset,
            limit=limit or self.page_size,
            params=params,
            on_page=on_page,
            on_complete=on_complete,
        )

    # -------------------- Projects --------------------

    async def get_projects(self, callback: Callback | None = None) -> ApiResult:
        return await self.api("get", "projects", callback=callback)

    async def get_memberships(
        self, project_id: int | str, callback: Callback | None = None
    ) -> ApiResult:
        return await self.api(
            "get", f"projects/{project_id}/memberships", callback=callback
        )

    # -------------------- Stories --------------------

    async def get_story(
        self, story_id: int | str, callback: Callback | None = None
    ) -> ApiResult:
        return await self.api("get", f"stories/{story_id}", callback=callback)

    async def create_story(
        self,
        project_id: int | str,
        params: Mapping[str, Any],
        callback: Callback | None = None,
    ) -> ApiResult:
        """Create a story; ``params`` is the story body (name, story_type, ...)."""
        return await self.api(
            "post", f"projects/{project_id}/stories", json=dict(params), callback=callback
        )

    async def update_story(
        self,
        project_id: int | str,
        story_id: int | str,
        params: Mapping[str, Any],
        callback: Callback | None = None,
    ) -> ApiResult:
        return await self.api(
            "put",
            f"projects/{project_id}/stories/{story_id}",
            json=dict(params),
            callback=callback,
        )

    def get_stories(
        self,
        project_id: int | str,
        params: Mapping[str, Any] | None = None,
        offset: int | None = None,
        limit: int | None = None,
    ) -> Paginator:
        """Stories of a project; ``params`` may carry filters like ``with_state``."""
        return self.paginator(f"projects/{project_id}/stories", params, offset, limit)

    async def export_stories(
        self, story_ids: Sequence[int | str], callback: Callback | None = None
    ) -> ApiResult:
        """Export stories as CSV; the body is returned as text."""
        return await self.api(
            "post",
            "stories/export",
            data={"ids[]": [str(story_id) for story_id in story_ids]},
            parse_json=False,
            callback=callback,
        )

    # -------------------- Tasks & comments --------------------

    async def get_tasks(
        self,
        project_id: int | str,
        story_id: int | str,
        callback: Callback | None = None,
    ) -> ApiResult:
        return await self.api(
            "get", f"projects/{project_id}/stories/{story_id}/tasks", callback=callback
        )

    async def get_comments(
        self,
        project_id: int | str,
        story_id: int | str,
        callback: Callback | None = None,
    ) -> ApiResult:
        return await self.api(
            "get",
            f"projects/{project_id}/stories/{story_id}/comments",
            callback=callback,
        )

    async def post_attachment(
        self,
        project_id: int | str,
        story_id: int | str,
        content: bytes,
        filename: str,
        content_type: str,
        comment: str,
        callback: Callback | None = None,
    ) -> ApiResult:
        """
        Attach a file to a story as a new comment.

        Uploads the bytes to the project's uploads resource, then creates a
        comment referencing the returned file descriptor.

        Args:
            project_id: Pivotal project id
            story_id: Pivotal story id
            content: File contents
            filename: File name shown in Tracker
            content_type: MIME type of the file
            comment: Comment text
            callback: Optional ``callback(error, result)``

        Returns:
            ApiResult of the comment creation, or of the failed upload
        """
        error, upload = await self.api(
            "post",
            f"projects/{project_id}/uploads",
            files={"file": (filename, content, content_type)},
        )

        if error is None and not isinstance(upload, dict):
            error = ProtocolError("Upload response is not a file descriptor", response=upload)
        elif error is None and upload.get("kind") == "error":
            error = ProtocolError(
                f"{upload.get('error')} ({upload.get('general_problem')})",
                response=upload,
            )

        if error is not None:
            outcome = ApiResult(error, upload)
            await invoke_callback(callback, *outcome)
            return outcome

        return await self.api(
            "post",
            f"projects/{project_id}/stories/{story_id}/comments",
            json={"text": comment, "file_attachments": [upload]},
            callback=callback,
        )

    # -------------------- Labels --------------------

    async def get_labels(
        self, project_id: int | str, callback: Callback | None = None
    ) -> ApiResult:
        return await self.api("get", f"projects/{project_id}/labels", callback=callback)

    async def create_label(
        self, project_id: int | str, name: str, callback: Callback | None = None
    ) -> ApiResult:
        return await self.api(
            "post", f"projects/{project_id}/labels", json={"name": name}, callback=callback
        )

    # -------------------- Iterations --------------------

    def get_iterations(
        self,
        project_id: int | str,
        params: Mapping[str, Any] | None = None,
        offset: int | None = None,
        limit: int | None = None,
    ) -> Paginator:
        return self.paginator(f"projects/{project_id}/iterations", params, offset, limit)

    async def get_current_iterations(
        self, project_id: int | str, callback: Callback | None = None
    ) -> ApiResult:
        """Current iteration with dates in milliseconds.

        The result is None whenever the call failed or came back empty.
        """
        error, iterations = await self.api(
            "get",
            f"projects/{project_id}/iterations",
            params={"scope": "current", "date_format": "millis"},
        )
        outcome = ApiResult(error, None) if error or not iterations else ApiResult(None, iterations)
        await invoke_callback(callback, *outcome)
        return outcome

    # -------------------- Activity --------------------

    def get_activity(
        self,
        project_id: int | str,
        params: Mapping[str, Any] | None = None,
        offset: int | None = None,
        limit: int | None = None,
    ) -> Paginator:
        return self.paginator(f"projects/{project_id}/activity", params, offset, limit)

    async def get_story_activity(
        self,
        project_id: int | str,
        story_id: int | str,
        params: Mapping[str, Any] | None = None,
        callback: Callback | None = None,
    ) -> ApiResult:
        return await self.api(
            "get",
            f"projects/{project_id}/stories/{story_id}/activity",
            params=params or {},
            callback=callback,
        )

    async def get_my_activity(
        self,
        params: Mapping[str, Any] | None = None,
        callback: Callback | None = None,
    ) -> ApiResult:
        return await self.api("get", "my/activity", params=params or {}, callback=callback)
