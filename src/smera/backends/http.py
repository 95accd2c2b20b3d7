"""HTTP task-write backend using httpx.

Talks to the Smera task API:

    POST   {base_url}/spaces/{workspace_id}/tasks
    PATCH  {base_url}/spaces/{workspace_id}/tasks/{task_id}
    DELETE {base_url}/spaces/{workspace_id}/tasks/{task_id}
    POST   {base_url}/spaces/{workspace_id}/tasks/{task_id}/updates
    GET    {base_url}{health_path}

Transport failures and error statuses are converted to tagged
``BackendError`` subclasses here, so callers never inspect messages.
"""

import os
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from smera.backends.base import TaskWriter
from smera.core.config import ApiConfig
from smera.core.errors import (
    BackendConnectionError,
    BackendError,
    BackendResponseError,
    BackendTimeoutError,
)
from smera.core.logging import get_logger
from smera.core.models import Task, TaskDraft, TaskPatch, TaskUpdate, TaskUpdateDraft

_logger = get_logger("backend.http")

_ERROR_BODY_CHARS = 100


class HttpTaskWriter(TaskWriter):
    """Task writer backed by the REST task API.

    Example usage:
        writer = HttpTaskWriter(base_url="https://smera.example.com/api", token="...")
        task = await writer.create_task("space-1", TaskDraft(title="Write report"))
        await writer.close()
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 15.0,
        health_path: str = "/health",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP writer.

        Args:
            base_url: API root, e.g. ``https://smera.example.com/api``.
            token: Bearer token sent with every request.
            timeout: Request timeout in seconds.
            health_path: Path probed by ``health_check``.
            transport: Custom httpx transport (used by tests).
        """
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._health_path = health_path
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_config(cls, config: ApiConfig) -> "HttpTaskWriter":
        token = os.environ.get(config.token_env) or None
        if token is None:
            _logger.debug("api_token_missing", token_env=config.token_env)
        return cls(
            base_url=config.base_url,
            token=token,
            timeout=config.timeout_seconds,
            health_path=config.health_path,
        )

    @property
    def name(self) -> str:
        return "http"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client with connection pooling."""
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self._timeout),
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def _request(
        self, method: str, path: str, payload: dict[str, Any] | None = None
    ) -> httpx.Response:
        client = await self._get_client()
        try:
            response = await client.request(method, path, json=payload)
        except httpx.TimeoutException as e:
            _logger.warning("task_api_timeout", method=method, path=path)
            raise BackendTimeoutError(f"{method} {path} timed out") from e
        except httpx.RequestError as e:
            _logger.warning("task_api_unreachable", method=method, path=path, error=str(e))
            raise BackendConnectionError(f"{method} {path} failed: {e}") from e

        if not response.is_success:
            _logger.warning(
                "task_api_error_status",
                method=method,
                path=path,
                status_code=response.status_code,
            )
            raise BackendResponseError(
                response.status_code, response.text[:_ERROR_BODY_CHARS]
            )

        _logger.debug("task_api_request", method=method, path=path, status_code=response.status_code)
        return response

    @staticmethod
    def _parse(response: httpx.Response, model: type[BaseModel]) -> Any:
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise BackendError(f"Malformed {model.__name__} response: {e}") from e

    @staticmethod
    def _tasks_path(workspace_id: str) -> str:
        return f"/spaces/{workspace_id}/tasks"

    async def create_task(self, workspace_id: str, draft: TaskDraft) -> Task:
        response = await self._request(
            "POST", self._tasks_path(workspace_id), draft.model_dump(mode="json")
        )
        return self._parse(response, Task)

    async def update_task(self, workspace_id: str, task_id: str, patch: TaskPatch) -> Task:
        response = await self._request(
            "PATCH", f"{self._tasks_path(workspace_id)}/{task_id}", patch.changes()
        )
        return self._parse(response, Task)

    async def delete_task(self, workspace_id: str, task_id: str) -> None:
        await self._request("DELETE", f"{self._tasks_path(workspace_id)}/{task_id}")

    async def add_task_update(
        self, workspace_id: str, task_id: str, update: TaskUpdateDraft
    ) -> TaskUpdate:
        response = await self._request(
            "POST",
            f"{self._tasks_path(workspace_id)}/{task_id}/updates",
            update.model_dump(mode="json"),
        )
        return self._parse(response, TaskUpdate)

    async def health_check(self) -> bool:
        """Probe ``health_path``.

        Returns:
            True if the API answered with a success status.
        """
        try:
            client = await self._get_client()
            response = await client.get(self._health_path)
        except httpx.RequestError as e:
            _logger.debug("task_api_health_check_error", error=str(e))
            return False

        if not response.is_success:
            _logger.debug("task_api_health_check_failed", status_code=response.status_code)
            return False
        return True

    async def close(self) -> None:
        """Close HTTP client and release resources."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
