"""Async client for the archive backend REST API."""

import logging
from typing import Any, Protocol, runtime_checkable

import httpx

from .config import ApiConfig
from .envelope import Page
from .selection import BulkActionRequest, request_to_payload

logger = logging.getLogger("mailpick.api")

API_PREFIX = "/api/v1"


class ArchiveApiError(Exception):
    """A backend call failed.

    ``message`` holds the human-readable text the backend returned, or None
    when the failure never reached the backend (timeout, refused connection)
    or the response carried no message.
    """

    def __init__(
        self,
        message: str | None,
        status_code: int | None = None,
        code: int | None = None,
        detail: str | None = None,
    ):
        super().__init__(message or detail or "Archive request failed")
        self.message = message
        self.status_code = status_code
        self.code = code
        self.detail = detail

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ArchiveApiError":
        message = None
        code = None
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            message = data.get("message") or None
            code = data.get("code")
        return cls(
            message,
            status_code=response.status_code,
            code=code,
            detail=f"HTTP {response.status_code}",
        )


@runtime_checkable
class ArchiveBackend(Protocol):
    """Backend operations the coordinator and console rely on."""

    async def delete_messages(self, request: BulkActionRequest) -> None:
        """Delete envelopes, grouped by account, in one call."""
        ...

    async def update_tags(self, request: BulkActionRequest, tags: list[str]) -> None:
        """Replace the tag list of the given envelopes."""
        ...

    async def restore_messages(self, account_id: int, message_ids: list[int]) -> None:
        """Append archived messages back to the account's IMAP mailboxes."""
        ...

    async def list_messages(
        self, account_id: int, mailbox_id: int, page: int, page_size: int
    ) -> Page:
        ...

    async def search_messages(self, query: dict[str, Any]) -> Page:
        ...

    async def all_tags(self) -> list[dict[str, Any]]:
        ...


class ArchiveClient:
    """httpx-backed ArchiveBackend. Use as an async context manager."""

    def __init__(self, config: ApiConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "ArchiveClient":
        headers = {"Accept": "application/json"}
        if self.config.token:
            headers["Authorization"] = f"Bearer {self.config.token}"
        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=httpx.Timeout(self.config.timeout_seconds),
            headers=headers,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Client not initialized. Use async context manager.")
        return self._client

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """Send a request and decode the JSON body.

        Raises:
            ArchiveApiError: On transport failure or a non-2xx response
        """
        try:
            response = await self.client.request(method, f"{API_PREFIX}{path}", **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e!r}")
            raise ArchiveApiError(None, detail=str(e) or type(e).__name__) from e

        if response.is_error:
            error = ArchiveApiError.from_response(response)
            logger.warning(f"{method} {path} returned {response.status_code}: {error}")
            raise error

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ArchiveApiError(None, status_code=response.status_code, detail="Invalid JSON response") from e

    async def delete_messages(self, request: BulkActionRequest) -> None:
        await self._request("POST", "/delete-messages", json=request_to_payload(request))

    async def update_tags(self, request: BulkActionRequest, tags: list[str]) -> None:
        await self._request(
            "POST",
            "/update-tags",
            json={"updates": request_to_payload(request), "tags": list(tags)},
        )

    async def restore_messages(self, account_id: int, message_ids: list[int]) -> None:
        await self._request(
            "POST",
            f"/restore-messages/{account_id}",
            json={"message_ids": list(message_ids)},
        )

    async def list_messages(
        self, account_id: int, mailbox_id: int, page: int, page_size: int
    ) -> Page:
        data = await self._request(
            "GET",
            f"/list-messages/{account_id}",
            params={"mailbox_id": mailbox_id, "page": page, "page_size": page_size},
        )
        return Page.from_dict(data or {})

    async def search_messages(self, query: dict[str, Any]) -> Page:
        data = await self._request("POST", "/search-messages", json=query)
        return Page.from_dict(data or {})

    async def all_tags(self) -> list[dict[str, Any]]:
        data = await self._request("GET", "/all-tags")
        return list(data or [])
