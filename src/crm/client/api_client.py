"""Async HTTP client for the CRM REST API.

Provides CrmApiClient: list/get/create/update/delete per entity plus the
user-profile and report calls. Responses are unwrapped from the
``{success, data, ...}`` envelope; failures raise CrmApiError carrying the
envelope's error message and the HTTP status.

Read calls retry transient transport errors (tenacity, 3 attempts,
exponential backoff). Writes are never retried so a create cannot be
applied twice.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.crm.config import get_settings

logger = structlog.get_logger(__name__)

ENTITIES = ("contacts", "accounts", "activities", "deals", "leads")

_read_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
    retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
    reraise=True,
)


class CrmApiError(Exception):
    """Non-success response from the CRM API."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass
class Page:
    """One page of a list response."""

    items: list[dict[str, Any]]
    page: int = 1
    limit: int = 10
    total: int = 0
    total_pages: int = 0
    raw_pagination: dict[str, Any] = field(default_factory=dict)


def _check_entity(entity: str) -> str:
    if entity not in ENTITIES:
        raise ValueError(f"Unknown CRM entity '{entity}'; expected one of {', '.join(ENTITIES)}")
    return entity


class CrmApiClient:
    """Async client for the CRM REST API.

    Args:
        base_url: API root (defaults to CRM_API_BASE_URL).
        timeout: Request timeout in seconds (defaults to CLIENT_TIMEOUT).
        token: Optional Bearer token identifying the actor.
        actor_email: Optional X-Actor-Email header when no token is used.
        transport: Optional httpx transport (tests pass httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        token: str | None = None,
        actor_email: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._base_url = (base_url or settings.CRM_API_BASE_URL).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.CLIENT_TIMEOUT
        self._transport = transport
        self._headers = {"Content-Type": "application/json"}
        if token:
            self._headers["Authorization"] = f"Bearer {token}"
        elif actor_email:
            self._headers["X-Actor-Email"] = actor_email

    def _client(self) -> httpx.AsyncClient:
        """Create a new httpx client for one call."""
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        async with self._client() as client:
            response = await client.request(method, path, **kwargs)
        return self._unwrap(response)

    @staticmethod
    def _unwrap(response: httpx.Response) -> dict[str, Any]:
        """Return the envelope, raising CrmApiError on any failure."""
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            raise CrmApiError(
                f"Unexpected response from CRM API (HTTP {response.status_code})",
                response.status_code,
            )

        if response.is_error or not body.get("success", False):
            message = body.get("error") or body.get("message") or f"HTTP {response.status_code}"
            logger.warning(
                "crm_client.request_failed",
                url=str(response.request.url),
                status_code=response.status_code,
                error=message,
            )
            raise CrmApiError(message, response.status_code)
        return body

    # ── Entities ────────────────────────────────────────────────────────────

    @_read_retry
    async def list(
        self,
        entity: str,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
    ) -> Page:
        """GET /api/{entity} and return one page of records."""
        params: dict[str, Any] = {"page": page, "limit": limit}
        if search:
            params["search"] = search
        body = await self._request("GET", f"/api/{_check_entity(entity)}", params=params)
        pagination = body.get("pagination") or {}
        return Page(
            items=body.get("data") or [],
            page=pagination.get("page", page),
            limit=pagination.get("limit", limit),
            total=pagination.get("total", 0),
            total_pages=pagination.get("totalPages", 0),
            raw_pagination=pagination,
        )

    @_read_retry
    async def get(self, entity: str, record_id: str) -> dict[str, Any]:
        body = await self._request("GET", f"/api/{_check_entity(entity)}/{record_id}")
        return body["data"]

    async def create(self, entity: str, payload: dict[str, Any]) -> dict[str, Any]:
        body = await self._request("POST", f"/api/{_check_entity(entity)}", json=payload)
        logger.info("crm_client.created", entity=entity, record_id=body["data"].get("id"))
        return body["data"]

    async def update(
        self, entity: str, record_id: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        body = await self._request(
            "PUT", f"/api/{_check_entity(entity)}/{record_id}", json=payload
        )
        return body["data"]

    async def delete(self, entity: str, record_id: str) -> str | None:
        """DELETE a record. Returns the server's confirmation message."""
        body = await self._request("DELETE", f"/api/{_check_entity(entity)}/{record_id}")
        return body.get("message")

    # ── Users & Reports ─────────────────────────────────────────────────────

    @_read_retry
    async def get_current_user(self) -> dict[str, Any]:
        body = await self._request("GET", "/api/users/me")
        return body["data"]

    async def update_current_user(self, payload: dict[str, Any]) -> dict[str, Any]:
        body = await self._request("PUT", "/api/users/me", json=payload)
        return body["data"]

    async def generate_report(self, payload: dict[str, Any]) -> dict[str, Any]:
        body = await self._request("POST", "/api/reports", json=payload)
        return body["data"]
