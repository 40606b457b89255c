"""In-memory mirror of CRM collections for UI consumers.

CrmStore keeps one list of records per entity and synchronizes it with the
API through CrmApiClient. After every successful mutation the local
collection holds the record the server returned, never the request payload,
and subscribers are notified with the entity name. Failed calls leave the
collection untouched and propagate CrmApiError.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import structlog

from src.crm.client.api_client import ENTITIES, CrmApiClient

logger = structlog.get_logger(__name__)

Subscriber = Callable[[str], None]


class CrmStore:
    """Per-entity record collections kept in step with the server.

    Args:
        client: API client used for every read and write.
        page_size: Records fetched per refresh.
    """

    def __init__(self, client: CrmApiClient, page_size: int = 100) -> None:
        self._client = client
        self._page_size = page_size
        self._records: dict[str, list[dict[str, Any]]] = {entity: [] for entity in ENTITIES}
        self._subscribers: list[Subscriber] = []

    # ── Subscriptions ───────────────────────────────────────────────────────

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register a change callback. Returns a function that unsubscribes it."""
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def _notify(self, entity: str) -> None:
        for subscriber in list(self._subscribers):
            subscriber(entity)

    # ── Reads ───────────────────────────────────────────────────────────────

    def records(self, entity: str) -> list[dict[str, Any]]:
        """Snapshot of the local collection for entity."""
        return list(self._records[entity])

    def find(self, entity: str, record_id: str) -> dict[str, Any] | None:
        return next((r for r in self._records[entity] if r.get("id") == record_id), None)

    async def refresh(self, entity: str, search: str | None = None) -> list[dict[str, Any]]:
        """Replace the local collection with the server's first page."""
        page = await self._client.list(entity, page=1, limit=self._page_size, search=search)
        self._records[entity] = list(page.items)
        self._notify(entity)
        return self.records(entity)

    async def refresh_all(self) -> None:
        for entity in ENTITIES:
            await self.refresh(entity)

    # ── Mutations ───────────────────────────────────────────────────────────

    async def add(self, entity: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Create on the server, then prepend the returned record."""
        record = await self._client.create(entity, payload)
        self._records[entity].insert(0, record)
        self._notify(entity)
        return record

    async def update(
        self, entity: str, record_id: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        """Update on the server, then swap in the returned record."""
        record = await self._client.update(entity, record_id, payload)
        collection = self._records[entity]
        for index, existing in enumerate(collection):
            if existing.get("id") == record_id:
                collection[index] = record
                break
        else:
            collection.insert(0, record)
        self._notify(entity)
        return record

    async def delete(self, entity: str, record_id: str) -> None:
        """Delete on the server, then drop the local record."""
        await self._client.delete(entity, record_id)
        self._records[entity] = [
            r for r in self._records[entity] if r.get("id") != record_id
        ]
        logger.debug("crm_store.record_removed", entity=entity, record_id=record_id)
        self._notify(entity)
