"""In-memory document store with live listeners.

Used in development and tests. Listener callbacks run synchronously on
the caller's event loop right after the write that changed their
collection or document, so delivery order follows write order.
"""

import copy
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from qrmenu.store.base import (
    SERVER_TIMESTAMP,
    DocumentCallback,
    DocumentExistsError,
    DocumentNotFoundError,
    DocumentSnapshot,
    DocumentStore,
    SnapshotCallback,
    Subscription,
    parent_collection,
)

logger = logging.getLogger(__name__)


def _sort_key(value: Any) -> tuple:
    # None sorts first, then numbers, then case-insensitive text
    if value is None:
        return (0, 0, "")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (1, value, "")
    return (2, 0, str(value).lower())


class InMemoryDocumentStore(DocumentStore):
    """Dictionary-backed store keyed by document path."""

    def __init__(self) -> None:
        self._docs: dict[str, dict[str, Any]] = {}
        self._collection_listeners: dict[int, tuple[str, SnapshotCallback, str | None]] = {}
        self._document_listeners: dict[int, tuple[str, DocumentCallback]] = {}
        self._next_listener_id = 0

    @property
    def backend_name(self) -> str:
        return "memory"

    @property
    def listener_count(self) -> int:
        """Number of live listeners (collections and documents)."""
        return len(self._collection_listeners) + len(self._document_listeners)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, path: str) -> DocumentSnapshot:
        return self._snapshot(path)

    async def list_documents(
        self, collection_path: str, order_by: str | None = None
    ) -> list[DocumentSnapshot]:
        return self._query(collection_path, order_by)

    def _snapshot(self, path: str) -> DocumentSnapshot:
        data = self._docs.get(path)
        return DocumentSnapshot(
            id=path.rsplit("/", 1)[-1],
            path=path,
            data=copy.deepcopy(data) if data is not None else None,
        )

    def _query(self, collection_path: str, order_by: str | None) -> list[DocumentSnapshot]:
        paths = [
            path for path in self._docs if parent_collection(path) == collection_path
        ]
        snapshots = [self._snapshot(path) for path in sorted(paths)]
        if order_by:
            snapshots.sort(key=lambda snap: _sort_key(snap.to_dict().get(order_by)))
        return snapshots

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def set(self, path: str, data: dict[str, Any], merge: bool = False) -> None:
        resolved = self._resolve_timestamps(data)
        if merge and path in self._docs:
            self._docs[path] = {**self._docs[path], **resolved}
        else:
            self._docs[path] = resolved
        self._notify(path)

    async def create(self, path: str, data: dict[str, Any]) -> None:
        if path in self._docs:
            msg = f"Document already exists: {path}"
            raise DocumentExistsError(msg)
        self._docs[path] = self._resolve_timestamps(data)
        self._notify(path)

    async def update(self, path: str, data: dict[str, Any]) -> None:
        if path not in self._docs:
            msg = f"No document to update: {path}"
            raise DocumentNotFoundError(msg)
        self._docs[path] = {**self._docs[path], **self._resolve_timestamps(data)}
        self._notify(path)

    async def add(self, collection_path: str, data: dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex[:20]
        await self.create(f"{collection_path}/{doc_id}", data)
        return doc_id

    async def delete(self, path: str) -> None:
        if self._docs.pop(path, None) is not None:
            self._notify(path)

    @staticmethod
    def _resolve_timestamps(data: dict[str, Any]) -> dict[str, Any]:
        now = datetime.now(timezone.utc)
        return {
            key: now if value is SERVER_TIMESTAMP else copy.deepcopy(value)
            for key, value in data.items()
        }

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def listen(
        self,
        collection_path: str,
        callback: SnapshotCallback,
        order_by: str | None = None,
    ) -> Subscription:
        listener_id = self._register()
        self._collection_listeners[listener_id] = (collection_path, callback, order_by)
        logger.debug(f"Listening to collection {collection_path}")
        callback(self._query(collection_path, order_by))
        return Subscription(
            path=collection_path,
            _cancel=lambda: self._collection_listeners.pop(listener_id, None),
        )

    def listen_document(self, path: str, callback: DocumentCallback) -> Subscription:
        listener_id = self._register()
        self._document_listeners[listener_id] = (path, callback)
        logger.debug(f"Listening to document {path}")
        callback(self._snapshot(path))
        return Subscription(
            path=path,
            _cancel=lambda: self._document_listeners.pop(listener_id, None),
        )

    def _register(self) -> int:
        self._next_listener_id += 1
        return self._next_listener_id

    def _notify(self, path: str) -> None:
        collection_path = parent_collection(path)
        # Copy first: callbacks may subscribe or unsubscribe while we iterate
        for listener_id, (watched, callback, order_by) in list(
            self._collection_listeners.items()
        ):
            if watched == collection_path and listener_id in self._collection_listeners:
                callback(self._query(collection_path, order_by))
        for listener_id, (watched, callback) in list(self._document_listeners.items()):
            if watched == path and listener_id in self._document_listeners:
                callback(self._snapshot(path))
