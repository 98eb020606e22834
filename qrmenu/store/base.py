"""Document store abstract base class.

Defines the interface contract for the hierarchical document database
the menu lives in::

    restaurants/{restaurantId}
    restaurants/{restaurantId}/categories/{categoryId}
    restaurants/{restaurantId}/categories/{categoryId}/items/{itemId}
    owners/{ownerId}

Paths are slash-separated; a document path has an even number of
segments, a collection path an odd number. All reads and writes are
coroutines. Live listeners deliver the full current state (a snapshot)
once on subscription and again after every change.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any


class StoreError(Exception):
    """A store read or write failed."""


class DocumentNotFoundError(StoreError):
    """The document a write expected to exist is absent."""


class DocumentExistsError(StoreError):
    """The document a create expected to be absent already exists."""


class _ServerTimestamp:
    """Sentinel replaced by the store's clock when a document is written."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass
class DocumentSnapshot:
    """State of one document at read time."""

    id: str
    path: str
    data: dict[str, Any] | None = None

    @property
    def exists(self) -> bool:
        return self.data is not None

    def to_dict(self) -> dict[str, Any]:
        """Copy of the document fields ({} when missing)."""
        return dict(self.data or {})


SnapshotCallback = Callable[[list[DocumentSnapshot]], None]
DocumentCallback = Callable[[DocumentSnapshot], None]


@dataclass
class Subscription:
    """Handle for a live listener; ``unsubscribe()`` may be called repeatedly."""

    path: str
    _cancel: Callable[[], None] | None = field(default=None, repr=False)

    @property
    def active(self) -> bool:
        return self._cancel is not None

    def unsubscribe(self) -> None:
        cancel, self._cancel = self._cancel, None
        if cancel is not None:
            cancel()


def doc_path(*segments: str) -> str:
    """Join path segments, rejecting empty ones."""
    if not segments or any(not str(segment).strip() for segment in segments):
        msg = f"Invalid document path segments: {segments!r}"
        raise ValueError(msg)
    return "/".join(str(segment).strip() for segment in segments)


def parent_collection(path: str) -> str:
    """Collection path a document path belongs to."""
    return path.rsplit("/", 1)[0]


class DocumentStore(ABC):
    """Abstract base class for document stores.

    Example:
        >>> store = get_document_store()
        >>> await store.set("restaurants/ajwa", {"name": "Ajwa"}, merge=True)
        >>> snap = await store.get("restaurants/ajwa")
        >>> snap.exists
        True
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Name of the backend (e.g. "memory", "firestore")."""

    @abstractmethod
    async def get(self, path: str) -> DocumentSnapshot:
        """Read one document; missing documents return a snapshot with no data."""

    @abstractmethod
    async def list_documents(
        self, collection_path: str, order_by: str | None = None
    ) -> list[DocumentSnapshot]:
        """Read every document of a collection, optionally ordered by a field."""

    @abstractmethod
    async def set(self, path: str, data: dict[str, Any], merge: bool = False) -> None:
        """Write a document, replacing it unless ``merge`` is set."""

    @abstractmethod
    async def create(self, path: str, data: dict[str, Any]) -> None:
        """Write a new document.

        Raises:
            DocumentExistsError: If the document already exists
        """

    @abstractmethod
    async def update(self, path: str, data: dict[str, Any]) -> None:
        """Merge fields into an existing document.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """

    @abstractmethod
    async def add(self, collection_path: str, data: dict[str, Any]) -> str:
        """Write a document under a generated id and return the id."""

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Delete a document (no error if it is already gone)."""

    @abstractmethod
    def listen(
        self,
        collection_path: str,
        callback: SnapshotCallback,
        order_by: str | None = None,
    ) -> Subscription:
        """Subscribe to a collection's full state."""

    @abstractmethod
    def listen_document(self, path: str, callback: DocumentCallback) -> Subscription:
        """Subscribe to one document's state."""

    async def close(self) -> None:
        """Release backend resources."""
