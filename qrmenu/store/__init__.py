"""Document store factory.

Selects the in-memory or Firestore backend from ``STORE_BACKEND``.

Usage:
    from qrmenu.store import get_document_store

    store = get_document_store()
    snap = await store.get("restaurants/ajwa")
"""

import logging
from functools import lru_cache

from qrmenu.config import get_config
from qrmenu.store.base import (
    SERVER_TIMESTAMP,
    DocumentExistsError,
    DocumentNotFoundError,
    DocumentSnapshot,
    DocumentStore,
    StoreError,
    Subscription,
    doc_path,
)
from qrmenu.store.memory import InMemoryDocumentStore

logger = logging.getLogger(__name__)


@lru_cache()
def get_document_store() -> DocumentStore:
    """Get the configured document store instance.

    Returns:
        DocumentStore: InMemoryDocumentStore or FirestoreDocumentStore
    """
    config = get_config()

    if config.uses_firestore():
        from qrmenu.store.firestore import FirestoreDocumentStore

        logger.info("Document store: using Firestore")
        return FirestoreDocumentStore(config)

    logger.info("Document store: using in-memory store")
    return InMemoryDocumentStore()


def reset_document_store() -> None:
    """Clear the cached store instance (tests, config changes)."""
    get_document_store.cache_clear()
    logger.debug("Document store cache cleared")


__all__ = [
    "SERVER_TIMESTAMP",
    "DocumentExistsError",
    "DocumentNotFoundError",
    "DocumentSnapshot",
    "DocumentStore",
    "InMemoryDocumentStore",
    "StoreError",
    "Subscription",
    "doc_path",
    "get_document_store",
    "reset_document_store",
]
