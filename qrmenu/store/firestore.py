"""Cloud Firestore document store.

Wraps the blocking ``firebase_admin`` client: reads and writes run in a
worker thread, and snapshot callbacks (delivered by Firestore on its own
watch threads) are handed back to the event loop that subscribed, so
consumers only ever see callbacks on the loop.
"""

import asyncio
import logging
from typing import Any

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions

from qrmenu.config import Config, get_config
from qrmenu.store.base import (
    SERVER_TIMESTAMP,
    DocumentCallback,
    DocumentExistsError,
    DocumentNotFoundError,
    DocumentSnapshot,
    DocumentStore,
    SnapshotCallback,
    StoreError,
    Subscription,
)

logger = logging.getLogger(__name__)


def _init_app(cfg: Config) -> firebase_admin.App:
    """Initialize (once) and return the default Firebase app."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    if cfg.firebase_credentials_path:
        cred = credentials.Certificate(cfg.firebase_credentials_path)
    else:
        cred = credentials.ApplicationDefault()

    options = {"projectId": cfg.firebase_project_id} if cfg.firebase_project_id else None
    app = firebase_admin.initialize_app(cred, options)
    logger.info("Firebase app initialized")
    return app


def _to_snapshot(doc) -> DocumentSnapshot:
    return DocumentSnapshot(
        id=doc.id,
        path=doc.reference.path,
        data=doc.to_dict() if doc.exists else None,
    )


def _prepare(data: dict[str, Any]) -> dict[str, Any]:
    return {
        key: firestore.SERVER_TIMESTAMP if value is SERVER_TIMESTAMP else value
        for key, value in data.items()
    }


class FirestoreDocumentStore(DocumentStore):
    """Document store backed by Cloud Firestore."""

    def __init__(self, cfg: Config | None = None, client=None) -> None:
        """Initialize the Firestore store.

        Args:
            cfg: Configuration (defaults to the global config)
            client: Pre-built Firestore client, mainly for tests
        """
        self.config = cfg or get_config()
        if client is None:
            client = firestore.client(_init_app(self.config))
        self.client = client
        logger.info("Firestore document store initialized")

    @property
    def backend_name(self) -> str:
        return "firestore"

    async def _call(self, func, *args, **kwargs):
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except google_exceptions.AlreadyExists as e:
            raise DocumentExistsError(str(e)) from e
        except google_exceptions.NotFound as e:
            raise DocumentNotFoundError(str(e)) from e
        except google_exceptions.GoogleAPIError as e:
            logger.exception("Firestore call failed")
            raise StoreError(str(e)) from e

    async def get(self, path: str) -> DocumentSnapshot:
        doc = await self._call(self.client.document(path).get)
        return _to_snapshot(doc)

    async def list_documents(
        self, collection_path: str, order_by: str | None = None
    ) -> list[DocumentSnapshot]:
        query = self.client.collection(collection_path)
        if order_by:
            query = query.order_by(order_by)
        docs = await self._call(lambda: list(query.stream()))
        return [_to_snapshot(doc) for doc in docs]

    async def set(self, path: str, data: dict[str, Any], merge: bool = False) -> None:
        await self._call(self.client.document(path).set, _prepare(data), merge=merge)

    async def create(self, path: str, data: dict[str, Any]) -> None:
        await self._call(self.client.document(path).create, _prepare(data))

    async def update(self, path: str, data: dict[str, Any]) -> None:
        await self._call(self.client.document(path).update, _prepare(data))

    async def add(self, collection_path: str, data: dict[str, Any]) -> str:
        _, ref = await self._call(self.client.collection(collection_path).add, _prepare(data))
        return ref.id

    async def delete(self, path: str) -> None:
        await self._call(self.client.document(path).delete)

    def listen(
        self,
        collection_path: str,
        callback: SnapshotCallback,
        order_by: str | None = None,
    ) -> Subscription:
        loop = asyncio.get_running_loop()
        query = self.client.collection(collection_path)
        if order_by:
            query = query.order_by(order_by)

        def on_snapshot(docs, _changes, _read_time):
            snapshots = [_to_snapshot(doc) for doc in docs]
            loop.call_soon_threadsafe(callback, snapshots)

        watch = query.on_snapshot(on_snapshot)
        logger.debug(f"Listening to collection {collection_path}")
        return Subscription(path=collection_path, _cancel=watch.unsubscribe)

    def listen_document(self, path: str, callback: DocumentCallback) -> Subscription:
        loop = asyncio.get_running_loop()

        def on_snapshot(docs, _changes, _read_time):
            for doc in docs:
                loop.call_soon_threadsafe(callback, _to_snapshot(doc))

        watch = self.client.document(path).on_snapshot(on_snapshot)
        logger.debug(f"Listening to document {path}")
        return Subscription(path=path, _cancel=watch.unsubscribe)

    async def close(self) -> None:
        await asyncio.to_thread(self.client.close)
