"""Tests for the Firestore document store with a fake client."""

import pytest
from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

from qrmenu.store import (
    SERVER_TIMESTAMP,
    DocumentExistsError,
    DocumentNotFoundError,
    StoreError,
)
from qrmenu.store.firestore import FirestoreDocumentStore


class FakeDoc:
    """Minimal stand-in for a Firestore DocumentSnapshot."""

    def __init__(self, path, data):
        self.id = path.rsplit("/", 1)[-1]
        self.reference = type("Ref", (), {"path": path})()
        self.exists = data is not None
        self._data = data

    def to_dict(self):
        return dict(self._data)


class FakeDocumentReference:
    """Document reference whose writes are recorded or fail with ``error``."""

    def __init__(self, client, path):
        self.client = client
        self.path = path

    def _check(self):
        if self.client.error is not None:
            raise self.client.error

    def get(self):
        self._check()
        return FakeDoc(self.path, self.client.docs.get(self.path))

    def set(self, data, merge=False):
        self._check()
        self.client.writes.append(("set", self.path, data, merge))

    def create(self, data):
        self._check()
        self.client.writes.append(("create", self.path, data))

    def update(self, data):
        self._check()
        self.client.writes.append(("update", self.path, data))

    def delete(self):
        self._check()
        self.client.writes.append(("delete", self.path))


class FakeClient:
    def __init__(self):
        self.docs = {}
        self.writes = []
        self.error = None

    def document(self, path):
        return FakeDocumentReference(self, path)

    def close(self):
        pass


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def firestore_store(fake_client, config):
    return FirestoreDocumentStore(config, client=fake_client)


class TestFirestoreDocumentStore:
    """Test call forwarding and error translation."""

    async def test_get(self, firestore_store, fake_client):
        """Test reading a document."""
        fake_client.docs["restaurants/ajwa"] = {"name": "Ajwa"}

        snap = await firestore_store.get("restaurants/ajwa")

        assert snap.id == "ajwa"
        assert snap.to_dict() == {"name": "Ajwa"}
        assert not (await firestore_store.get("restaurants/none")).exists

    async def test_server_timestamp_is_translated(self, firestore_store, fake_client):
        """Test that the timestamp sentinel becomes Firestore's own."""
        await firestore_store.set("owners/o1", {"updatedAt": SERVER_TIMESTAMP}, merge=True)

        _op, _path, data, merge = fake_client.writes[0]
        assert data["updatedAt"] is firestore.SERVER_TIMESTAMP
        assert merge is True

    async def test_already_exists(self, firestore_store, fake_client):
        """Test create conflicts."""
        fake_client.error = google_exceptions.AlreadyExists("exists")
        with pytest.raises(DocumentExistsError):
            await firestore_store.create("restaurants/ajwa", {})

    async def test_not_found(self, firestore_store, fake_client):
        """Test updates of missing documents."""
        fake_client.error = google_exceptions.NotFound("missing")
        with pytest.raises(DocumentNotFoundError):
            await firestore_store.update("restaurants/ajwa", {})

    async def test_other_errors(self, firestore_store, fake_client):
        """Test that any other API error is a StoreError."""
        fake_client.error = google_exceptions.ServiceUnavailable("down")
        with pytest.raises(StoreError):
            await firestore_store.delete("restaurants/ajwa")

    def test_backend_name(self, firestore_store):
        assert firestore_store.backend_name == "firestore"
