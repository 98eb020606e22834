"""Shared fixtures for QR Menu tests."""

import copy

import pytest

from qrmenu.config import Config
from qrmenu.store import InMemoryDocumentStore, doc_path

SPICE_GARDEN_MENU = {
    "currency": "INR",
    "restaurant": {
        "name": "Spice Garden",
        "tagline": "Fresh from the tandoor",
        "openHours": "12:00 - 22:00",
    },
    "categories": [
        {
            "name": "Starters",
            "enabled": True,
            "items": [
                {
                    "name": "Samosa",
                    "description": "Crisp pastry with spiced potato.",
                    "price": 3.50,
                    "type": "veg",
                    "available": True,
                },
            ],
        },
    ],
}


@pytest.fixture
def spice_garden_menu():
    """Static menu.json content for the spice-garden example."""
    return copy.deepcopy(SPICE_GARDEN_MENU)


@pytest.fixture
def config():
    """Configuration isolated from the environment and .env files."""
    return Config(
        _env_file=None,
        default_restaurant_id="ajwa",
        default_currency="USD",
        price_locale="en_US",
        static_base_url="http://menus.test",
        static_path_prefixes=[""],
        public_base_url="https://menu.example",
        store_backend="memory",
        debounce_seconds=0.01,
    )


@pytest.fixture
def store():
    """Fresh in-memory document store."""
    return InMemoryDocumentStore()


async def seed_spice_garden(store: InMemoryDocumentStore) -> None:
    """Write a small structured menu: Starters (Samosa) and an empty Mains."""
    await store.set(
        doc_path("restaurants", "spice-garden"),
        {"id": "spice-garden", "name": "Spice Garden", "currency": "INR"},
    )
    await store.set(
        doc_path("restaurants", "spice-garden", "categories", "starters"),
        {"name": "Starters", "enabled": True, "sortOrder": 0},
    )
    await store.set(
        doc_path("restaurants", "spice-garden", "categories", "mains"),
        {"name": "Mains", "enabled": True, "sortOrder": 1},
    )
    await store.set(
        doc_path("restaurants", "spice-garden", "categories", "starters", "items", "samosa"),
        {"name": "Samosa", "price": 3.5, "type": "veg", "available": True},
    )


@pytest.fixture
async def seeded_store(store):
    """In-memory store holding the structured spice-garden menu."""
    await seed_spice_garden(store)
    return store


@pytest.fixture
def seed():
    """The seeding coroutine, for tests that bring their own store class."""
    return seed_spice_garden
