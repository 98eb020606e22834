"""Owner-to-restaurant links."""

import logging

from qrmenu.store import SERVER_TIMESTAMP, DocumentStore, doc_path

logger = logging.getLogger(__name__)


class OwnerService:
    """Reads and writes ``owners/{ownerId} -> {restaurantId}`` links.

    Authentication itself belongs to the identity provider; this service
    only scopes an already-authenticated owner id to one restaurant.
    """

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def resolve_restaurant_id(self, owner_id: str) -> str | None:
        """Return the restaurant linked to an owner, if any."""
        snap = await self.store.get(doc_path("owners", owner_id))
        if not snap.exists:
            return None
        restaurant_id = snap.to_dict().get("restaurantId")
        if isinstance(restaurant_id, str) and restaurant_id.strip():
            return restaurant_id.strip()
        return None

    async def ensure_restaurant(self, restaurant_id: str, name: str = "") -> None:
        """Upsert the restaurant record without clobbering existing fields."""
        data = {"id": restaurant_id, "updatedAt": SERVER_TIMESTAMP}
        if name.strip():
            data["name"] = name.strip()
        await self.store.set(doc_path("restaurants", restaurant_id), data, merge=True)
        logger.info(f"Restaurant {restaurant_id} ensured")

    async def link_owner(self, owner_id: str, restaurant_id: str, email: str = "") -> None:
        """Merge-write the owner's link to a restaurant."""
        await self.store.set(
            doc_path("owners", owner_id),
            {"restaurantId": restaurant_id, "email": email, "updatedAt": SERVER_TIMESTAMP},
            merge=True,
        )
        logger.info(f"Owner {owner_id} linked to restaurant {restaurant_id}")

    async def link_and_create(
        self, owner_id: str, restaurant_id: str, name: str = "", email: str = ""
    ) -> None:
        """Create or update the restaurant, then link the owner to it."""
        await self.ensure_restaurant(restaurant_id, name)
        await self.link_owner(owner_id, restaurant_id, email)
