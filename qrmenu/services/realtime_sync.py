"""Realtime synchronization of the owner dashboard with the document store.

The manager keeps an in-memory mirror of a restaurant's categories and
each category's items. One live listener watches the category
collection; it lazily adds one item listener per category it sees and
removes the listener (and the mirrored items) of every category that
disappears, in the same callback. Every snapshot re-renders the full
view, which is safe to repeat.

States::

    UNLINKED --link_restaurant()--> LINKING --ok--> SYNCED
        ^                               |               |
        +------------failure------------+    sign_out() / sign_in()

Leaving SYNCED tears down every listener before any new one is created.
Callbacks from a previous session are recognised by a generation number
and ignored, so a late delivery can never touch the new session's view.
"""

import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from functools import partial
from urllib.parse import quote

from pydantic import ValidationError

from qrmenu.config import Config, get_config
from qrmenu.guardrails import InputValidator
from qrmenu.models import DashboardView, ItemType, MenuItem
from qrmenu.pricing import parse_price
from qrmenu.rendering import render_dashboard
from qrmenu.services.debounce import Debouncer
from qrmenu.services.owner_service import OwnerService
from qrmenu.store import (
    SERVER_TIMESTAMP,
    DocumentExistsError,
    DocumentSnapshot,
    DocumentStore,
    StoreError,
    Subscription,
    doc_path,
)

logger = logging.getLogger(__name__)

DUPLICATE_ITEM_MESSAGE = "An item with the same id already exists in that category."


class SyncState(str, Enum):
    """Dashboard lifecycle state."""

    UNLINKED = "unlinked"
    LINKING = "linking"
    SYNCED = "synced"


class RealtimeSyncManager:
    """Owns the owner dashboard's subscriptions, mirror and mutations.

    Mutations return True on success. Validation problems and store
    failures never raise; they leave a short message in ``status`` and
    return False so the caller can revert the control that triggered them.
    """

    def __init__(
        self,
        store: DocumentStore,
        on_render: Callable[[DashboardView], None] | None = None,
        cfg: Config | None = None,
        debounce_seconds: float | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            store: Document store holding the menu
            on_render: Called with the full view after every change
            cfg: Configuration (defaults to the global config)
            debounce_seconds: Quiet window for text edits (defaults to config)
        """
        self.store = store
        self.config = cfg or get_config()
        self.owners = OwnerService(store)
        self.debouncer = Debouncer(
            self.config.debounce_seconds if debounce_seconds is None else debounce_seconds
        )
        self.on_render = on_render

        self.state = SyncState.UNLINKED
        self.owner_id: str | None = None
        self.owner_email = ""
        self.restaurant_id: str | None = None
        self.restaurant_name = ""
        self.status = ""
        self.last_view: DashboardView | None = None

        # Mirror of the store, mutated only by snapshot callbacks
        self.categories: dict[str, dict] = {}
        self.items_by_category: dict[str, dict[str, MenuItem]] = {}

        self._generation = 0
        self._restaurant_sub: Subscription | None = None
        self._categories_sub: Subscription | None = None
        self._item_subs: dict[str, Subscription] = {}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def item_subscription_ids(self) -> set[str]:
        """Category ids that currently have an item listener."""
        return set(self._item_subs)

    @property
    def public_menu_url(self) -> str:
        """Diner URL encoded in the restaurant's QR code."""
        if not self.restaurant_id:
            return ""
        base = self.config.public_base_url.rstrip("/")
        return f"{base}/?r={quote(self.restaurant_id, safe='')}"

    async def sign_in(self, owner_id: str, email: str = "") -> SyncState:
        """Start a session for an authenticated owner.

        Any previous session is torn down first. If the owner is linked
        to a restaurant the dashboard goes live, otherwise it waits for
        ``link_restaurant``.
        """
        self.teardown()
        self.owner_id = owner_id
        self.owner_email = email
        self._set_status("Loading menu…")

        try:
            restaurant_id = await self.owners.resolve_restaurant_id(owner_id)
        except StoreError:
            logger.exception(f"Failed to load owner profile for {owner_id}")
            self._set_status("Failed to load owner profile.")
            self.render()
            return self.state

        if self.owner_id != owner_id:
            # Identity changed while the profile was loading
            return self.state

        if restaurant_id is None:
            self._set_status("No restaurant linked yet.")
            self.render()
            return self.state

        self._set_status("")
        self._start_realtime(restaurant_id)
        return self.state

    async def link_restaurant(self, restaurant_id: str, name: str = "") -> bool:
        """Create (or update) a restaurant and link the signed-in owner to it."""
        if self.owner_id is None:
            self._set_status("Sign in first.")
            return False

        is_valid, error = InputValidator.validate_restaurant_id(restaurant_id)
        if not is_valid:
            self._set_status(error)
            return False

        restaurant_id = restaurant_id.strip()
        owner_id = self.owner_id
        self._stop_listeners()
        self.state = SyncState.LINKING
        self._set_status("Linking…")

        try:
            await self.owners.link_and_create(
                owner_id, restaurant_id, name=name, email=self.owner_email
            )
        except StoreError:
            logger.exception(f"Failed to link {owner_id} to {restaurant_id}")
            self.state = SyncState.UNLINKED
            self._set_status("Failed to link restaurant.")
            self.render()
            return False

        if self.owner_id != owner_id or self.state is not SyncState.LINKING:
            return False

        self._set_status("Linked.")
        self._start_realtime(restaurant_id)
        return True

    def sign_out(self) -> None:
        """End the session and drop every listener."""
        self.teardown()
        self.owner_id = None
        self.owner_email = ""
        self._set_status("")
        self.render()

    def teardown(self) -> None:
        """Cancel pending writes, unsubscribe everything and clear the mirror."""
        self._stop_listeners()
        self.state = SyncState.UNLINKED

    def _stop_listeners(self) -> None:
        self._generation += 1
        cancelled = self.debouncer.cancel_all()
        if cancelled:
            logger.info(f"Dropped {cancelled} pending write(s) on teardown")

        if self._restaurant_sub is not None:
            self._restaurant_sub.unsubscribe()
            self._restaurant_sub = None
        if self._categories_sub is not None:
            self._categories_sub.unsubscribe()
            self._categories_sub = None
        for subscription in self._item_subs.values():
            subscription.unsubscribe()
        self._item_subs.clear()

        self.categories = {}
        self.items_by_category = {}
        self.restaurant_id = None
        self.restaurant_name = ""

    def _start_realtime(self, restaurant_id: str) -> None:
        self._stop_listeners()
        generation = self._generation
        self.restaurant_id = restaurant_id
        self.restaurant_name = restaurant_id
        self.state = SyncState.SYNCED
        logger.info(f"Dashboard synced to restaurant {restaurant_id}")

        self._restaurant_sub = self.store.listen_document(
            doc_path("restaurants", restaurant_id),
            partial(self._on_restaurant, generation),
        )
        self._categories_sub = self.store.listen(
            self._categories_path(),
            partial(self._on_categories, generation),
            order_by="name",
        )
        self.render()

    # ------------------------------------------------------------------
    # Snapshot callbacks
    # ------------------------------------------------------------------

    def _on_restaurant(self, generation: int, snapshot: DocumentSnapshot) -> None:
        if generation != self._generation:
            return
        self.restaurant_name = snapshot.to_dict().get("name") or self.restaurant_id or ""
        self.render()

    def _on_categories(self, generation: int, snapshots: list[DocumentSnapshot]) -> None:
        if generation != self._generation:
            return

        next_categories = {}
        for snap in snapshots:
            data = snap.to_dict()
            next_categories[snap.id] = {
                "id": snap.id,
                "name": data.get("name") or "",
                "enabled": data.get("enabled") is not False,
            }

        for category_id in set(self._item_subs) | set(self.items_by_category):
            if category_id in next_categories:
                continue
            subscription = self._item_subs.pop(category_id, None)
            if subscription is not None:
                subscription.unsubscribe()
            self.items_by_category.pop(category_id, None)
            self.debouncer.cancel_matching(lambda key, c=category_id: key[1] == c)
            logger.debug(f"Category {category_id} removed, item listener dropped")

        self.categories = next_categories

        for category_id in next_categories:
            if category_id in self._item_subs:
                continue
            self._item_subs[category_id] = self.store.listen(
                self._items_path(category_id),
                partial(self._on_items, generation, category_id),
                order_by="name",
            )

        self.render()

    def _on_items(
        self, generation: int, category_id: str, snapshots: list[DocumentSnapshot]
    ) -> None:
        if generation != self._generation or category_id not in self.categories:
            return

        items = {}
        for snap in snapshots:
            try:
                items[snap.id] = MenuItem.model_validate({**snap.to_dict(), "id": snap.id})
            except ValidationError as e:
                logger.warning(f"Ignoring malformed item {snap.path}: {e}")

        for item_id in set(self.items_by_category.get(category_id, {})) - set(items):
            self._cancel_item_writes(category_id, item_id)

        self.items_by_category[category_id] = items
        self.render()

    def render(self) -> DashboardView:
        """Build the full view from the mirror and hand it to ``on_render``."""
        view = render_dashboard(
            restaurant_id=self.restaurant_id,
            restaurant_name=self.restaurant_name,
            categories=self.categories,
            items_by_category=self.items_by_category,
            state=self.state.value,
            status=self.status,
            public_menu_url=self.public_menu_url,
        )
        self.last_view = view
        if self.on_render is not None:
            self.on_render(view)
        return view

    # ------------------------------------------------------------------
    # Category mutations
    # ------------------------------------------------------------------

    async def create_category(self, name: str) -> bool:
        """Add an enabled category at the end of the sort order."""
        if not self._require_restaurant():
            return False
        is_valid, error = InputValidator.validate_name(name, "Category name")
        if not is_valid:
            self._set_status(error)
            return False

        return await self._write(
            "Failed to add category.",
            lambda: self.store.add(
                self._categories_path(),
                {
                    "name": name.strip(),
                    "enabled": True,
                    "sortOrder": len(self.categories),
                    "createdAt": SERVER_TIMESTAMP,
                    "updatedAt": SERVER_TIMESTAMP,
                },
            ),
        )

    def rename_category(self, category_id: str, name: str) -> bool:
        """Schedule a debounced rename; True if a write was scheduled."""
        if not self._require_restaurant():
            return False
        is_valid, error = InputValidator.validate_name(name, "Category name")
        if not is_valid:
            self._set_status(error)
            return False

        self._schedule(
            ("category", category_id, "name"),
            "Failed to update category name.",
            self._category_path(category_id),
            {"name": name.strip()},
        )
        return True

    async def set_category_enabled(self, category_id: str, enabled: bool) -> bool:
        """Show or hide a category for diners.

        Applying the value the mirror already holds writes nothing.
        """
        if not self._require_restaurant():
            return False
        category = self.categories.get(category_id)
        if category is None:
            self._set_status("Category not found.")
            return False
        if category["enabled"] == bool(enabled):
            return True

        return await self._write(
            "Failed to update category.",
            lambda: self.store.update(
                self._category_path(category_id),
                {"enabled": bool(enabled), "updatedAt": SERVER_TIMESTAMP},
            ),
        )

    # ------------------------------------------------------------------
    # Item mutations
    # ------------------------------------------------------------------

    async def create_item(
        self,
        category_id: str,
        name: str,
        price,
        item_type: str = "veg",
        available: bool = True,
    ) -> bool:
        """Add an item to a category after validating name, price and type."""
        if not self._require_restaurant():
            return False
        if category_id not in self.categories:
            self._set_status("Category not found.")
            return False

        for is_valid, error in (
            InputValidator.validate_name(name, "Item name"),
            InputValidator.validate_price(price),
        ):
            if not is_valid:
                self._set_status(error)
                return False

        parsed_type = ItemType.parse(item_type)
        if parsed_type is None:
            self._set_status("Choose veg or non-veg.")
            return False

        return await self._write(
            "Failed to add item.",
            lambda: self.store.add(
                self._items_path(category_id),
                {
                    "name": name.strip(),
                    "price": parse_price(price),
                    "type": parsed_type.value,
                    "available": bool(available),
                    "createdAt": SERVER_TIMESTAMP,
                    "updatedAt": SERVER_TIMESTAMP,
                },
            ),
        )

    def rename_item(self, category_id: str, item_id: str, name: str) -> bool:
        """Schedule a debounced item rename."""
        if not self._require_restaurant():
            return False
        is_valid, error = InputValidator.validate_name(name, "Item name")
        if not is_valid:
            self._set_status(error)
            return False

        self._schedule(
            ("item", category_id, item_id, "name"),
            "Failed to update name.",
            self._item_path(category_id, item_id),
            {"name": name.strip()},
        )
        return True

    def reprice_item(self, category_id: str, item_id: str, price) -> bool:
        """Schedule a debounced price change; malformed prices are rejected."""
        if not self._require_restaurant():
            return False
        is_valid, error = InputValidator.validate_price(price)
        if not is_valid:
            self._set_status(error)
            return False

        self._schedule(
            ("item", category_id, item_id, "price"),
            "Failed to update price.",
            self._item_path(category_id, item_id),
            {"price": parse_price(price)},
        )
        return True

    async def set_item_type(self, category_id: str, item_id: str, item_type: str) -> bool:
        """Change the dietary type ("" clears it)."""
        if not self._require_restaurant():
            return False
        text = str(item_type or "").strip()
        parsed_type = ItemType.parse(text)
        if text and parsed_type is None:
            self._set_status("Choose veg or non-veg.")
            return False

        return await self._write(
            "Failed to update type.",
            lambda: self.store.update(
                self._item_path(category_id, item_id),
                {
                    "type": parsed_type.value if parsed_type else "",
                    "updatedAt": SERVER_TIMESTAMP,
                },
            ),
        )

    async def set_item_available(
        self, category_id: str, item_id: str, available: bool
    ) -> bool:
        """Mark an item available or sold out."""
        if not self._require_restaurant():
            return False
        return await self._write(
            "Failed to update availability.",
            lambda: self.store.update(
                self._item_path(category_id, item_id),
                {"available": bool(available), "updatedAt": SERVER_TIMESTAMP},
            ),
        )

    async def delete_item(self, category_id: str, item_id: str) -> bool:
        """Delete an item, dropping any debounced edit still pending for it."""
        if not self._require_restaurant():
            return False
        self._cancel_item_writes(category_id, item_id)
        return await self._write(
            "Failed to delete item.",
            lambda: self.store.delete(self._item_path(category_id, item_id)),
            busy_message="Deleting…",
        )

    async def move_item(self, from_category: str, item_id: str, to_category: str) -> bool:
        """Relocate an item to another category, keeping its id and fields.

        Read source, check destination, create destination, delete source.
        This is not atomic. The destination is written with ``create``, so
        if another writer fills the destination after the check, the move
        aborts with the source untouched. A failure between the create and
        the delete leaves the item in both categories until the owner
        deletes one copy.

        Returns:
            True if the item now lives in ``to_category``; False leaves the
            source as it was (the caller should revert its control)
        """
        if not self._require_restaurant():
            return False
        if not from_category or not to_category:
            return False
        if from_category == to_category:
            return True

        # Pending edits target the old path
        self._cancel_item_writes(from_category, item_id)
        old_path = self._item_path(from_category, item_id)
        new_path = self._item_path(to_category, item_id)

        self._set_status("Moving…")
        try:
            old_snap = await self.store.get(old_path)
            if not old_snap.exists:
                self._set_status("Item not found.")
                return False

            new_snap = await self.store.get(new_path)
            if new_snap.exists:
                self._set_status(DUPLICATE_ITEM_MESSAGE)
                return False

            await self.store.create(
                new_path, {**old_snap.to_dict(), "updatedAt": SERVER_TIMESTAMP}
            )
            await self.store.delete(old_path)

        except DocumentExistsError:
            logger.warning(f"Destination {new_path} appeared during move")
            self._set_status(DUPLICATE_ITEM_MESSAGE)
            return False
        except StoreError:
            logger.exception(f"Failed to move {old_path} to {new_path}")
            self._set_status("Failed to move item.")
            return False

        self._set_status("")
        logger.info(f"Moved item {item_id} from {from_category} to {to_category}")
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _set_status(self, text: str | None) -> None:
        self.status = text or ""

    def _require_restaurant(self) -> bool:
        if self.restaurant_id is None or self.state is not SyncState.SYNCED:
            self._set_status("Link a restaurant first.")
            return False
        return True

    async def _write(
        self,
        failure_message: str,
        write: Callable[[], Awaitable[object]],
        busy_message: str = "Saving…",
    ) -> bool:
        self._set_status(busy_message)
        try:
            await write()
        except StoreError:
            logger.exception(failure_message)
            self._set_status(failure_message)
            return False
        self._set_status("")
        return True

    def _schedule(self, key: tuple, failure_message: str, path: str, fields: dict) -> None:
        generation = self._generation

        async def write() -> None:
            if generation != self._generation:
                return
            await self._write(
                failure_message,
                lambda: self.store.update(path, {**fields, "updatedAt": SERVER_TIMESTAMP}),
            )

        self.debouncer.schedule(key, write)

    def _cancel_item_writes(self, category_id: str, item_id: str) -> int:
        return self.debouncer.cancel_matching(
            lambda key: key[0] == "item" and key[1] == category_id and key[2] == item_id
        )

    def _categories_path(self) -> str:
        return doc_path("restaurants", self.restaurant_id, "categories")

    def _category_path(self, category_id: str) -> str:
        return doc_path("restaurants", self.restaurant_id, "categories", category_id)

    def _items_path(self, category_id: str) -> str:
        return f"{self._category_path(category_id)}/items"

    def _item_path(self, category_id: str, item_id: str) -> str:
        return doc_path(
            "restaurants", self.restaurant_id, "categories", category_id, "items", item_id
        )
