"""Menu source resolution for the diner view.

Sources are tried in order and the first one that yields a non-empty
menu wins:

1. The document store (restaurant, categories, items).
2. Static ``menu.json`` files, one candidate path per deployment prefix.
3. A built-in menu, so a diner always gets something renderable.
"""

import json
import logging
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from qrmenu.config import Config, get_config
from qrmenu.identifiers import slugify
from qrmenu.models import MenuCategory, MenuDocument, MenuItem, MenuSource, Restaurant
from qrmenu.services.fallback_menus import builtin_menu
from qrmenu.store import DocumentStore, StoreError, doc_path

logger = logging.getLogger(__name__)

MENU_FILENAME = "menu.json"
LOGO_FILENAME = "logo.png"

PLACEHOLDER_LOGO = (
    "data:image/svg+xml,%3Csvg xmlns=%22http://www.w3.org/2000/svg%22 "
    "viewBox=%220 0 100 100%22%3E%3Crect fill=%22%2322c55e%22 width=%22100%22 "
    "height=%22100%22/%3E%3Ctext x=%2250%22 y=%2260%22 text-anchor=%22middle%22 "
    "fill=%22white%22 font-size=%2240%22%3E%F0%9F%8D%BD%3C/text%3E%3C/svg%3E"
)


def _diner_item(data: Any, where: str) -> MenuItem | None:
    """Validate one item for the diner view; None (logged) if it is unusable."""
    try:
        item = MenuItem.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Skipping malformed item {where}: {e}")
        return None
    if not item.is_priced:
        logger.warning(f"Skipping item {where}: no price or priced size")
        return None
    return item


def parse_static_menu(data: Any, where: str = "menu.json") -> MenuDocument:
    """Build a MenuDocument from a parsed ``menu.json``, item by item.

    Malformed or unpriced items are skipped rather than failing the whole
    file. Items keep the id of their original position, so skipping one
    does not renumber the rest.

    Raises:
        ValueError: If the document itself is not a JSON object
    """
    if not isinstance(data, dict):
        raise ValueError("menu document must be a JSON object")

    raw_categories = data.get("categories")
    if not isinstance(raw_categories, list):
        raw_categories = []

    categories = []
    for position, raw_category in enumerate(raw_categories):
        try:
            category = MenuCategory.model_validate({**raw_category, "items": []})
        except (TypeError, ValidationError) as e:
            logger.warning(f"Skipping malformed category {where} categories[{position}]: {e}")
            continue

        raw_items = raw_category.get("items")
        if not isinstance(raw_items, list):
            raw_items = []

        items = []
        for index, raw_item in enumerate(raw_items):
            if isinstance(raw_item, dict) and not raw_item.get("id"):
                raw_item = {**raw_item, "id": f"{slugify(raw_item.get('name'))}-{index}"}
            item = _diner_item(raw_item, f"{where} categories[{position}].items[{index}]")
            if item is not None:
                items.append(item)
        category.items = items
        categories.append(category)

    return MenuDocument.model_validate({**data, "categories": categories})


class MenuResolver:
    """Resolves a restaurant identifier to a renderable MenuDocument.

    ``resolve`` never raises: every source failure is logged and the next
    source is tried.
    """

    def __init__(
        self,
        store: DocumentStore | None,
        http_client: httpx.AsyncClient,
        cfg: Config | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            store: Document store, or None to skip the structured lookup
            http_client: Client whose base URL serves the static files
            cfg: Configuration (defaults to the global config)
        """
        self.store = store
        self.http_client = http_client
        self.config = cfg or get_config()

    async def resolve(self, restaurant_id: str) -> MenuDocument:
        """Resolve the menu for a restaurant.

        Args:
            restaurant_id: Identifier from the QR code URL

        Returns:
            MenuDocument from the first source that has one
        """
        restaurant_id = restaurant_id.strip() or self.config.default_restaurant_id
        logger.info(f"Resolving menu for {restaurant_id!r}")

        document = await self.load_from_store(restaurant_id)
        if document is not None:
            return document

        document = await self.load_static_menu(self.candidate_paths(restaurant_id))
        if document is not None:
            if not document.restaurant.id:
                document.restaurant.id = restaurant_id
            return document

        logger.warning(f"No menu source answered for {restaurant_id!r}, using built-in")
        return builtin_menu(restaurant_id, self.config.default_restaurant_id)

    def candidate_paths(self, restaurant_id: str) -> list[str]:
        """Static file paths to try, in order, one per deployment prefix."""
        return self._scoped_paths(restaurant_id, MENU_FILENAME)

    def _scoped_paths(self, restaurant_id: str, filename: str) -> list[str]:
        tail = f"restaurants/{quote(restaurant_id, safe='')}/{filename}"
        paths = []
        for prefix in self.config.static_path_prefixes or [""]:
            prefix = prefix.strip("/")
            path = f"{prefix}/{tail}" if prefix else tail
            if path not in paths:
                paths.append(path)
        return paths

    # ------------------------------------------------------------------
    # Store
    # ------------------------------------------------------------------

    async def load_from_store(self, restaurant_id: str) -> MenuDocument | None:
        """Assemble a menu from the document store.

        Returns:
            MenuDocument, or None if the restaurant is unknown, has no items,
            or the store cannot be read
        """
        if self.store is None:
            return None

        try:
            restaurant_snap = await self.store.get(doc_path("restaurants", restaurant_id))
            if not restaurant_snap.exists:
                logger.info(f"No store record for {restaurant_id!r}")
                return None

            categories_path = doc_path("restaurants", restaurant_id, "categories")
            categories = []
            for cat_snap in await self.store.list_documents(categories_path):
                items = []
                items_path = f"{cat_snap.path}/items"
                for item_snap in await self.store.list_documents(items_path):
                    item_data = {**item_snap.to_dict(), "id": item_snap.id}
                    item = _diner_item(item_data, item_snap.path)
                    if item is not None:
                        items.append(item)
                items.sort(key=lambda item: (item.sort_order, item.name.lower()))
                category = MenuCategory.model_validate(
                    {**cat_snap.to_dict(), "id": cat_snap.id, "items": []}
                )
                category.items = items
                categories.append(category)

        except StoreError as e:
            logger.warning(f"Store lookup failed for {restaurant_id!r}: {e}")
            return None

        categories.sort(key=lambda category: (category.sort_order, category.name.lower()))
        data = restaurant_snap.to_dict()
        restaurant = Restaurant.model_validate({**data, "id": restaurant_id})
        document = MenuDocument(
            currency=restaurant.currency or self.config.default_currency,
            restaurant=restaurant,
            categories=categories,
            source=MenuSource.STORE,
        )
        if document.is_empty:
            logger.info(f"Store menu for {restaurant_id!r} is empty, falling through")
            return None
        return document

    # ------------------------------------------------------------------
    # Static files
    # ------------------------------------------------------------------

    async def load_static_menu(self, paths: list[str]) -> MenuDocument | None:
        """Fetch candidate paths in order and return the first parseable menu.

        Later candidates are not requested once one succeeds. Bodies are
        parsed as JSON whatever content type the server declares.

        Args:
            paths: Candidate paths relative to the client's base URL

        Returns:
            MenuDocument, or None if every candidate failed
        """
        for path in paths:
            try:
                response = await self.http_client.get(
                    path, headers={"Cache-Control": "no-store"}
                )
                if not response.is_success:
                    logger.warning(f"Failed to load {path}: HTTP {response.status_code}")
                    continue
                document = parse_static_menu(json.loads(response.text), path)
            except httpx.HTTPError as e:
                logger.warning(f"Failed to load {path}: {e}")
                continue
            except ValueError as e:
                # json.JSONDecodeError and pydantic ValidationError are both ValueErrors
                logger.warning(f"Unparseable menu at {path}: {e}")
                continue

            if document.is_empty:
                logger.warning(f"Menu at {path} has no items")
                continue

            document.source = MenuSource.STATIC
            logger.info(f"Loaded static menu from {path}")
            return document

        return None

    # ------------------------------------------------------------------
    # Logo
    # ------------------------------------------------------------------

    async def resolve_logo_url(self, restaurant_id: str) -> str:
        """Return the restaurant-scoped logo URL, or an inline placeholder."""
        for path in self._scoped_paths(restaurant_id, LOGO_FILENAME):
            try:
                response = await self.http_client.head(path)
            except httpx.HTTPError as e:
                logger.warning(f"Logo probe failed for {path}: {e}")
                continue
            if response.is_success:
                return str(self.http_client.base_url.join(path))
        return PLACEHOLDER_LOGO
