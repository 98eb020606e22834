"""Administration commands: static menu migration and owner provisioning.

Run from the project root:

    qrmenu-admin migrate [--dir restaurants] [--only ajwa]
    qrmenu-admin link-owner --owner-id UID --restaurant-id ajwa [--email a@b.c]

Migration reads ``restaurants/<id>/menu.json`` and merge-writes the
restaurant, its categories and items into the document store. Category
and item ids are derived from names, so running it again updates the
same documents instead of duplicating them.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from qrmenu.config import get_config, setup_logging
from qrmenu.guardrails import InputValidator
from qrmenu.identifiers import slugify
from qrmenu.models import ItemType
from qrmenu.pricing import default_price, parse_price
from qrmenu.services.owner_service import OwnerService
from qrmenu.store import SERVER_TIMESTAMP, DocumentStore, doc_path, get_document_store

logger = logging.getLogger(__name__)

MENU_FILENAME = "menu.json"


def list_restaurant_ids(restaurants_dir: Path) -> list[str]:
    """Sub-directory names of the restaurants directory, sorted."""
    if not restaurants_dir.is_dir():
        return []
    return sorted(path.name for path in restaurants_dir.iterdir() if path.is_dir())


def _migrated_sizes(sizes) -> list[dict] | None:
    if not isinstance(sizes, list) or not sizes:
        return None
    return [
        {"name": str(size.get("name") or ""), "price": parse_price(size.get("price"))}
        for size in sizes
        if isinstance(size, dict)
    ]


async def migrate_restaurant(
    store: DocumentStore, restaurants_dir: Path, restaurant_id: str
) -> bool:
    """Upsert one restaurant's static menu into the store.

    Args:
        store: Target document store
        restaurants_dir: Directory holding ``<id>/menu.json``
        restaurant_id: Directory name of the restaurant

    Returns:
        True if migrated, False if the directory has no menu.json
    """
    menu_path = restaurants_dir / restaurant_id / MENU_FILENAME
    if not menu_path.is_file():
        print(f"[skip] {restaurant_id}: {MENU_FILENAME} not found")
        return False

    data = json.loads(menu_path.read_text(encoding="utf-8"))
    restaurant = data.get("restaurant") or {}
    categories = data.get("categories") if isinstance(data.get("categories"), list) else []

    await store.set(
        doc_path("restaurants", restaurant_id),
        {
            "id": restaurant_id,
            "name": restaurant.get("name") or restaurant_id,
            "tagline": restaurant.get("tagline") or "",
            "logoUrl": restaurant.get("logoUrl") or "",
            "address": restaurant.get("address") or "",
            "phone": restaurant.get("phone") or "",
            "openHours": restaurant.get("openHours") or restaurant.get("hours") or "",
            "currency": data.get("currency") or "",
            "updatedAt": SERVER_TIMESTAMP,
        },
        merge=True,
    )

    item_count = 0
    for position, category in enumerate(categories):
        category = category or {}
        category_name = category.get("name") or f"Category {position + 1}"
        category_id = slugify(category_name)
        category_path = doc_path("restaurants", restaurant_id, "categories", category_id)

        await store.set(
            category_path,
            {
                "name": category_name,
                "enabled": category.get("enabled") is not False,
                "sortOrder": position,
                "updatedAt": SERVER_TIMESTAMP,
            },
            merge=True,
        )

        items = category.get("items") if isinstance(category.get("items"), list) else []
        for index, item in enumerate(items):
            item = item or {}
            item_name = item.get("name") or f"Item {index + 1}"
            # Position suffix keeps same-named items apart
            item_id = f"{slugify(item_name)}-{index}"
            sizes = _migrated_sizes(item.get("sizes"))
            item_type = ItemType.parse(item.get("type"))

            await store.set(
                f"{category_path}/items/{item_id}",
                {
                    "name": item_name,
                    "description": item.get("description") or "",
                    "price": default_price(
                        item.get("price"), [size["price"] for size in sizes or []]
                    ),
                    "sizes": sizes,
                    "type": item_type.value if item_type else "",
                    "tags": item.get("tags") if isinstance(item.get("tags"), list) else [],
                    "image": item.get("image") or "",
                    "available": item.get("available") is not False,
                    "sortOrder": index,
                    "updatedAt": SERVER_TIMESTAMP,
                },
                merge=True,
            )
            item_count += 1

    logger.info(f"Migrated {restaurant_id}: {len(categories)} categories, {item_count} items")
    print(f"[ok] Migrated {restaurant_id}")
    return True


async def migrate_all(
    store: DocumentStore, restaurants_dir: Path, only: list[str] | None = None
) -> list[str]:
    """Migrate every restaurant directory (or just ``only``), sequentially.

    Returns:
        Ids that were migrated
    """
    restaurant_ids = list_restaurant_ids(restaurants_dir)
    if only:
        restaurant_ids = [rid for rid in restaurant_ids if rid in only]
    if not restaurant_ids:
        print(f"No restaurants found in {restaurants_dir}")
        return []

    migrated = []
    for restaurant_id in restaurant_ids:
        if await migrate_restaurant(store, restaurants_dir, restaurant_id):
            migrated.append(restaurant_id)
    print("Done.")
    return migrated


async def link_owner(
    store: DocumentStore, owner_id: str, restaurant_id: str, email: str = ""
) -> bool:
    """Write an owner's restaurant link, creating the restaurant record if needed."""
    is_valid, error = InputValidator.validate_restaurant_id(restaurant_id)
    if not is_valid:
        print(f"❌ {error}")
        return False
    if not owner_id.strip():
        print("❌ Owner id cannot be empty.")
        return False

    await OwnerService(store).link_and_create(owner_id.strip(), restaurant_id.strip(), email=email)
    print(f"[ok] {owner_id} -> restaurants/{restaurant_id}")
    return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="QR Menu administration")
    subparsers = parser.add_subparsers(dest="command", required=True)

    migrate = subparsers.add_parser("migrate", help="Upsert static menu.json files")
    migrate.add_argument("--dir", help="Restaurants directory (default: RESTAURANTS_DIR)")
    migrate.add_argument(
        "--only", action="append", help="Restaurant id to migrate (repeatable)"
    )

    link = subparsers.add_parser("link-owner", help="Link an owner account to a restaurant")
    link.add_argument("--owner-id", required=True, help="Identity-provider user id")
    link.add_argument("--restaurant-id", required=True, help="Restaurant id")
    link.add_argument("--email", default="", help="Owner email")
    return parser


async def _run(args: argparse.Namespace, store: DocumentStore) -> int:
    try:
        if args.command == "migrate":
            config = get_config()
            restaurants_dir = Path(args.dir or config.restaurants_dir)
            await migrate_all(store, restaurants_dir, args.only)
            return 0
        return 0 if await link_owner(store, args.owner_id, args.restaurant_id, args.email) else 1
    finally:
        await store.close()


def main(argv: list[str] | None = None) -> None:
    """Entry point for ``qrmenu-admin``."""
    args = build_parser().parse_args(argv)
    config = get_config()
    setup_logging(config)

    store = get_document_store()
    if not config.uses_firestore():
        logger.warning("STORE_BACKEND is 'memory'; writes will not outlive this process")

    sys.exit(asyncio.run(_run(args, store)))


if __name__ == "__main__":
    main()
