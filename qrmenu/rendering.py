"""Pure presentation functions: state in, view data out."""

from collections.abc import Mapping

from qrmenu.models import (
    DashboardCategory,
    DashboardView,
    ItemType,
    MenuCategory,
    MenuDocument,
    MenuItem,
)
from qrmenu.pricing import format_price

ALL_CATEGORIES = "all"
DEFAULT_TAGLINE = "Delicious • Fresh • Quality"

PLACEHOLDER_IMAGE = (
    "data:image/svg+xml,%3Csvg xmlns=%22http://www.w3.org/2000/svg%22 "
    "viewBox=%220 0 100 100%22%3E%3Crect fill=%22%23f3f4f6%22 width=%22100%22 "
    "height=%22100%22/%3E%3C/svg%3E"
)

BADGES = {
    ItemType.VEG: {"type": "veg", "label": "Vegetarian"},
    ItemType.NON_VEG: {"type": "non-veg", "label": "Non-Veg"},
}


def _sort_text(value: str) -> str:
    return (value or "").casefold()


def filter_items(
    menu: MenuDocument, active_category: str = ALL_CATEGORIES, search_query: str = ""
) -> list[tuple[MenuCategory, MenuItem]]:
    """Items a diner sees for the current category tab and search text.

    Disabled categories are never shown. The search matches name or
    description, case-insensitively.
    """
    query = search_query.strip().lower()
    matches = []
    for category in menu.visible_categories:
        if active_category != ALL_CATEGORIES and category.name != active_category:
            continue
        for item in category.items:
            if query and query not in item.name.lower() and query not in item.description.lower():
                continue
            matches.append((category, item))
    return matches


def render_item(
    item: MenuItem, currency: str, locale: str, selected: bool = False
) -> dict:
    """View data for one menu card."""
    return {
        "key": item.key,
        "name": item.name,
        "description": item.description,
        "image": item.image or PLACEHOLDER_IMAGE,
        "badge": BADGES.get(item.type),
        "tags": list(item.tags),
        "available": item.available,
        "selected": selected,
        "price_text": "" if item.sizes else format_price(item.display_price, currency, locale),
        "sizes": [
            {"name": size.name, "price_text": format_price(size.price, currency, locale)}
            for size in item.sizes
        ],
    }


def render_menu_view(
    menu: MenuDocument,
    active_category: str = ALL_CATEGORIES,
    search_query: str = "",
    selected_keys: set[str] | None = None,
    locale: str = "en_US",
) -> dict:
    """View data for the diner menu page.

    Args:
        menu: Resolved menu document
        active_category: Category tab name, or "all"
        search_query: Free-text filter
        selected_keys: Item keys currently in the selection
        locale: Locale for prices

    Returns:
        Dictionary with header, category tabs and grouped item sections
    """
    selected_keys = selected_keys or set()
    restaurant = menu.restaurant
    name = restaurant.name or "Restaurant"

    sections: dict[str, dict] = {}
    for category, item in filter_items(menu, active_category, search_query):
        section = sections.setdefault(
            category.key, {"key": category.key, "name": category.name, "items": []}
        )
        section["items"].append(
            render_item(item, menu.currency, locale, item.key in selected_keys)
        )

    empty_message = None
    if not sections:
        empty_message = "No items found"
        if search_query.strip():
            empty_message += f' for "{search_query.strip()}"'

    return {
        "restaurant": {
            "id": restaurant.id,
            "name": name,
            "tagline": restaurant.tagline or restaurant.open_hours or DEFAULT_TAGLINE,
            "logo_url": restaurant.logo_url,
        },
        "title": f"{name} - Menu",
        "currency": menu.currency,
        "source": menu.source.value,
        "categories": [ALL_CATEGORIES, *(c.name for c in menu.visible_categories)],
        "active_category": active_category,
        "sections": [
            {**section, "count": len(section["items"])} for section in sections.values()
        ],
        "empty_message": empty_message,
    }


def render_menu_text(view: dict) -> str:
    """Plain-text rendering of a diner menu view, items numbered from 1."""
    lines = [view["restaurant"]["name"], view["restaurant"]["tagline"], ""]
    if view["empty_message"]:
        lines.append(view["empty_message"])
        return "\n".join(lines)

    number = 0
    for section in view["sections"]:
        lines.append(f"== {section['name']} ({section['count']}) ==")
        for item in section["items"]:
            number += 1
            marks = []
            if item["badge"]:
                marks.append(item["badge"]["type"])
            if not item["available"]:
                marks.append("unavailable")
            if item["selected"]:
                marks.append("selected")
            suffix = f" [{', '.join(marks)}]" if marks else ""
            price = item["price_text"] or " / ".join(
                f"{size['name']} {size['price_text']}" for size in item["sizes"]
            )
            lines.append(f"{number:>3}. {item['name']}  {price}{suffix}")
            if item["description"]:
                lines.append(f"     {item['description']}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


def render_dashboard(
    restaurant_id: str | None,
    restaurant_name: str,
    categories: Mapping[str, Mapping],
    items_by_category: Mapping[str, Mapping[str, MenuItem]],
    state: str = "unlinked",
    status: str = "",
    public_menu_url: str = "",
) -> DashboardView:
    """Owner view: every category (disabled included) with its items, by name."""
    ordered = sorted(categories.values(), key=lambda c: _sort_text(c.get("name", "")))
    return DashboardView(
        restaurant_id=restaurant_id,
        restaurant_name=restaurant_name,
        public_menu_url=public_menu_url,
        state=state,
        status=status,
        categories=[
            DashboardCategory(
                id=category["id"],
                name=category.get("name", ""),
                enabled=category.get("enabled", True),
                items=sorted(
                    items_by_category.get(category["id"], {}).values(),
                    key=lambda item: _sort_text(item.name),
                ),
            )
            for category in ordered
        ],
    )
