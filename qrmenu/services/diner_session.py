"""Diner controller owning all state of one menu-browsing session."""

import logging
from dataclasses import dataclass, field

from qrmenu.models import MenuDocument, SelectionEntry
from qrmenu.rendering import ALL_CATEGORIES, render_menu_view
from qrmenu.services.cart import Cart, build_order_summary

logger = logging.getLogger(__name__)


@dataclass
class DinerState:
    """Everything the diner view renders from."""

    restaurant_id: str
    menu: MenuDocument
    cart: Cart = field(default_factory=Cart)
    active_category: str = ALL_CATEGORIES
    search_query: str = ""
    table: str | None = None


class DinerSession:
    """Applies diner actions to a DinerState and renders it."""

    def __init__(
        self,
        restaurant_id: str,
        menu: MenuDocument,
        table: str | None = None,
        locale: str = "en_US",
    ) -> None:
        self.state = DinerState(restaurant_id=restaurant_id, menu=menu, table=table)
        self.locale = locale

    def select_category(self, name: str) -> None:
        """Switch the category tab; unknown names fall back to all."""
        names = {category.name for category in self.state.menu.visible_categories}
        self.state.active_category = name if name in names else ALL_CATEGORIES

    def search(self, query: str) -> None:
        self.state.search_query = query.strip()

    def add(self, item_key: str, size: str | None = None) -> SelectionEntry:
        """Add one of an item (by key) to the selection.

        Raises:
            KeyError: If no such item is on the menu
        """
        item = self.state.menu.find_item(item_key)
        if item is None:
            raise KeyError(item_key)
        return self.state.cart.add(item, size)

    def view(self) -> dict:
        """Render the menu page for the current state."""
        view = render_menu_view(
            self.state.menu,
            active_category=self.state.active_category,
            search_query=self.state.search_query,
            selected_keys=self.state.cart.item_keys,
            locale=self.locale,
        )
        view["selection"] = {
            "count": self.state.cart.count,
            "entries": [entry.model_dump() for entry in self.state.cart.entries],
            "total": self.state.cart.total,
        }
        return view

    def visible_item_keys(self) -> list[str]:
        """Item keys in the order the current view lists them."""
        return [
            item["key"] for section in self.view()["sections"] for item in section["items"]
        ]

    def summary(self) -> str:
        """Order summary for the current selection."""
        return build_order_summary(
            self.state.cart,
            self.state.menu.restaurant.name,
            currency=self.state.menu.currency,
            table=self.state.table,
            locale=self.locale,
        )
