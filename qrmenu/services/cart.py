"""Diner selection (cart) state and the order summary shown to a waiter."""

import logging
from collections.abc import Callable

from qrmenu.models import MenuItem, SelectionEntry, SelectionKey
from qrmenu.pricing import format_price

logger = logging.getLogger(__name__)


class ItemUnavailableError(ValueError):
    """The diner tried to select an unavailable item."""


class ClipboardUnavailableError(RuntimeError):
    """Clipboard access was denied or no clipboard exists."""


class Cart:
    """Client-local list of selections keyed by (item, size).

    Adding an item that is already selected with the same size raises
    its quantity by one. A quantity that drops to zero removes the entry.
    """

    def __init__(self) -> None:
        self._entries: list[SelectionEntry] = []

    @property
    def entries(self) -> list[SelectionEntry]:
        """Selections in the order they were first added."""
        return list(self._entries)

    @property
    def count(self) -> int:
        """Total number of units selected."""
        return sum(entry.quantity for entry in self._entries)

    @property
    def total(self) -> float:
        """Sum of unit price times quantity over every entry."""
        return sum(entry.line_total for entry in self._entries)

    @property
    def is_empty(self) -> bool:
        return not self._entries

    @property
    def item_keys(self) -> set[str]:
        """Keys of every item with at least one selection."""
        return {entry.item_key for entry in self._entries}

    def get(self, key: SelectionKey) -> SelectionEntry | None:
        """Entry for a (item key, size) pair, if selected."""
        for entry in self._entries:
            if entry.key == key:
                return entry
        return None

    def add(self, item: MenuItem, size_name: str | None = None) -> SelectionEntry:
        """Select an item, or one more of it if already selected.

        Items with sizes default to their first priced size. The unit
        price is snapshotted at the time of the first add.

        Args:
            item: The menu item
            size_name: Chosen size; ignored for items without sizes

        Returns:
            The new or updated entry

        Raises:
            ItemUnavailableError: If the item is marked unavailable
            ValueError: If the size does not exist for this item
        """
        if not item.available:
            msg = f"{item.name} is unavailable"
            raise ItemUnavailableError(msg)

        size = None
        if item.sizes:
            size = item.find_size(size_name) if size_name else item.default_size
            if size is None or size.price is None:
                msg = f"{item.name} has no size {size_name!r}"
                raise ValueError(msg)

        key = (item.key, size.name if size else None)
        entry = self.get(key)
        if entry is not None:
            entry.quantity += 1
            logger.debug(f"Selection {key} quantity now {entry.quantity}")
            return entry

        entry = SelectionEntry(
            item_key=item.key,
            item_name=item.name,
            size=size.name if size else None,
            quantity=1,
            unit_price=size.price if size else item.display_price,
        )
        self._entries.append(entry)
        logger.debug(f"Selected {key}")
        return entry

    def adjust_quantity(self, key: SelectionKey, delta: int) -> SelectionEntry | None:
        """Change an entry's quantity; at zero or below the entry is removed.

        Returns:
            The updated entry, or None if it was removed or never existed
        """
        entry = self.get(key)
        if entry is None:
            return None
        new_quantity = entry.quantity + delta
        if new_quantity <= 0:
            self.remove(key)
            return None
        entry.quantity = new_quantity
        return entry

    def remove(self, key: SelectionKey) -> bool:
        """Delete an entry whatever its quantity; True if it existed."""
        before = len(self._entries)
        self._entries = [entry for entry in self._entries if entry.key != key]
        return len(self._entries) != before

    def clear(self) -> None:
        """Remove every entry."""
        self._entries = []


def build_order_summary(
    cart: Cart,
    restaurant_name: str,
    currency: str = "USD",
    table: str | None = None,
    locale: str = "en_US",
) -> str:
    """Human-readable order for the diner to show or send to a waiter.

    Example:
        Spice Garden
        Table: 4

        2 x Samosa  ₹7.00

        Total: ₹7.00
    """
    lines = [restaurant_name or "Restaurant"]
    if table:
        lines.append(f"Table: {table}")
    lines.append("")

    if cart.is_empty:
        lines.append("No items selected")
    for entry in cart.entries:
        name = f"{entry.item_name} ({entry.size})" if entry.size else entry.item_name
        lines.append(
            f"{entry.quantity} x {name}  {format_price(entry.line_total, currency, locale)}"
        )

    lines.append("")
    lines.append(f"Total: {format_price(cart.total, currency, locale)}")
    return "\n".join(lines)


def offer_summary(
    summary: str,
    copy_to_clipboard: Callable[[str], None],
    show_fallback: Callable[[str], None],
) -> bool:
    """Copy the summary to the clipboard, or show it if that is refused.

    Returns:
        True if the clipboard copy worked
    """
    try:
        copy_to_clipboard(summary)
    except ClipboardUnavailableError as e:
        logger.info(f"Clipboard unavailable ({e}), showing summary instead")
        show_fallback(summary)
        return False
    return True
