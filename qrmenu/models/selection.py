"""Diner selection entries (client-local, never persisted)."""

from pydantic import BaseModel, Field

SelectionKey = tuple[str, str | None]


class SelectionEntry(BaseModel):
    """An item the diner picked, with its chosen size and quantity."""

    item_key: str = Field(..., description="Item id, or name for static menus")
    item_name: str = Field(..., description="Item display name")
    size: str | None = Field(None, description="Chosen size name, if any")
    quantity: int = Field(default=1, ge=1, description="How many")
    unit_price: float = Field(..., description="Price snapshot at selection time")

    @property
    def key(self) -> SelectionKey:
        """Cart key: (item identity, chosen size)."""
        return (self.item_key, self.size)

    @property
    def line_total(self) -> float:
        """Unit price times quantity."""
        return self.unit_price * self.quantity
