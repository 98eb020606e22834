"""Menu data models shared by the store, static files and views."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator
from pydantic.alias_generators import to_camel

from qrmenu.identifiers import slugify
from qrmenu.pricing import default_price, parse_price

# Bookkeeping fields written by the store, never part of the menu itself.
TIMESTAMP_FIELDS = frozenset({"createdAt", "updatedAt", "created_at", "updated_at"})


class MenuModel(BaseModel):
    """Base model reading and writing the camelCase document format."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ItemType(str, Enum):
    """Dietary type shown as a badge."""

    VEG = "veg"
    NON_VEG = "non-veg"

    @classmethod
    def parse(cls, value: Any) -> "ItemType | None":
        """Normalize free-form type text ("Veg", "nonveg", "") to a member."""
        text = str(value or "").strip().lower()
        if text == "veg":
            return cls.VEG
        if text in ("non-veg", "nonveg", "non veg"):
            return cls.NON_VEG
        return None


class MenuSource(str, Enum):
    """Where a resolved menu document came from."""

    STORE = "store"
    STATIC = "static"
    BUILTIN = "builtin"


class Restaurant(MenuModel):
    """Restaurant metadata shown in the menu header."""

    id: str = ""
    name: str = ""
    tagline: str = ""
    address: str = ""
    phone: str = ""
    open_hours: str = ""
    logo_url: str = ""
    currency: str = ""

    @model_validator(mode="before")
    @classmethod
    def _accept_hours_alias(cls, data: Any) -> Any:
        if isinstance(data, dict) and "openHours" not in data and "hours" in data:
            data = {**data, "openHours": data["hours"]}
        return data

    @field_validator("*", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class Size(MenuModel):
    """A size variant with its own price."""

    name: str = ""
    price: float | None = None

    @field_validator("price", mode="before")
    @classmethod
    def _parse_price(cls, value: Any) -> float | None:
        return parse_price(value)


class MenuItem(MenuModel):
    """A dish or drink.

    Known fields are typed; any other document keys (nutrition,
    ingredients, ...) are kept in ``extras`` so they survive round trips
    without leaking into the typed surface.
    """

    id: str = ""
    name: str = ""
    description: str = ""
    price: float | None = None
    sizes: list[Size] = Field(default_factory=list)
    type: ItemType | None = None
    available: bool = True
    image: str = ""
    tags: list[str] = Field(default_factory=list)
    nutrition: dict[str, Any] = Field(default_factory=dict)
    sort_order: int = 0
    extras: dict[str, Any] = Field(default_factory=dict)

    _category_key: str = PrivateAttr(default="")

    @model_validator(mode="before")
    @classmethod
    def _collect_extras(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        known = set()
        for name, field in cls.model_fields.items():
            known.add(name)
            if field.alias:
                known.add(field.alias)
        extras = dict(data.get("extras") or {})
        cleaned = {}
        for key, value in data.items():
            if key in TIMESTAMP_FIELDS:
                continue
            if key in known:
                cleaned[key] = value
            else:
                extras[key] = value
        cleaned["extras"] = extras
        return cleaned

    @field_validator("price", mode="before")
    @classmethod
    def _parse_price(cls, value: Any) -> float | None:
        return parse_price(value)

    @field_validator("type", mode="before")
    @classmethod
    def _parse_type(cls, value: Any) -> ItemType | None:
        return ItemType.parse(value)

    @field_validator("sizes", "tags", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("nutrition", mode="before")
    @classmethod
    def _none_to_dict(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("description", "image", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("available", mode="before")
    @classmethod
    def _available_unless_false(cls, value: Any) -> bool:
        return value is not False

    @property
    def key(self) -> str:
        """Identity used by selections.

        Inside a document this is ``<category key>/<item id>``, since item
        ids are only unique within their category. A standalone item uses
        its id, else its name.
        """
        if self._category_key and self.id:
            return f"{self._category_key}/{self.id}"
        return self.id or self.name

    @property
    def is_priced(self) -> bool:
        """True when a diner can be shown a price for the item."""
        return self.display_price is not None

    @property
    def display_price(self) -> float | None:
        """Price shown before a size is chosen."""
        return default_price(self.price, [size.price for size in self.sizes])

    @property
    def default_size(self) -> Size | None:
        """Size pre-selected for items with variants."""
        for size in self.sizes:
            if size.price is not None:
                return size
        return None

    def find_size(self, name: str | None) -> Size | None:
        """Look up a size by name (case-insensitive)."""
        if not name:
            return None
        wanted = name.strip().lower()
        for size in self.sizes:
            if size.name.strip().lower() == wanted:
                return size
        return None


class MenuCategory(MenuModel):
    """A named group of items."""

    id: str = ""
    name: str = ""
    enabled: bool = True
    sort_order: int = 0
    items: list[MenuItem] = Field(default_factory=list)

    @field_validator("enabled", mode="before")
    @classmethod
    def _enabled_unless_false(cls, value: Any) -> bool:
        return value is not False

    @field_validator("items", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def key(self) -> str:
        """Normalized grouping key."""
        return self.id or slugify(self.name)


class MenuDocument(MenuModel):
    """Restaurant metadata plus ordered categories and items."""

    currency: str = "USD"
    restaurant: Restaurant = Field(default_factory=Restaurant)
    categories: list[MenuCategory] = Field(default_factory=list)
    source: MenuSource = MenuSource.STATIC

    @field_validator("currency", mode="before")
    @classmethod
    def _default_currency(cls, value: Any) -> Any:
        return value or "USD"

    @field_validator("categories", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @model_validator(mode="after")
    def _assign_item_ids(self) -> "MenuDocument":
        # Same "<slug>-<position>" rule the migration uses for store ids
        for category in self.categories:
            for index, item in enumerate(category.items):
                if not item.id:
                    item.id = f"{slugify(item.name)}-{index}"
                item._category_key = category.key
        return self

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to show a diner."""
        return not any(category.items for category in self.categories)

    @property
    def visible_categories(self) -> list[MenuCategory]:
        """Categories shown to diners (disabled ones are hidden)."""
        return [category for category in self.categories if category.enabled]

    def category(self, key: str) -> MenuCategory | None:
        """Find a category by grouping key or name."""
        for category in self.categories:
            if key in (category.key, category.name):
                return category
        return None

    def find_item(self, key: str) -> MenuItem | None:
        """Find an item by its selection key across all categories."""
        for category in self.categories:
            for item in category.items:
                if item.key == key:
                    return item
        return None
