"""Tests for menu data models."""

import pytest
from pydantic import ValidationError

from qrmenu.models import (
    ItemType,
    MenuCategory,
    MenuDocument,
    MenuItem,
    MenuSource,
    Restaurant,
    SelectionEntry,
)


class TestMenuItem:
    """Test MenuItem parsing."""

    def test_defaults_for_missing_fields(self):
        """Test that absent optional fields default safely."""
        item = MenuItem.model_validate({"name": "Samosa", "price": 3.5})

        assert item.description == ""
        assert item.image == ""
        assert item.tags == []
        assert item.sizes == []
        assert item.nutrition == {}
        assert item.type is None
        assert item.available is True

    def test_null_fields_become_empty(self):
        """Test that explicit nulls never leak into the model."""
        item = MenuItem.model_validate(
            {"name": "Tea", "price": 1, "description": None, "tags": None, "sizes": None}
        )

        assert item.description == ""
        assert item.tags == []
        assert item.sizes == []

    def test_unknown_fields_go_to_extras(self):
        """Test that unknown keys are kept aside and timestamps dropped."""
        item = MenuItem.model_validate(
            {
                "name": "Biryani",
                "price": 9,
                "ingredients": ["rice", "chicken"],
                "updatedAt": "2024-01-01",
                "createdAt": "2024-01-01",
            }
        )

        assert item.extras == {"ingredients": ["rice", "chicken"]}
        assert "updatedAt" not in item.model_dump(by_alias=True)

    def test_price_strings_are_parsed(self):
        """Test that numeric strings are accepted as prices."""
        item = MenuItem.model_validate({"name": "Lassi", "price": " 2.25 "})
        assert item.price == 2.25

    def test_item_without_any_price_is_unpriced(self):
        """Test that an item with neither a price nor a priced size is kept but unpriced."""
        item = MenuItem.model_validate({"name": "Mystery", "price": "ask"})

        assert item.price is None
        assert item.display_price is None
        assert not item.is_priced

    def test_sized_item_defaults_to_first_size(self):
        """Test the default price policy for items with sizes."""
        item = MenuItem.model_validate(
            {
                "name": "Chicken Mandi",
                "sizes": [
                    {"name": "Half", "price": 520},
                    {"name": "Quarter", "price": 280},
                ],
            }
        )

        assert item.display_price == 520
        assert item.default_size.name == "Half"
        assert item.find_size("quarter").price == 280
        assert item.find_size("family") is None

    def test_only_false_disables_availability(self):
        """Test that availability is on unless explicitly false."""
        assert MenuItem.model_validate({"name": "A", "price": 1, "available": None}).available
        assert not MenuItem.model_validate({"name": "A", "price": 1, "available": False}).available

    def test_key_prefers_id(self):
        """Test selection identity."""
        assert MenuItem(id="samosa-0", name="Samosa", price=3).key == "samosa-0"
        assert MenuItem(name="Samosa", price=3).key == "Samosa"

    def test_item_type_parsing(self):
        """Test normalization of free-form type text."""
        assert ItemType.parse("Veg") is ItemType.VEG
        assert ItemType.parse("nonveg") is ItemType.NON_VEG
        assert ItemType.parse("non-veg") is ItemType.NON_VEG
        assert ItemType.parse("vegan") is None
        assert ItemType.parse(None) is None


class TestMenuDocument:
    """Test MenuDocument helpers."""

    def test_parse_static_menu(self, spice_garden_menu):
        """Test parsing the camelCase menu.json format."""
        document = MenuDocument.model_validate(spice_garden_menu)

        assert document.currency == "INR"
        assert document.restaurant.name == "Spice Garden"
        assert document.restaurant.open_hours == "12:00 - 22:00"
        assert document.categories[0].items[0].name == "Samosa"
        assert document.source is MenuSource.STATIC

    def test_missing_currency_defaults_to_usd(self):
        """Test the currency default."""
        assert MenuDocument.model_validate({"currency": ""}).currency == "USD"

    def test_is_empty(self):
        """Test that a document without items counts as empty."""
        document = MenuDocument(categories=[MenuCategory(name="Starters")])
        assert document.is_empty

    def test_visible_categories_hide_disabled(self):
        """Test that disabled categories are hidden from diners."""
        document = MenuDocument(
            categories=[
                MenuCategory(name="Starters", enabled=True),
                MenuCategory(name="Secret", enabled=False),
            ]
        )
        assert [c.name for c in document.visible_categories] == ["Starters"]

    def test_find_item_and_category(self, spice_garden_menu):
        """Test lookups by key."""
        document = MenuDocument.model_validate(spice_garden_menu)

        assert document.find_item("starters/samosa-0").price == 3.5
        assert document.find_item("Samosa") is None
        assert document.find_item("Dosa") is None
        assert document.category("starters").name == "Starters"

    def test_same_name_in_two_categories_gets_two_keys(self):
        """Test that item keys are scoped by category and position."""
        document = MenuDocument.model_validate(
            {
                "categories": [
                    {"name": "Drinks", "items": [{"name": "Lassi", "price": 2}]},
                    {
                        "name": "Desserts",
                        "items": [{"name": "Tea", "price": 1}, {"name": "Lassi", "price": 5}],
                    },
                ]
            }
        )

        drinks_lassi = document.categories[0].items[0]
        dessert_lassi = document.categories[1].items[1]
        assert drinks_lassi.key == "drinks/lassi-0"
        assert dessert_lassi.key == "desserts/lassi-1"
        assert document.find_item("desserts/lassi-1").price == 5

    def test_store_ids_are_kept(self):
        """Test that items with an id keep it, scoped by their category id."""
        document = MenuDocument(
            categories=[
                MenuCategory(
                    id="mains", name="Mains", items=[MenuItem(id="abc", name="Dal", price=4)]
                )
            ]
        )
        assert document.categories[0].items[0].key == "mains/abc"


class TestRestaurant:
    """Test Restaurant metadata."""

    def test_hours_alias(self):
        """Test that the legacy ``hours`` key fills open hours."""
        restaurant = Restaurant.model_validate({"name": "Ajwa", "hours": "9-5"})
        assert restaurant.open_hours == "9-5"

    def test_null_fields(self):
        """Test that null metadata becomes empty text."""
        restaurant = Restaurant.model_validate({"name": "Ajwa", "phone": None})
        assert restaurant.phone == ""


class TestSelectionEntry:
    """Test SelectionEntry."""

    def test_line_total(self):
        """Test unit price times quantity."""
        entry = SelectionEntry(item_key="samosa", item_name="Samosa", quantity=3, unit_price=3.5)
        assert entry.line_total == 10.5
        assert entry.key == ("samosa", None)

    def test_quantity_must_be_positive(self):
        """Test that zero-quantity entries cannot be built."""
        with pytest.raises(ValidationError):
            SelectionEntry(item_key="samosa", item_name="Samosa", quantity=0, unit_price=1)
