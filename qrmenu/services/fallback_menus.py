"""Built-in menus served when neither the store nor static files answer."""

from qrmenu.models import MenuDocument, MenuSource

BUILTIN_MENUS: dict[str, dict] = {
    "ajwa": {
        "currency": "INR",
        "restaurant": {
            "name": "Ajwa",
            "tagline": "Delicious • Fresh • Quality",
            "openHours": "11:00 - 23:00",
        },
        "categories": [
            {
                "name": "Starters",
                "items": [
                    {
                        "name": "Chicken 65",
                        "description": "Spicy deep-fried chicken bites.",
                        "price": 220,
                        "type": "non-veg",
                    },
                    {
                        "name": "Paneer Tikka",
                        "description": "Char-grilled cottage cheese with peppers.",
                        "price": 200,
                        "type": "veg",
                    },
                ],
            },
            {
                "name": "Mandi",
                "items": [
                    {
                        "name": "Chicken Mandi",
                        "description": "Slow-cooked chicken over fragrant rice.",
                        "sizes": [
                            {"name": "Quarter", "price": 280},
                            {"name": "Half", "price": 520},
                            {"name": "Full", "price": 980},
                        ],
                        "type": "non-veg",
                    },
                ],
            },
            {
                "name": "Drinks",
                "items": [
                    {
                        "name": "Mint Lime",
                        "description": "Fresh lime with crushed mint.",
                        "price": 80,
                        "type": "veg",
                    },
                ],
            },
        ],
    },
    "spice-garden": {
        "currency": "INR",
        "restaurant": {"name": "Spice Garden", "tagline": "Home-style Indian"},
        "categories": [
            {
                "name": "Starters",
                "items": [
                    {
                        "name": "Samosa",
                        "description": "Crisp pastry filled with spiced potato.",
                        "price": 3.50,
                        "type": "veg",
                    },
                ],
            },
        ],
    },
}


def builtin_menu(restaurant_id: str, default_id: str) -> MenuDocument:
    """Return the built-in menu for ``restaurant_id``.

    Unknown identifiers get the default restaurant's menu, still labelled
    with the requested identifier.

    Args:
        restaurant_id: Requested restaurant
        default_id: Restaurant whose menu stands in for unknown ones

    Returns:
        A fresh MenuDocument marked as built-in
    """
    key = restaurant_id.strip().lower()
    label = key
    if key not in BUILTIN_MENUS:
        label = restaurant_id.strip()
        key = default_id if default_id in BUILTIN_MENUS else "ajwa"
    document = MenuDocument.model_validate(BUILTIN_MENUS[key])
    document.restaurant.id = label or key
    document.source = MenuSource.BUILTIN
    return document
