"""Data models for the QR Menu system."""

from qrmenu.models.dashboard import DashboardCategory, DashboardView
from qrmenu.models.menu import (
    ItemType,
    MenuCategory,
    MenuDocument,
    MenuItem,
    MenuSource,
    Restaurant,
    Size,
)
from qrmenu.models.selection import SelectionEntry, SelectionKey

__all__ = [
    "DashboardCategory",
    "DashboardView",
    "ItemType",
    "MenuCategory",
    "MenuDocument",
    "MenuItem",
    "MenuSource",
    "Restaurant",
    "SelectionEntry",
    "SelectionKey",
    "Size",
]
