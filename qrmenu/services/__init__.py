"""Menu resolution, owner dashboard sync and diner selection services."""

from qrmenu.services.cart import Cart, build_order_summary, offer_summary
from qrmenu.services.diner_session import DinerSession
from qrmenu.services.menu_resolver import MenuResolver
from qrmenu.services.realtime_sync import RealtimeSyncManager, SyncState

__all__ = [
    "Cart",
    "DinerSession",
    "MenuResolver",
    "RealtimeSyncManager",
    "SyncState",
    "build_order_summary",
    "offer_summary",
]
