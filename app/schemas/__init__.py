"""Canonical models shared by the domain and API layers."""

from .player import (
    DEFAULT_STORE_PRODUCTS,
    InventoryItem,
    LogEntry,
    Player,
    Profile,
    RankInfo,
    Session,
    StoreProduct,
    display_name_for,
    utc_now,
)

__all__ = [
    "DEFAULT_STORE_PRODUCTS",
    "InventoryItem",
    "LogEntry",
    "Player",
    "Profile",
    "RankInfo",
    "Session",
    "StoreProduct",
    "display_name_for",
    "utc_now",
]
