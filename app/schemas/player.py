"""Canonical player, session and profile models.

Handlers work with these names only; alias keys (`uid`, `steamId`,
`sessionKey`, ...) are produced by the envelope builder at serialization time.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def display_name_for(player_id: str) -> str:
    return f"Player_{player_id[-6:]}"


class RankInfo(BaseModel):
    name: str = "Bronze"
    point: int = 0
    mmr: int = 0


class Profile(BaseModel):
    """Static per-player defaults; nothing in the server mutates them."""

    level: int = 1
    exp: int = 0
    role: str = "Survivor"
    coin: int = 0
    gem: int = 0
    rank: RankInfo = Field(default_factory=RankInfo)
    lootbox_balance: int = 0


class Player(BaseModel):
    player_id: str
    display_name: str
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Session(BaseModel):
    token: str
    player_id: str
    created_at: datetime = Field(default_factory=utc_now)
    expires_at: datetime

    # Echoed back by later handlers
    ticket: str = ""
    auth_type: str = "steam"
    client_version: str = ""

    @classmethod
    def issue(
        cls,
        token: str,
        player_id: str,
        ttl_seconds: int,
        issued_at: datetime | None = None,
        **kwargs: Any,
    ) -> "Session":
        created_at = issued_at or utc_now()
        return cls(
            token=token,
            player_id=player_id,
            created_at=created_at,
            expires_at=created_at + timedelta(seconds=ttl_seconds),
            **kwargs,
        )


class LogEntry(BaseModel):
    type: str
    player_id: str | None = None
    payload: Any = None
    created_at: datetime = Field(default_factory=utc_now)


class StoreProduct(BaseModel):
    short_code: str
    name: str
    type: str = "bundle"
    price_base: int = 0
    currency: str = "gem"
    tags: list[str] = Field(default_factory=list)


class InventoryItem(BaseModel):
    item_type: str
    short_code: str
    quantity: int = 1


DEFAULT_STORE_PRODUCTS = [
    StoreProduct(short_code="pack_starter", name="Starter Pack", type="bundle"),
    StoreProduct(short_code="cos_basic", name="Basic Cosmetic", type="cosmetic"),
]
