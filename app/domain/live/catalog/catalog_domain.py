"""Static catalog handlers: store, lootbox, ranked, mail, announcement,
version, quest/curse catalogs, player profile and currency, item lists,
lobby/matchmaking, log sinks and the generic payload cache.

None of these carry game logic; they echo the caller's identity (when a
session resolves, or a `playerId` is named) next to fixed payloads.
"""

from typing import Any

from loguru import logger

from app.app_config import AppEnvironConfig
from app.domain.live.envelope import EnvelopeKind, build_envelope
from app.domain.live.player.player_domain import identity_fields, requested_player_id
from app.domain.live.session.session_registry import SessionRegistry
from app.domain.live.store.persistence import PersistenceAdapter
from app.schemas import DEFAULT_STORE_PRODUCTS, Profile, Session, StoreProduct, display_name_for

SERVER_VERSION = "1.0.6.0"

QUEST_SKIN_GOALS = [
    {"id": "qs_001", "skin": "sk_default", "goal": 10, "progress": 0},
]
CURSE_RELICS = [
    {"id": "cr_001", "name": "Cursed Relic", "level": 1},
]

CATALOG_LISTS: dict[str, list[dict[str, Any]]] = {
    "character": [
        {"id": "sv_001", "name": "Tim", "role": "Survivor", "level": 1, "owned": True},
        {"id": "sp_001", "name": "Belle", "role": "Hunter", "level": 1, "owned": True},
    ],
    "skin": [
        {"id": "sk_sv_001_default", "charId": "sv_001", "name": "Default", "owned": True},
        {"id": "sk_sp_001_default", "charId": "sp_001", "name": "Default", "owned": True},
    ],
    "item": [
        {"id": "item_syringe", "name": "Syringe", "count": 1},
        {"id": "item_holy_water", "name": "Holy Water", "count": 1},
    ],
}
LOBBY_ACTIONS = ("create", "join", "leave")
MATCHMAKING_ACTIONS = ("search", "cancel")
LOBBY_ID = "lobby_001"


def product_entry(product: StoreProduct) -> dict[str, Any]:
    return {
        "shortCode": product.short_code,
        "short_code": product.short_code,
        "name": product.name,
        "type": product.type,
        "price": product.price_base,
        "priceBase": product.price_base,
        "currency": product.currency,
        "tags": product.tags,
    }


class CatalogService:
    def __init__(self, config: AppEnvironConfig, store: PersistenceAdapter, registry: SessionRegistry):
        self._config = config
        self._store = store
        self._registry = registry

    async def _session(self, token: str | None) -> Session | None:
        return await self._registry.resolve(token)

    async def _target(self, token: str | None, player_id: str | None = None) -> tuple[Session | None, str | None]:
        """Resolved session and the player the call is about; a named `player_id` wins."""
        session = await self._session(token)
        if player_id:
            return session, player_id
        return session, session.player_id if session else None

    async def _profile(self, player_id: str | None) -> Profile:
        if player_id is None:
            return Profile()
        return await self._store.read_profile(player_id)

    async def _envelope(
        self,
        kind: EnvelopeKind,
        token: str | None,
        payload: dict[str, Any],
        player_id: str | None = None,
    ) -> dict[str, Any]:
        session = await self._session(token)
        return build_envelope(kind, {**identity_fields(session, self._config, player_id), **payload})

    async def store_list(self, token: str | None) -> dict[str, Any]:
        products = await self._products()
        entries = [product_entry(p) for p in products]
        tags = sorted({tag for p in products for tag in p.tags} | {p.type for p in products})
        return await self._envelope(
            EnvelopeKind.STORE_OK,
            token,
            {
                "store": entries,
                "products": entries,
                "tags": tags,
                "priceMap": {p.short_code: {p.currency: p.price_base} for p in products},
                "next": "/live/lootbox/balance",
            },
        )

    async def _products(self) -> list[StoreProduct]:
        return await self._store.list_store_products() or DEFAULT_STORE_PRODUCTS

    async def lootbox_balance(self, token: str | None, player_id: str | None = None) -> dict[str, Any]:
        session, player_id = await self._target(token, player_id)
        balance = (await self._profile(player_id)).lootbox_balance
        return build_envelope(
            EnvelopeKind.LOOTBOX_OK,
            {
                **identity_fields(session, self._config, player_id),
                "lootbox": {"balance": balance, "entries": []},
                "lootBoxBalance": {"balance": balance, "boxes": []},
            },
        )

    async def ranked_info(self, token: str | None, player_id: str | None = None) -> dict[str, Any]:
        session, player_id = await self._target(token, player_id)
        rank = (await self._profile(player_id)).rank
        return build_envelope(
            EnvelopeKind.RANKED_OK,
            {
                **identity_fields(session, self._config, player_id),
                "ranked": {
                    "tier": rank.name,
                    "rankName": rank.name,
                    "rankPoint": rank.point,
                    "mmr": rank.mmr,
                    "win": 0,
                    "lose": 0,
                    "draw": 0,
                    "leaderboard": [],
                },
            },
        )

    async def player_profile(self, token: str | None, player_id: str | None = None) -> dict[str, Any]:
        session, player_id = await self._target(token, player_id)
        profile = await self._profile(player_id)
        player: dict[str, Any] = {"level": profile.level, "exp": profile.exp, "role": profile.role}
        if player_id:
            player.update(playerId=player_id, displayName=display_name_for(player_id))
        return build_envelope(
            EnvelopeKind.GENERIC_OK,
            {
                **identity_fields(session, self._config, player_id),
                "profile": profile,
                "player": player,
            },
        )

    async def player_currency(self, token: str | None, player_id: str | None = None) -> dict[str, Any]:
        session, player_id = await self._target(token, player_id)
        profile = await self._profile(player_id)
        balance = {"coin": profile.coin, "gem": profile.gem}
        return build_envelope(
            EnvelopeKind.GENERIC_OK,
            {
                **identity_fields(session, self._config, player_id),
                "currency": balance,
                "currencies": balance,
                "balance": balance,
            },
        )

    async def catalog_list(self, kind: str, token: str | None) -> dict[str, Any]:
        """`{list: [...]}` payload for characters, skins, items or products."""
        if kind == "product":
            entries = [product_entry(p) for p in await self._products()]
        else:
            entries = CATALOG_LISTS[kind]
        return await self._envelope(EnvelopeKind.GENERIC_OK, token, {"list": entries, "total": len(entries)})

    async def lobby(self, action: str, token: str | None, player_id: str | None = None) -> dict[str, Any]:
        session, player_id = await self._target(token, player_id)
        members = [player_id] if player_id and action not in ("leave", "cancel") else []
        return build_envelope(
            EnvelopeKind.GENERIC_OK,
            {
                **identity_fields(session, self._config, player_id),
                "action": action,
                "lobbyId": LOBBY_ID,
                "members": members,
            },
        )

    async def mailbox(self, token: str | None, action: str = "get") -> dict[str, Any]:
        return await self._envelope(
            EnvelopeKind.MAIL_OK,
            token,
            {"action": action, "mailbox": [], "mails": [], "unread": 0},
        )

    async def announcement(self, token: str | None) -> dict[str, Any]:
        return await self._envelope(
            EnvelopeKind.ANNOUNCEMENT_OK,
            token,
            {"announcement": [], "announcements": []},
        )

    async def version(self, token: str | None, client_version: str | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "serverVersion": SERVER_VERSION,
            "latestVersion": SERVER_VERSION,
            "force": False,
            "maintenance": False,
        }
        if client_version:
            payload["clientVersion"] = client_version
        else:
            session = await self._session(token)
            if session is None:
                payload["clientVersion"] = self._config.DEFAULT_CLIENT_VERSION
        return await self._envelope(EnvelopeKind.VERSION_OK, token, payload)

    async def quest_skin(self, token: str | None) -> dict[str, Any]:
        return await self._envelope(EnvelopeKind.GENERIC_OK, token, {"questSkin": {"goals": QUEST_SKIN_GOALS}})

    async def curse_relic(self, token: str | None) -> dict[str, Any]:
        return await self._envelope(
            EnvelopeKind.GENERIC_OK,
            token,
            {"curseRelic": {"relics": CURSE_RELICS, "curses": []}},
        )

    async def _attributed_player_id(self, token: str | None, body: Any) -> str | None:
        """`playerId` named in the body, else the owner of the caller's token.

        The latest-session fallback is not used here, so an anonymous entry
        stays anonymous.
        """
        player_id = requested_player_id(body)
        if player_id:
            return player_id
        session = await self._registry.lookup(token)
        return session.player_id if session else None

    async def log(self, log_type: str, token: str | None, payload: Any) -> dict[str, Any]:
        """Append a log entry; the body's `playerId` or the caller's player id is attached."""
        player_id = await self._attributed_player_id(token, payload)
        await self._store.append_log(log_type, player_id, payload)
        logger.debug("log type={} player_id={}", log_type, player_id)
        return await self._envelope(
            EnvelopeKind.GENERIC_OK,
            token,
            {"logged": True, "type": log_type},
            player_id,
        )

    async def cache_get(self, name: str) -> Any:
        payload = await self._store.get_cached_payload(name)
        if payload is None:
            return {"ok": True, "data": []}
        return payload

    async def cache_post(self, name: str, body: Any, token: str | None = None) -> dict[str, Any]:
        player_id = await self._attributed_player_id(token, body)
        await self._store.append_log(name.lower(), player_id, body)
        if isinstance(body, dict) and isinstance(body.get("payload"), dict):
            await self._store.put_cached_payload(name, body["payload"])
        return {"ok": True}

    async def echo(
        self,
        token: str | None,
        method: str,
        path: str,
        query: dict[str, Any],
        body: Any,
    ) -> dict[str, Any]:
        return await self._envelope(
            EnvelopeKind.GENERIC_OK,
            token,
            {"echo": {"method": method, "path": path, "query": query, "body": body}},
        )
