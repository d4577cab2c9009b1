"""Player domain service: authen and player lookup."""

from collections.abc import Mapping
from typing import Any

from loguru import logger

from app.app_config import AppEnvironConfig
from app.domain.live.envelope import EnvelopeKind, build_envelope
from app.domain.live.identity import IdentityDeriver, TicketVerifier
from app.domain.live.session.session_registry import SessionRegistry
from app.domain.live.store.persistence import PersistenceAdapter
from app.schemas import InventoryItem, Profile, Session, display_name_for
from app.utils.live_errors import LiveError, LiveErrorCode

from .player_models import AuthenParams

INVENTORY_GROUPS = ("items", "skins", "emotes", "charms", "perks", "characters", "stickers")


def session_fields(session: Session | None, config: AppEnvironConfig) -> dict[str, Any]:
    """Canonical identity fields of a session, ready for build_envelope."""
    if session is None:
        return {}
    return {
        "playerId": session.player_id,
        "token": session.token,
        "clientVersion": session.client_version or config.DEFAULT_CLIENT_VERSION,
        "baseUrl": config.PUBLIC_BASE_URL,
    }


def identity_fields(session: Session | None, config: AppEnvironConfig, player_id: str | None = None) -> dict[str, Any]:
    """Like session_fields, but an explicit `player_id` naming someone else wins; it carries no token."""
    if not player_id or (session is not None and session.player_id == player_id):
        return session_fields(session, config)
    return {
        "playerId": player_id,
        "clientVersion": config.DEFAULT_CLIENT_VERSION,
        "baseUrl": config.PUBLIC_BASE_URL,
    }


def requested_player_id(source: Any) -> str | None:
    """Non-empty string `playerId` of a query/body mapping, else None."""
    if not isinstance(source, Mapping):
        return None
    value = source.get("playerId")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def inventory_block(items: list[InventoryItem]) -> dict[str, list[dict[str, Any]]]:
    block: dict[str, list[dict[str, Any]]] = {group: [] for group in INVENTORY_GROUPS}
    for item in items:
        group = item.item_type if item.item_type.endswith("s") else f"{item.item_type}s"
        block.setdefault(group, []).append(item.model_dump(exclude={"item_type"}))
    return block


class PlayerService:
    def __init__(
        self,
        config: AppEnvironConfig,
        store: PersistenceAdapter,
        registry: SessionRegistry,
        deriver: IdentityDeriver,
        verifier: TicketVerifier | None = None,
    ):
        self._config = config
        self._store = store
        self._registry = registry
        self._deriver = deriver
        self._verifier = verifier

    async def _verified_player_id(self, ticket: str | None) -> str | None:
        if self._verifier is None or not ticket:
            return None
        verdict = await self._verifier.verify(ticket)
        if verdict is None:
            logger.info("ticket verifier unavailable, using derived id")
            return None
        if verdict.valid and verdict.player_id:
            return verdict.player_id
        logger.info("ticket verifier rejected ticket, using derived id")
        return None

    async def authen(self, params: AuthenParams) -> tuple[Session, dict[str, Any]]:
        """Issue a session for the ticket and build the AUTH_OK envelope."""
        verified_id = await self._verified_player_id(params.ticket)
        identity = self._deriver.derive_identity(params.identity_seed, player_id=verified_id)

        client_version = params.client_version or self._config.DEFAULT_CLIENT_VERSION
        session = Session.issue(
            token=identity.token,
            player_id=identity.player_id,
            ttl_seconds=self._config.SESSION_TTL_SECONDS,
            ticket=params.ticket or "",
            auth_type=params.auth_type or "steam",
            client_version=client_version,
        )

        display_name = display_name_for(identity.player_id)
        await self._store.upsert_player(identity.player_id, display_name)
        await self._store.ensure_profile(identity.player_id)
        profile = await self._store.read_profile(identity.player_id)
        await self._registry.register(session)

        logger.info("authen player_id={} verified={}", identity.player_id, verified_id is not None)

        envelope = build_envelope(
            EnvelopeKind.AUTH_OK,
            {
                "playerId": identity.player_id,
                "token": identity.token,
                "displayName": display_name,
                "ticket": session.ticket,
                "authType": session.auth_type,
                "clientVersion": client_version,
                "baseUrl": self._config.PUBLIC_BASE_URL,
                "region": self._config.SERVER_REGION,
                "ttl": self._config.SESSION_TTL_SECONDS,
                "profile": profile,
            },
            now=identity.issued_at,
        )
        return session, envelope

    async def get_player(self, token: str | None, player_id: str | None = None) -> dict[str, Any]:
        """Player payload for the caller's session, or for `player_id` when one is named."""
        session = await self._registry.resolve(token)
        if player_id and (session is None or session.player_id != player_id):
            await self._store.upsert_player(player_id, display_name_for(player_id))
            await self._store.ensure_profile(player_id)
        elif session is None:
            raise LiveError(LiveErrorCode.E_NO_SESSION, "no session")
        else:
            player_id = session.player_id

        profile: Profile = await self._store.read_profile(player_id)
        inventory = await self._store.list_inventory(player_id)
        display_name = display_name_for(player_id)

        return build_envelope(
            EnvelopeKind.PLAYER_OK,
            {
                **identity_fields(session, self._config, player_id),
                "displayName": display_name,
                "profile": profile,
                "player": {
                    "playerId": player_id,
                    "displayName": display_name,
                    "profile": {"level": profile.level, "exp": profile.exp},
                    "role": profile.role,
                },
                "inventory": inventory_block(inventory),
                "characters": {"survivors": ["sv_001"], "specters": ["sp_001"]},
                "balance": {"coin": profile.coin, "gem": profile.gem},
                "playerBalance": {"coin": profile.coin, "gem": profile.gem},
                "lootbox": {"balance": profile.lootbox_balance},
                "lootBoxBalance": {"balance": profile.lootbox_balance, "boxes": []},
                "ranked": {
                    "rankName": profile.rank.name,
                    "rankPoint": profile.rank.point,
                    "mmr": profile.rank.mmr,
                },
                "records": {"survivor": {}, "hunter": {}, "mode4v4": {}},
                "settings": {"language": "en", "region": self._config.SERVER_REGION},
                "next": "/live/store/list",
            },
        )
