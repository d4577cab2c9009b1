from dataclasses import dataclass

from loguru import logger

from app.app_config import AppEnvironConfig
from app.domain.live.catalog.catalog_domain import CatalogService
from app.domain.live.debug.debug_recorder import DebugRecorder
from app.domain.live.identity import IdentityDeriver, TicketVerifier
from app.domain.live.player.player_domain import PlayerService
from app.domain.live.session.session_registry import SessionRegistry
from app.domain.live.store.persistence import PersistenceAdapter, create_persistence


@dataclass
class LiveServices:
    """Process-wide collaborators, created once in the app lifespan."""

    store: PersistenceAdapter
    registry: SessionRegistry
    debug: DebugRecorder
    players: PlayerService
    catalog: CatalogService

    async def close(self) -> None:
        await self.store.close()


def build_live_services(
    config: AppEnvironConfig,
    store: PersistenceAdapter | None = None,
    verifier: TicketVerifier | None = None,
) -> LiveServices:
    if store is None:
        store = create_persistence(config.DATABASE_URL, config.PG_STRICT_SSL)

    if verifier is None and config.TICKET_VERIFY_URL:
        verifier = TicketVerifier(
            config.TICKET_VERIFY_URL,
            api_key=config.TICKET_VERIFY_API_KEY,
            app_id=config.TICKET_VERIFY_APP_ID,
            timeout=config.TICKET_VERIFY_TIMEOUT,
        )
        logger.info("ticket verification enabled: {}", config.TICKET_VERIFY_URL)

    deriver = IdentityDeriver(
        policy=config.IDENTITY_POLICY,
        id_format=config.IDENTITY_FORMAT,
        algorithm=config.IDENTITY_HASH,
    )
    registry = SessionRegistry(store)

    return LiveServices(
        store=store,
        registry=registry,
        debug=DebugRecorder(config.DEBUG_BUFFER_SIZE),
        players=PlayerService(config, store, registry, deriver, verifier),
        catalog=CatalogService(config, store, registry),
    )
