"""Persistence adapters for players, sessions, profiles and logs.

Two implementations share one interface:

- `InMemoryPersistence`: used when no DATABASE_URL is configured. State lives
  for the process lifetime only.
- `PostgresPersistence`: asyncpg-backed. Every call degrades to the in-memory
  defaults on connection or query failure, so a broken store never turns into
  a failed HTTP request.
"""

import functools
from abc import ABC, abstractmethod
from collections import deque
from typing import Any

import asyncpg
import orjson
from loguru import logger

from app.cw.storage.postgres import PostgresManager
from app.schemas import InventoryItem, LogEntry, Player, Profile, RankInfo, Session, StoreProduct, utc_now
from app.utils.live_errors import LiveErrorCode, StoreUnavailable

STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, TimeoutError, StoreUnavailable)

MAX_MEMORY_LOGS = 1000

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS players (
        player_id    TEXT PRIMARY KEY,
        display_name TEXT NOT NULL,
        created_at   TIMESTAMPTZ NOT NULL DEFAULT now(),
        updated_at   TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS sessions (
        token          TEXT PRIMARY KEY,
        player_id      TEXT NOT NULL,
        ticket         TEXT NOT NULL DEFAULT '',
        auth_type      TEXT NOT NULL DEFAULT 'steam',
        client_version TEXT NOT NULL DEFAULT '',
        created_at     TIMESTAMPTZ NOT NULL DEFAULT now(),
        expires_at     TIMESTAMPTZ NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS sessions_player_id_idx ON sessions (player_id)",
    """
    CREATE TABLE IF NOT EXISTS profiles (
        player_id  TEXT PRIMARY KEY,
        level      INTEGER NOT NULL DEFAULT 1,
        exp        INTEGER NOT NULL DEFAULT 0,
        role       TEXT NOT NULL DEFAULT 'Survivor',
        created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS balances (
        player_id TEXT PRIMARY KEY,
        coin      INTEGER NOT NULL DEFAULT 0,
        gem       INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS lootbox_balances (
        player_id TEXT PRIMARY KEY,
        balance   INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS ranked_stats (
        player_id  TEXT PRIMARY KEY,
        rank_name  TEXT NOT NULL DEFAULT 'Bronze',
        rank_point INTEGER NOT NULL DEFAULT 0,
        mmr        INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS inventory_items (
        id         BIGSERIAL PRIMARY KEY,
        player_id  TEXT NOT NULL,
        item_type  TEXT NOT NULL,
        short_code TEXT NOT NULL,
        quantity   INTEGER NOT NULL DEFAULT 1
    )
    """,
    "CREATE INDEX IF NOT EXISTS inventory_items_player_id_idx ON inventory_items (player_id)",
    """
    CREATE TABLE IF NOT EXISTS store_products (
        short_code TEXT PRIMARY KEY,
        name       TEXT NOT NULL,
        type       TEXT NOT NULL DEFAULT 'bundle',
        price_base INTEGER NOT NULL DEFAULT 0,
        currency   TEXT NOT NULL DEFAULT 'gem',
        tags       TEXT[]
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS logs (
        id         BIGSERIAL PRIMARY KEY,
        type       TEXT NOT NULL,
        player_id  TEXT,
        payload    JSONB,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS api_cache (
        name       TEXT PRIMARY KEY,
        payload    JSONB NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
)


class PersistenceAdapter(ABC):
    """Store interface used by the live handlers."""

    kind: str = "none"

    @abstractmethod
    async def ensure_schema(self) -> bool: ...

    @abstractmethod
    async def ping(self) -> bool: ...

    @abstractmethod
    async def upsert_player(self, player_id: str, display_name: str) -> None: ...

    @abstractmethod
    async def upsert_session(self, session: Session) -> None: ...

    @abstractmethod
    async def find_session(self, token: str) -> Session | None: ...

    @abstractmethod
    async def ensure_profile(self, player_id: str) -> None: ...

    @abstractmethod
    async def read_profile(self, player_id: str) -> Profile: ...

    @abstractmethod
    async def list_inventory(self, player_id: str) -> list[InventoryItem]: ...

    @abstractmethod
    async def list_store_products(self) -> list[StoreProduct]: ...

    @abstractmethod
    async def append_log(self, log_type: str, player_id: str | None, payload: Any) -> None: ...

    @abstractmethod
    async def get_cached_payload(self, name: str) -> Any | None: ...

    @abstractmethod
    async def put_cached_payload(self, name: str, payload: Any) -> None: ...

    async def close(self) -> None:
        return None


class InMemoryPersistence(PersistenceAdapter):
    kind = "memory"

    def __init__(self):
        self.players: dict[str, Player] = {}
        self.sessions: dict[str, Session] = {}
        self.profiles: dict[str, Profile] = {}
        self.inventory: dict[str, list[InventoryItem]] = {}
        self.products: list[StoreProduct] = []
        self.logs: deque[LogEntry] = deque(maxlen=MAX_MEMORY_LOGS)
        self.cache: dict[str, Any] = {}

    async def ensure_schema(self) -> bool:
        return True

    async def ping(self) -> bool:
        return True

    async def upsert_player(self, player_id: str, display_name: str) -> None:
        existing = self.players.get(player_id)
        if existing is None:
            self.players[player_id] = Player(player_id=player_id, display_name=display_name)
        else:
            self.players[player_id] = existing.model_copy(
                update={"display_name": display_name, "updated_at": utc_now()}
            )

    async def upsert_session(self, session: Session) -> None:
        self.sessions[session.token] = session

    async def find_session(self, token: str) -> Session | None:
        return self.sessions.get(token)

    async def ensure_profile(self, player_id: str) -> None:
        self.profiles.setdefault(player_id, Profile())

    async def read_profile(self, player_id: str) -> Profile:
        return self.profiles.get(player_id) or Profile()

    async def list_inventory(self, player_id: str) -> list[InventoryItem]:
        return list(self.inventory.get(player_id, []))

    async def list_store_products(self) -> list[StoreProduct]:
        return list(self.products)

    async def append_log(self, log_type: str, player_id: str | None, payload: Any) -> None:
        self.logs.append(LogEntry(type=log_type, player_id=player_id, payload=payload))

    async def get_cached_payload(self, name: str) -> Any | None:
        return self.cache.get(name)

    async def put_cached_payload(self, name: str, payload: Any) -> None:
        self.cache[name] = payload


def degrade_to(default_factory):
    """Turn store failures into a logged warning plus a default return value."""

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            try:
                return await func(self, *args, **kwargs)
            except STORE_ERRORS as e:
                logger.warning(
                    "{} {} failed: {}: {}",
                    LiveErrorCode.E_STORE_UNAVAILABLE.value,
                    func.__name__,
                    type(e).__name__,
                    e,
                )
                return default_factory()

        return wrapper

    return decorator


def _json_dumps(payload: Any) -> str:
    return orjson.dumps(payload, default=str).decode("utf-8")


def _json_loads(value: Any) -> Any:
    if isinstance(value, (str, bytes)):
        return orjson.loads(value)
    return value


def merge_profile(row: Any) -> Profile:
    """Stored values win; NULL or missing columns keep the Profile defaults."""
    defaults = Profile()
    if row is None:
        return defaults

    def pick(column: str, default: Any) -> Any:
        value = row.get(column) if hasattr(row, "get") else None
        return default if value is None else value

    return Profile(
        level=pick("level", defaults.level),
        exp=pick("exp", defaults.exp),
        role=pick("role", defaults.role),
        coin=pick("coin", defaults.coin),
        gem=pick("gem", defaults.gem),
        lootbox_balance=pick("lootbox_balance", defaults.lootbox_balance),
        rank=RankInfo(
            name=pick("rank_name", defaults.rank.name),
            point=pick("rank_point", defaults.rank.point),
            mmr=pick("mmr", defaults.rank.mmr),
        ),
    )


class PostgresPersistence(PersistenceAdapter):
    kind = "postgres"

    def __init__(self, manager: PostgresManager):
        self._manager = manager

    async def close(self) -> None:
        await self._manager.close()

    @degrade_to(lambda: False)
    async def ensure_schema(self) -> bool:
        async with self._manager.session() as client:
            async with client.transaction():
                for statement in SCHEMA_STATEMENTS:
                    await client.execute(statement)
        logger.info("Schema ensured ({} statements)", len(SCHEMA_STATEMENTS))
        return True

    @degrade_to(lambda: False)
    async def ping(self) -> bool:
        async with self._manager.session() as client:
            return await client.fetchval("SELECT 1") == 1

    @degrade_to(lambda: None)
    async def upsert_player(self, player_id: str, display_name: str) -> None:
        async with self._manager.session() as client:
            await client.execute(
                """
                INSERT INTO players (player_id, display_name)
                VALUES ($1, $2)
                ON CONFLICT (player_id) DO UPDATE
                SET display_name = EXCLUDED.display_name, updated_at = now()
                """,
                player_id,
                display_name,
            )

    @degrade_to(lambda: None)
    async def upsert_session(self, session: Session) -> None:
        async with self._manager.session() as client:
            await client.execute(
                """
                INSERT INTO sessions (token, player_id, ticket, auth_type, client_version, created_at, expires_at)
                VALUES ($1, $2, $3, $4, $5, $6, $7)
                ON CONFLICT (token) DO UPDATE
                SET player_id = EXCLUDED.player_id, expires_at = EXCLUDED.expires_at
                """,
                session.token,
                session.player_id,
                session.ticket,
                session.auth_type,
                session.client_version,
                session.created_at,
                session.expires_at,
            )

    @degrade_to(lambda: None)
    async def find_session(self, token: str) -> Session | None:
        async with self._manager.session() as client:
            row = await client.fetchrow(
                """
                SELECT token, player_id, ticket, auth_type, client_version, created_at, expires_at
                FROM sessions WHERE token = $1
                """,
                token,
            )
        return Session(**dict(row)) if row else None

    @degrade_to(lambda: None)
    async def ensure_profile(self, player_id: str) -> None:
        async with self._manager.session() as client:
            async with client.transaction():
                await client.execute(
                    "INSERT INTO profiles (player_id) VALUES ($1) ON CONFLICT (player_id) DO NOTHING",
                    player_id,
                )
                await client.execute(
                    "INSERT INTO balances (player_id) VALUES ($1) ON CONFLICT (player_id) DO NOTHING",
                    player_id,
                )
                await client.execute(
                    "INSERT INTO lootbox_balances (player_id) VALUES ($1) ON CONFLICT (player_id) DO NOTHING",
                    player_id,
                )
                await client.execute(
                    "INSERT INTO ranked_stats (player_id) VALUES ($1) ON CONFLICT (player_id) DO NOTHING",
                    player_id,
                )

    @degrade_to(Profile)
    async def read_profile(self, player_id: str) -> Profile:
        async with self._manager.session() as client:
            row = await client.fetchrow(
                """
                SELECT p.level, p.exp, p.role, b.coin, b.gem,
                       l.balance AS lootbox_balance, r.rank_name, r.rank_point, r.mmr
                FROM (SELECT $1::text AS player_id) AS k
                LEFT JOIN profiles p ON p.player_id = k.player_id
                LEFT JOIN balances b ON b.player_id = k.player_id
                LEFT JOIN lootbox_balances l ON l.player_id = k.player_id
                LEFT JOIN ranked_stats r ON r.player_id = k.player_id
                """,
                player_id,
            )
        return merge_profile(dict(row) if row else None)

    @degrade_to(list)
    async def list_inventory(self, player_id: str) -> list[InventoryItem]:
        async with self._manager.session() as client:
            rows = await client.fetch(
                """
                SELECT item_type, short_code, quantity
                FROM inventory_items WHERE player_id = $1 ORDER BY id
                """,
                player_id,
            )
        return [InventoryItem(**dict(row)) for row in rows]

    @degrade_to(list)
    async def list_store_products(self) -> list[StoreProduct]:
        async with self._manager.session() as client:
            rows = await client.fetch(
                """
                SELECT short_code, name, type, price_base, currency, COALESCE(tags, '{}') AS tags
                FROM store_products ORDER BY short_code
                """
            )
        return [StoreProduct(**{**dict(row), "tags": list(row["tags"] or [])}) for row in rows]

    @degrade_to(lambda: None)
    async def append_log(self, log_type: str, player_id: str | None, payload: Any) -> None:
        async with self._manager.session() as client:
            await client.execute(
                "INSERT INTO logs (type, player_id, payload) VALUES ($1, $2, $3::jsonb)",
                log_type,
                player_id,
                _json_dumps(payload),
            )

    @degrade_to(lambda: None)
    async def get_cached_payload(self, name: str) -> Any | None:
        async with self._manager.session() as client:
            value = await client.fetchval("SELECT payload FROM api_cache WHERE name = $1", name)
        return _json_loads(value) if value is not None else None

    @degrade_to(lambda: None)
    async def put_cached_payload(self, name: str, payload: Any) -> None:
        async with self._manager.session() as client:
            await client.execute(
                """
                INSERT INTO api_cache (name, payload) VALUES ($1, $2::jsonb)
                ON CONFLICT (name) DO UPDATE SET payload = EXCLUDED.payload, updated_at = now()
                """,
                name,
                _json_dumps(payload),
            )


def create_persistence(database_url: str | None, strict_ssl: bool | None = None) -> PersistenceAdapter:
    if not database_url:
        logger.info("DATABASE_URL not configured, using in-memory store")
        return InMemoryPersistence()
    return PostgresPersistence(PostgresManager(database_url, strict_ssl=strict_ssl))

