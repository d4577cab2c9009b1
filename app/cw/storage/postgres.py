import inspect
import ssl
import threading
from contextvars import ContextVar
from typing import Tuple

import asyncpg
from asyncpg import Connection
from loguru import logger

from app.utils.live_errors import StoreUnavailable

_registered_logger_connections: set[int] = set()
_registered_logger_lock = threading.Lock()
_query_context: ContextVar[dict[str, str] | None] = ContextVar("_cw_query_context", default=None)


def _connection_query_logger(record) -> None:
    """Log executed queries using loguru without assuming record internals."""
    try:
        query = getattr(record, 'query', None)
        args = getattr(record, 'args', None)
        elapsed = getattr(record, 'elapsed', None)
        exception = getattr(record, 'exception', None)

        ctx = _query_context.get()

        parts = ["SQL: {}", query]
        if args:
            parts[0] += " | args={}"
            parts.append(args)
        if elapsed is not None:
            parts[0] += " | elapsed={}"
            parts.append(elapsed)
        if exception:
            parts[0] += " | exception={}"
            parts.append(exception)
        if ctx and ctx.get('call_site'):
            parts[0] += " | caller={}"
            parts.append(ctx['call_site'])

        logger.debug(*parts)
    except Exception as exc:  # pragma: no cover - safeguard against logging errors
        logger.debug("SQL: <unable to log query> ({})", exc)


def hide_password_in_dsn(url: str) -> str:
    try:
        if '://' in url and '@' in url:
            proto, rest = url.split('://', 1)
            at = rest.rfind('@')
            if at != -1:
                auth = rest[:at]
                host = rest[at + 1:]
                if ':' in auth:
                    user, pwd = auth.split(':', 1)
                    if user and pwd:
                        return f"{proto}://{user}:***@{host}"
        return url
    except Exception:
        return url


def build_ssl_context(strict: bool | None) -> ssl.SSLContext | None:
    """
    None leaves TLS to the DSN's sslmode. False still encrypts but skips
    certificate checks, which hosted Postgres with self-signed chains needs.
    """
    if strict is None:
        return None
    context = ssl.create_default_context()
    if not strict:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


class AsyncPGClient:
    def __init__(self, conn: Connection):
        self.conn = conn
        self._ensure_query_logger()

    @staticmethod
    def _call_site() -> str:
        """Capture the first non-storage frame to pinpoint the query caller."""
        frame = inspect.currentframe()
        if not frame:
            return "unknown"

        # Move up: current -> _call_site -> wrapper (e.g. execute) -> caller we want
        frame = frame.f_back
        if frame:
            frame = frame.f_back

        while frame:
            module = frame.f_globals.get('__name__', '')
            if not module.startswith(__name__):
                func = frame.f_code.co_name
                return f"{module}:{func}:{frame.f_lineno}"
            frame = frame.f_back

        return "unknown"

    async def _run_with_query_context(self, coro_factory):
        token = _query_context.set({'call_site': self._call_site()})
        try:
            return await coro_factory()
        finally:
            _query_context.reset(token)

    async def execute(self, query: str, *args, **kwargs):
        sql, params = self._as_sql_and_params(query, args)
        return await self._run_with_query_context(lambda: self.conn.execute(sql, *params, **kwargs))

    async def fetch(self, query: str, *args, **kwargs):
        sql, params = self._as_sql_and_params(query, args)
        return await self._run_with_query_context(lambda: self.conn.fetch(sql, *params, **kwargs))

    async def fetchrow(self, query: str, *args, **kwargs):
        sql, params = self._as_sql_and_params(query, args)
        return await self._run_with_query_context(lambda: self.conn.fetchrow(sql, *params, **kwargs))

    async def fetchval(self, query: str, *args, **kwargs):
        sql, params = self._as_sql_and_params(query, args)
        return await self._run_with_query_context(lambda: self.conn.fetchval(sql, *params, **kwargs))

    def __getattr__(self, item):
        return getattr(self.conn, item)

    def _ensure_query_logger(self) -> None:
        if not hasattr(self.conn, 'add_query_logger'):
            return

        conn_id = id(self.conn)
        with _registered_logger_lock:
            if conn_id in _registered_logger_connections:
                return

            try:
                self.conn.add_query_logger(_connection_query_logger)
            except Exception as exc:  # pragma: no cover - log but do not break queries
                logger.debug("Failed to attach query logger: {}", exc)
                return

            _registered_logger_connections.add(conn_id)

    def _as_sql_and_params(self, query: str, params: Tuple) -> Tuple[str, Tuple]:
        sql: str = query if isinstance(query, str) else str(query)
        return sql, tuple(params)


class PgSession:
    """
    Async context session that acquires a pooled connection and returns an
    AsyncPGClient. On exit, the connection is released to the pool.
    """

    def __init__(self, manager: 'PostgresManager'):
        self._manager = manager
        self._conn: Connection | None = None

    async def __aenter__(self) -> AsyncPGClient:
        self._conn = await self._manager.acquire()
        return AsyncPGClient(self._conn)

    async def __aexit__(self, exc_type, exc, tb):
        if self._conn is not None:
            await self._manager.release(self._conn)
            self._conn = None


class PostgresManager:
    """
    PostgreSQL pool manager for the single DATABASE_URL store.

    - Lazy pool creation on first acquire
    - Optional TLS context (see build_ssl_context)
    - Context-managed session helper
    - Pool creation failures surface as StoreUnavailable
    """

    def __init__(self, dsn: str, strict_ssl: bool | None = None, min_size: int = 1, max_size: int = 5):
        self._dsn = dsn
        self._ssl = build_ssl_context(strict_ssl)
        self._min_size = min_size
        self._max_size = max_size
        self._pool: asyncpg.Pool | None = None
        logger.info("Using Postgres URL: {}", self.safe_dsn)

    @property
    def safe_dsn(self) -> str:
        return hide_password_in_dsn(self._dsn)

    async def get_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            logger.info("Open Postgres pool for {}", self.safe_dsn)
            kwargs = {'min_size': self._min_size, 'max_size': self._max_size}
            if self._ssl is not None:
                kwargs['ssl'] = self._ssl
            try:
                self._pool = await asyncpg.create_pool(self._dsn, **kwargs)
            except (OSError, TimeoutError, asyncpg.PostgresError, asyncpg.InterfaceError) as e:
                raise StoreUnavailable(f"cannot open Postgres pool for {self.safe_dsn}: {e}") from e
        return self._pool

    async def acquire(self) -> Connection:
        pool = await self.get_pool()
        return await pool.acquire()

    async def release(self, conn: Connection):
        pool = await self.get_pool()
        try:
            await pool.release(conn)
        except Exception as e:
            logger.warning("Error releasing Postgres connection: {}", e)

    async def close(self):
        pool, self._pool = self._pool, None
        if pool is not None:
            try:
                await pool.close()
                logger.info("Closed Postgres pool for {}", self.safe_dsn)
            except Exception as e:
                logger.error("Error closing Postgres pool: {}", e)

    def session(self) -> PgSession:
        return PgSession(self)
