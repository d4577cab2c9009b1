from loguru import logger

from app.domain.live.store.persistence import PersistenceAdapter
from app.schemas import Session


class SessionRegistry:
    """In-process token -> session map backed by the persistence adapter.

    Lookup order: local map, then the store, then the most recently issued
    session. The last step serves clients that drop the token between calls.
    """

    def __init__(self, store: PersistenceAdapter, max_sessions: int = 10000):
        self._store = store
        self._sessions: dict[str, Session] = {}
        self._max_sessions = max_sessions
        self._latest: Session | None = None

    @property
    def latest(self) -> Session | None:
        return self._latest

    def _remember(self, session: Session) -> None:
        if session.token not in self._sessions and len(self._sessions) >= self._max_sessions:
            # Dicts keep insertion order; drop the oldest entry.
            self._sessions.pop(next(iter(self._sessions)))
        self._sessions[session.token] = session

    async def register(self, session: Session) -> None:
        self._remember(session)
        self._latest = session
        await self._store.upsert_session(session)

    async def lookup(self, token: str | None) -> Session | None:
        if not token:
            return None
        session = self._sessions.get(token)
        if session is None:
            session = await self._store.find_session(token)
            if session is not None:
                self._remember(session)
        return session

    async def resolve(self, token: str | None) -> Session | None:
        session = await self.lookup(token)
        if session is None and self._latest is not None:
            logger.debug("token not found, falling back to latest session")
            return self._latest
        return session
