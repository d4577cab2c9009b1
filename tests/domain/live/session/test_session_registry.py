"""Tests for SessionRegistry token resolution."""

from unittest.mock import AsyncMock

from app.domain.live.session.session_registry import SessionRegistry
from app.domain.live.store.persistence import InMemoryPersistence, PersistenceAdapter
from app.schemas import Session


def make_session(token: str, player_id: str = "765") -> Session:
    return Session.issue(token, player_id, 60)


class TestRegister:
    async def test_register_persists_and_tracks_latest(self):
        store = InMemoryPersistence()
        registry = SessionRegistry(store)
        session = make_session("tok1")

        await registry.register(session)

        assert registry.latest == session
        assert await store.find_session("tok1") == session

    async def test_oldest_evicted_when_full(self):
        registry = SessionRegistry(AsyncMock(spec=PersistenceAdapter), max_sessions=2)
        registry._store.find_session.return_value = None

        for token in ("a", "b", "c"):
            await registry.register(make_session(token))

        assert await registry.lookup("a") is None
        assert (await registry.lookup("c")).token == "c"

    async def test_store_hits_respect_bound(self):
        store = InMemoryPersistence()
        for token in ("a", "b", "c"):
            await store.upsert_session(make_session(token))
        registry = SessionRegistry(store, max_sessions=2)

        for token in ("a", "b", "c"):
            assert (await registry.lookup(token)).token == token

        assert list(registry._sessions) == ["b", "c"]


class TestResolve:
    async def test_lookup_by_token(self):
        registry = SessionRegistry(InMemoryPersistence())
        first = make_session("tok1", "111")
        await registry.register(first)
        await registry.register(make_session("tok2", "222"))

        assert await registry.resolve("tok1") == first

    async def test_falls_back_to_store(self):
        store = InMemoryPersistence()
        session = make_session("stored")
        await store.upsert_session(session)
        registry = SessionRegistry(store)

        assert await registry.lookup("stored") == session

    async def test_unknown_token_uses_latest(self):
        registry = SessionRegistry(InMemoryPersistence())
        latest = make_session("tok2", "222")
        await registry.register(make_session("tok1", "111"))
        await registry.register(latest)

        assert await registry.resolve("nope") == latest
        assert await registry.resolve(None) == latest

    async def test_nothing_registered(self):
        registry = SessionRegistry(InMemoryPersistence())

        assert await registry.resolve(None) is None
        assert await registry.resolve("nope") is None
