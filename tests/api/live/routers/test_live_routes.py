"""End-to-end tests for the live API routes over the in-memory store."""

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.domain.live.live_services import LiveServices
from app.domain.live.player.player_domain import PlayerService
from app.domain.live.identity import IdentityDeriver
from app.main import create_app


@pytest.fixture
def test_app(live_services: LiveServices) -> FastAPI:
    """Full app with real services injected ahead of the lifespan."""
    app = create_app()
    app.state.live_services = live_services
    return app


@pytest.fixture
def client(test_app: FastAPI):
    with TestClient(test_app) as client:
        yield client


def authen(client: TestClient, ticket: str = "abc123", path: str = "/live/player/authen") -> dict:
    r = client.post(path, json={"ticket": ticket})
    assert r.status_code == 200
    return r.json()


class TestAuthen:
    """Tests for POST /live/player/authen."""

    def test_auth_envelope(self, client: TestClient):
        data = authen(client)

        expected_id = IdentityDeriver().derive_player_id("abc123")
        for key in ("playerId", "uid", "userId", "id", "steamId"):
            assert data[key] == expected_id
        assert data["token"] == data["access_token"] == data["sessionKey"]
        assert data["error"] == 0
        assert data["success"] is True
        assert data["status"] == "OK"
        assert data["next"] == "/live/player/get"

    @pytest.mark.parametrize("path", ["/player/authen", "/api/player/authen"])
    def test_prefix_aliases(self, client: TestClient, path: str):
        data = authen(client, path=path)

        assert data["playerId"] == IdentityDeriver().derive_player_id("abc123")

    def test_empty_body(self, client: TestClient):
        r = client.post("/live/player/authen")

        assert r.status_code == 200
        assert r.json()["playerId"] == IdentityDeriver().derive_player_id("")

    def test_malformed_body(self, client: TestClient):
        r = client.post(
            "/live/player/authen", content=b"{not json", headers={"content-type": "application/json"}
        )

        assert r.status_code == 200
        assert r.json()["success"] is True

    def test_form_body(self, client: TestClient):
        r = client.post("/live/player/authen", data={"authTicket": "abc123"})

    @pytest.mark.parametrize("path", ["/live/player/auth", "/live/auth/login", "/live/player/authen/"])
    def test_alternate_login_paths(self, client: TestClient, path: str):
        data = authen(client, path=path)

        assert data["token"]
        assert data["playerId"] == IdentityDeriver().derive_player_id("abc123")

        assert r.json()["playerId"] == IdentityDeriver().derive_player_id("abc123")


class TestPlayerGet:
    """Tests for /live/player/get."""

    def test_same_player_as_authen(self, client: TestClient):
        auth = authen(client)

        r = client.get("/live/player/get", params={"token": auth["token"]})

        assert r.status_code == 200
        assert r.json()["playerId"] == auth["playerId"]

    def test_token_sources(self, client: TestClient):
        first = authen(client, ticket="first")
        authen(client, ticket="second")

        by_bearer = client.post("/live/player/get", headers={"Authorization": f"Bearer {first['token']}"})
        by_header = client.get("/live/player/get", headers={"x-auth-token": first["token"]})
        by_body = client.post("/live/player/get", json={"sessionKey": first["token"]})

        for r in (by_bearer, by_header, by_body):
            assert r.json()["playerId"] == first["playerId"]

    def test_falls_back_to_latest_session(self, client: TestClient):
        auth = authen(client)

        r = client.get("/live/player/get")

        assert r.json()["playerId"] == auth["playerId"]

    def test_path_token_alias(self, client: TestClient):
        auth = authen(client)

        r = client.get("/YGG/GetPlayerAPI", params={"token": auth["token"]})

        assert r.json()["playerId"] == auth["playerId"]

    def test_trailing_slash(self, client: TestClient):
        auth = authen(client)

        r = client.get("/live/player/get/", params={"token": auth["token"]})

        data = r.json()
        assert data["playerId"] == auth["playerId"]
        assert "profile" in data
        assert "echo" not in data

    def test_player_id_query(self, client: TestClient):
        authen(client)

        r = client.get("/YGG/GetPlayerAPI", params={"playerId": "demo-player-001"})

        assert r.json()["playerId"] == "demo-player-001"
        assert r.json()["profile"]["level"] == 1

    def test_no_session_error_envelope(self, client: TestClient):
        r = client.get("/live/player/get")

        assert r.status_code == 200
        data = r.json()
        assert data["error"] == 1
        assert data["success"] is False
        assert data["status"] == "ERROR"
        assert data["message"] == "no session"
        assert data["errcode"] == "E_NO_SESSION"


class TestCatalogRoutes:
    @pytest.mark.parametrize(
        "path, key",
        [
            ("/live/store/list", "store"),
            ("/live/lootbox/balance", "lootbox"),
            ("/live/ranked/info", "ranked"),
            ("/live/mail/get", "mailbox"),
            ("/live/mail/read", "mails"),
            ("/live/announcement", "announcement"),
            ("/live/version", "maintenance"),
            ("/live/quest/skin", "questSkin"),
            ("/live/curse/relic", "curseRelic"),
            ("/YGG/GetStoreAPI", "store"),
            ("/api/ranked/info", "ranked"),
            ("/x/MailBoxClaim", "mailbox"),
            ("/live/player/profile", "profile"),
            ("/live/player/currency", "currency"),
            ("/live/character/list", "list"),
            ("/live/character/listAll", "list"),
            ("/live/skin/listAll", "list"),
            ("/live/item/list", "list"),
            ("/live/productListing/list", "list"),
            ("/live/product/list", "list"),
            ("/live/lobby/create", "lobbyId"),
            ("/live/lobby/join", "members"),
            ("/live/matchmaking/search", "lobbyId"),
            ("/api/matchmaking/cancel", "lobbyId"),
        ],
    )
    def test_success_payload(self, client: TestClient, path: str, key: str):
        r = client.post(path, json={})

        assert r.status_code == 200
        data = r.json()
        assert key in data
        assert data["error"] == 0
        assert data["success"] is True

    def test_identity_echoed(self, client: TestClient):
        auth = authen(client)

        r = client.get("/live/lootbox/balance", params={"token": auth["token"]})

        assert r.json()["uid"] == auth["playerId"]

    @pytest.mark.parametrize("path", ["/YGG/GetLootboxAPI", "/YGG/GetRankedAPI", "/live/player/currency"])
    def test_player_id_query(self, client: TestClient, path: str):
        authen(client)

        r = client.get(path, params={"playerId": "bob-123"})

        assert r.json()["playerId"] == "bob-123"

    def test_unknown_lobby_action_echoes(self, client: TestClient):
        r = client.post("/live/lobby/explode")

        assert r.json()["echo"]["path"] == "/live/lobby/explode"


class TestLogsAndCache:
    def test_log_sink(self, client: TestClient, live_services: LiveServices):
        r = client.post("/live/log/Report", json={"event": "match_end"})

        assert r.status_code == 200
        assert r.json()["error"] == 0
        assert live_services.store.logs[-1].type == "report"

    def test_log_token_alias(self, client: TestClient, live_services: LiveServices):
        r = client.post("/YGG/LogTransaction", json={"amount": 1})

        assert r.json()["type"] == "transaction"
        assert live_services.store.logs[-1].payload == {"amount": 1}

    def test_log_names_other_player(self, client: TestClient, live_services: LiveServices):
        authen(client, ticket="alice")

        client.post("/live/log/report", json={"playerId": "bob-123"})
        assert live_services.store.logs[-1].player_id == "bob-123"

        client.post("/YGG/SomeThing", json={"playerId": "bob-123"})
        assert live_services.store.logs[-1].player_id == "bob-123"

    def test_ygg_cache(self, client: TestClient):
        assert client.get("/YGG/GetThing").json() == {"ok": True, "data": []}

        r = client.post("/YGG/GetThing", json={"payload": {"rows": [1]}})

        assert r.json() == {"ok": True}
        assert client.get("/YGG/GetThing").json() == {"rows": [1]}


class TestFallbackAndErrors:
    @pytest.mark.parametrize("method", ["GET", "POST", "PUT", "DELETE", "PATCH"])
    def test_unknown_live_path(self, client: TestClient, method: str):
        r = client.request(method, "/live/unknown/op?x=1")

        assert r.status_code == 200
        data = r.json()
        assert data["error"] == 0
        assert data["echo"]["path"] == "/live/unknown/op"
        assert data["echo"]["query"] == {"x": "1"}

    def test_wrong_method_on_known_path(self, client: TestClient):
        r = client.get("/live/log/report")

        assert r.status_code == 200
        assert r.json()["error"] == 0

    def test_unknown_path_outside_live(self, client: TestClient):
        r = client.get("/nowhere")

        assert r.status_code == 404
        assert r.json() == {"error": "Not found"}

    def test_unhandled_exception_outside_live(self, test_app: FastAPI):
        @test_app.get("/boom")
        async def boom():
            raise RuntimeError("boom")

        with TestClient(test_app, raise_server_exceptions=False) as client:
            r = client.get("/boom")

        assert r.status_code == 500
        assert r.json()["errcode"] == "E_INTERNAL"

    def test_unhandled_exception_on_live_path(self, test_app: FastAPI, live_services: LiveServices):
        players = AsyncMock(spec=PlayerService)
        players.get_player.side_effect = RuntimeError("boom")
        live_services.players = players

        with TestClient(test_app) as client:
            r = client.get("/live/player/get")

        assert r.status_code == 200
        data = r.json()
        assert data["error"] == 1
        assert data["errcode"] == "E_INTERNAL"
        assert "boom" not in data["message"]


class TestHealthAndDebug:
    def test_health(self, client: TestClient):
        r = client.get("/health")

        assert r.status_code == 200
        assert r.json() == {"ok": True, "store": "memory"}

    def test_banner(self, client: TestClient):
        r = client.get("/")

        assert r.status_code == 200
        assert r.text

    def test_debug_before_authen(self, client: TestClient):
        assert "note" in client.get("/__debug/authen").json()

    def test_debug_records_authen(self, client: TestClient):
        client.post("/live/player/authen", json={"ticket": "abc123"}, headers={"Authorization": "Bearer secret"})

        entry = client.get("/__debug/authen").json()

        assert entry["request"]["body"] == {"ticket": "abc123"}
        assert entry["request"]["headers"]["authorization"] == "***"
        assert entry["response"]["playerId"] == IdentityDeriver().derive_player_id("abc123")
        assert client.get("/__debug/history").json()["count"] == 1
