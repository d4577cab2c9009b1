"""Tests for PlayerService authen and player lookup."""

from unittest.mock import AsyncMock

import pytest

from app.app_config import AppEnvironConfig
from app.domain.live.identity import IdentityDeriver, TicketVerdict, TicketVerifier
from app.domain.live.player.player_domain import PlayerService, inventory_block, requested_player_id
from app.domain.live.player.player_models import AuthenParams
from app.domain.live.session.session_registry import SessionRegistry
from app.domain.live.store.persistence import InMemoryPersistence
from app.schemas import InventoryItem
from app.utils.live_errors import LiveError, LiveErrorCode


@pytest.fixture
def store() -> InMemoryPersistence:
    return InMemoryPersistence()


@pytest.fixture
def registry(store: InMemoryPersistence) -> SessionRegistry:
    return SessionRegistry(store)


@pytest.fixture
def service(app_config: AppEnvironConfig, store: InMemoryPersistence, registry: SessionRegistry) -> PlayerService:
    return PlayerService(app_config, store, registry, IdentityDeriver())


class TestAuthenParams:
    """Tests for the tolerant authen body parser."""

    def test_aliases(self):
        params = AuthenParams.from_body({"authTicket": "t", "authType": "steam", "clientVersion": "1.0", "macAddress": "m"})

        assert params.ticket == "t"
        assert params.auth_type == "steam"
        assert params.client_version == "1.0"
        assert params.mac_address == "m"

    def test_non_object_body(self):
        assert AuthenParams.from_body(["x"]).ticket is None
        assert AuthenParams.from_body(None).ticket is None

    def test_wrong_types_coerced(self):
        params = AuthenParams.from_body({"ticket": 12345, "version": {"nested": True}})

        assert params.ticket == "12345"
        assert params.client_version is None

    def test_identity_seed_falls_back_to_mac(self):
        assert AuthenParams(ticket="t").identity_seed == "t"
        assert AuthenParams.from_body({"macaddress": "aa:bb"}).identity_seed == "mac:aa:bb"
        assert AuthenParams().identity_seed == ""


class TestAuthen:
    """Tests for PlayerService.authen."""

    async def test_creates_player_profile_and_session(
        self, service: PlayerService, store: InMemoryPersistence, registry: SessionRegistry
    ):
        session, envelope = await service.authen(AuthenParams(ticket="abc123"))

        expected_id = IdentityDeriver().derive_player_id("abc123")
        assert session.player_id == expected_id
        assert envelope["playerId"] == expected_id
        assert envelope["token"] == session.token
        assert envelope["ticket"] == "abc123"
        assert envelope["clientVersion"] == "1.0.6.0"
        assert envelope["user"]["name"] == f"Player_{expected_id[-6:]}"
        assert store.players[expected_id].display_name == f"Player_{expected_id[-6:]}"
        assert expected_id in store.profiles
        assert registry.latest == session

    async def test_same_ticket_same_player(self, service: PlayerService):
        first, _ = await service.authen(AuthenParams(ticket="abc123"))
        second, _ = await service.authen(AuthenParams(ticket="abc123"))

        assert first.player_id == second.player_id

    async def test_verified_id_overrides(self, app_config: AppEnvironConfig, store, registry):
        verifier = AsyncMock(spec=TicketVerifier)
        verifier.verify.return_value = TicketVerdict(valid=True, player_id="76561198000000042")
        service = PlayerService(app_config, store, registry, IdentityDeriver(), verifier)

        session, envelope = await service.authen(AuthenParams(ticket="abc123"))

        assert session.player_id == "76561198000000042"
        assert envelope["steamId"] == "76561198000000042"
        verifier.verify.assert_awaited_once_with("abc123")

    @pytest.mark.parametrize("verdict", [None, TicketVerdict(valid=False)])
    async def test_verifier_fails_open(self, app_config: AppEnvironConfig, store, registry, verdict):
        verifier = AsyncMock(spec=TicketVerifier)
        verifier.verify.return_value = verdict
        service = PlayerService(app_config, store, registry, IdentityDeriver(), verifier)

        session, _ = await service.authen(AuthenParams(ticket="abc123"))

        assert session.player_id == IdentityDeriver().derive_player_id("abc123")


class TestGetPlayer:
    """Tests for PlayerService.get_player."""

    async def test_returns_authenticated_player(self, service: PlayerService):
        session, _ = await service.authen(AuthenParams(ticket="abc123"))

        envelope = await service.get_player(session.token)

        assert envelope["playerId"] == session.player_id
        assert envelope["sessionKey"] == session.token
        assert envelope["profile"]["level"] == 1
        assert envelope["characters"] == {"survivors": ["sv_001"], "specters": ["sp_001"]}
        assert envelope["settings"]["region"] == "sg"
        assert set(envelope["inventory"]) >= {"items", "skins", "emotes", "charms", "perks", "characters", "stickers"}
        assert envelope["success"] is True

    async def test_no_session_raises(self, service: PlayerService):
        with pytest.raises(LiveError) as exc_info:
            await service.get_player(None)

        assert exc_info.value.errcode == LiveErrorCode.E_NO_SESSION.value
        assert exc_info.value.errmesg == "no session"

    async def test_named_player_without_session(self, service: PlayerService, store: InMemoryPersistence):
        envelope = await service.get_player(None, "demo-player-001")

        assert envelope["playerId"] == "demo-player-001"
        assert "token" not in envelope
        assert "demo-player-001" in store.players
        assert "demo-player-001" in store.profiles

    async def test_named_player_overrides_session(self, service: PlayerService):
        session, _ = await service.authen(AuthenParams(ticket="abc123"))

        envelope = await service.get_player(session.token, "bob-123")

        assert envelope["playerId"] == "bob-123"
        assert envelope["player"]["playerId"] == "bob-123"

    async def test_own_player_id_keeps_session(self, service: PlayerService):
        session, _ = await service.authen(AuthenParams(ticket="abc123"))

        envelope = await service.get_player(session.token, session.player_id)

        assert envelope["token"] == session.token


def test_inventory_grouped_by_type():
    block = inventory_block(
        [
            InventoryItem(item_type="skin", short_code="sk_1"),
            InventoryItem(item_type="items", short_code="it_1", quantity=3),
        ]
    )

    assert block["skins"] == [{"short_code": "sk_1", "quantity": 1}]
    assert block["items"] == [{"short_code": "it_1", "quantity": 3}]
    assert block["stickers"] == []


@pytest.mark.parametrize(
    "source, expected",
    [
        ({"playerId": "bob-123"}, "bob-123"),
        ({"playerId": "  bob-123 "}, "bob-123"),
        ({"playerId": ""}, None),
        ({"playerId": 42}, None),
        ({}, None),
        (["playerId"], None),
        (None, None),
    ],
)
def test_requested_player_id(source, expected):
    assert requested_player_id(source) == expected
