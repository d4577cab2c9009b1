"""Response envelope builder.

The game client was never documented; it reads success, identity and token
from whichever of several conventions it was built against. Every envelope
therefore repeats the same canonical values under all known spellings.
Handlers pass canonical fields only (`playerId`, `token`, `baseUrl`, ...);
the alias expansion happens here and nowhere else.
"""

from enum import Enum
from time import time
from typing import Any
from uuid import uuid4

from app.schemas import Profile, display_name_for


class EnvelopeKind(str, Enum):
    AUTH_OK = "auth_ok"
    PLAYER_OK = "player_ok"
    STORE_OK = "store_ok"
    LOOTBOX_OK = "lootbox_ok"
    RANKED_OK = "ranked_ok"
    MAIL_OK = "mail_ok"
    ANNOUNCEMENT_OK = "announcement_ok"
    VERSION_OK = "version_ok"
    GENERIC_OK = "generic_ok"
    ERROR = "error"


FLAGS_OK: dict[str, Any] = {
    "error": 0,
    "code": 0,
    "err": 0,
    "errno": 0,
    "Error": 0,
    "ErrorCode": 0,
    "rc": 0,
    "ret": 0,
    "error_str": "0",
    "code_str": "0",
    "statusCode": 0,
    "status_code": 0,
    "ResponseCode": 0,
    "result": True,
    "success": True,
    "ok": True,
    "status": "OK",
    "httpCode": 200,
    "resultCode": 0,
    "message": "OK",
    "Message": "OK",
    "msg": "OK",
}

FLAGS_ERROR: dict[str, Any] = {
    **{k: 1 for k, v in FLAGS_OK.items() if v == 0},
    "error_str": "1",
    "code_str": "1",
    "result": False,
    "success": False,
    "ok": False,
    "status": "ERROR",
    "httpCode": 200,
}

ID_ALIASES = ("playerId", "uid", "userId", "id", "steamId", "player_id", "steam_id")
TOKEN_ALIASES = (
    "token",
    "access_token",
    "accessToken",
    "access-token",
    "sessionKey",
    "session_token",
    "sessionId",
    "session_id",
    "session",
    "sid",
)
BASE_URL_ALIASES = ("baseUrl", "base_url", "api_base", "server_url", "host")

# Canonical input fields consumed by the builder; everything else passes through.
CANONICAL_FIELDS = (
    "playerId",
    "token",
    "displayName",
    "ticket",
    "authType",
    "clientVersion",
    "baseUrl",
    "region",
    "ttl",
    "profile",
)

ENDPOINTS = {
    "getPlayer": "/live/player/get",
    "playerGet": "/live/player/get",
    "player": "/live/player/get",
    "storeList": "/live/store/list",
    "store_list": "/live/store/list",
    "lootbox": "/live/lootbox/balance",
    "ranked": "/live/ranked/info",
    "mailbox": "/live/mail/get",
    "announcement": "/live/announcement",
    "version": "/live/version",
    "questSkin": "/live/quest/skin",
    "curseRelic": "/live/curse/relic",
}

DEFAULT_MESSAGES = {
    EnvelopeKind.AUTH_OK: "OK",
    EnvelopeKind.PLAYER_OK: "player loaded",
    EnvelopeKind.STORE_OK: "store list",
    EnvelopeKind.LOOTBOX_OK: "lootbox balance",
    EnvelopeKind.RANKED_OK: "ranked info",
    EnvelopeKind.MAIL_OK: "mailbox",
    EnvelopeKind.ANNOUNCEMENT_OK: "announcement",
    EnvelopeKind.VERSION_OK: "version",
    EnvelopeKind.GENERIC_OK: "OK",
}

DEFAULT_TTL_SECONDS = 86400
DEFAULT_AUTH_TYPE = "steam"
DEFAULT_REGION = "sg"


def expand_aliases(keys: tuple[str, ...], value: Any) -> dict[str, Any]:
    return {key: value for key in keys}


def profile_block(profile: Profile | None) -> dict[str, Any]:
    profile = profile or Profile()
    return {
        "level": profile.level,
        "exp": profile.exp,
        "role": profile.role,
        "rank": profile.rank.model_dump(),
        "balance": {"coin": profile.coin, "gem": profile.gem},
        "lootbox": {"balance": profile.lootbox_balance},
    }


def user_block(player_id: str, token: str | None, display_name: str | None = None) -> dict[str, Any]:
    user: dict[str, Any] = {
        "id": player_id,
        "uid": player_id,
        "userId": player_id,
        "playerId": player_id,
        "steamId": player_id,
        "name": display_name or display_name_for(player_id),
    }
    if token:
        user.update(
            {
                "token": token,
                "access_token": token,
                "sessionKey": token,
                "session_token": token,
                "sessionId": token,
                "session_id": token,
            }
        )
    return user


def _client_version_block(version: str) -> dict[str, Any]:
    return {"clientversion": version, "clientVersion": version, "version": version}


def _identity_block(canonical: dict[str, Any]) -> dict[str, Any]:
    block: dict[str, Any] = {}
    player_id = canonical.get("playerId")
    if player_id:
        token = canonical.get("token")
        block.update(expand_aliases(ID_ALIASES, player_id))
        if token:
            block.update(expand_aliases(TOKEN_ALIASES, token))
        block["user"] = user_block(player_id, token, canonical.get("displayName"))
        if canonical.get("baseUrl"):
            block.update(expand_aliases(BASE_URL_ALIASES, canonical["baseUrl"]))
    if canonical.get("clientVersion"):
        block.update(_client_version_block(canonical["clientVersion"]))
    return block


def _auth_block(canonical: dict[str, Any], now: int) -> dict[str, Any]:
    player_id = canonical.get("playerId") or ""
    token = canonical.get("token") or ""
    base_url = canonical.get("baseUrl") or ""
    ttl = int(canonical.get("ttl") or DEFAULT_TTL_SECONDS)

    block = expand_aliases(ID_ALIASES, player_id)
    block.update(expand_aliases(TOKEN_ALIASES, token))
    block.update(
        {
            "ticket": canonical.get("ticket") or "",
            "authType": canonical.get("authType") or DEFAULT_AUTH_TYPE,
            **_client_version_block(canonical.get("clientVersion") or ""),
            "expires": now + ttl,
            "expiresIn": ttl,
            "serverTime": now,
            **expand_aliases(BASE_URL_ALIASES, base_url),
            "server": {
                "api": base_url,
                "base": base_url,
                "time": now,
                "region": canonical.get("region") or DEFAULT_REGION,
            },
            "endpoints": ENDPOINTS,
            "endpoint": ENDPOINTS,
            "api": ENDPOINTS,
            "next": ENDPOINTS["playerGet"],
            "redirect": ENDPOINTS["playerGet"],
            "user": user_block(player_id, token, canonical.get("displayName")),
            "profile": profile_block(canonical.get("profile")),
        }
    )
    return block


def enrich(body: dict[str, Any]) -> dict[str, Any]:
    """Apply success flags, mirror under `data` and add the Steam-style wrapper."""
    full = {**FLAGS_OK, **body}
    full["data"] = {**FLAGS_OK, **body}
    full["response"] = {
        "params": {
            "result": "OK",
            "steamid": body.get("steamId"),
            "playerid": body.get("playerId"),
            "token": body.get("token"),
        },
        "error": None,
    }
    return full


def build_error_envelope(
    message: str,
    errcode: str = "E_INTERNAL",
    erresid: str | None = None,
    extra: dict[str, Any] | None = None,
) -> dict[str, Any]:
    return {
        **FLAGS_ERROR,
        **(extra or {}),
        "message": message,
        "Message": message,
        "msg": message,
        "errcode": errcode,
        "erresid": erresid or uuid4().hex[:10],
    }


def build_envelope(
    kind: EnvelopeKind | str,
    fields: dict[str, Any] | None = None,
    *,
    now: int | None = None,
) -> dict[str, Any]:
    """Build the full JSON body for `kind`.

    `fields` mixes canonical fields (see CANONICAL_FIELDS) with kind-specific
    payload keys, which are copied through unchanged.
    """
    kind = EnvelopeKind(kind)
    fields = dict(fields or {})

    if kind == EnvelopeKind.ERROR:
        message = str(fields.pop("message", "") or "error")
        errcode = str(fields.pop("errcode", "") or "E_INTERNAL")
        erresid = fields.pop("erresid", None)
        return build_error_envelope(message, errcode, erresid, fields)

    now = int(time()) if now is None else now
    canonical = {key: fields.pop(key) for key in CANONICAL_FIELDS if key in fields}

    if kind == EnvelopeKind.AUTH_OK:
        body = _auth_block(canonical, now)
    else:
        body = _identity_block(canonical)
        if "profile" in canonical:
            body["profile"] = profile_block(canonical["profile"])

    body["message"] = fields.pop("message", None) or DEFAULT_MESSAGES[kind]
    body.update(fields)
    return enrich(body)
