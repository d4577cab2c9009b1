from typing import Annotated, Any
from urllib.parse import parse_qsl

import orjson
from fastapi import Depends, Request
from loguru import logger

from app.domain.live.catalog.catalog_domain import CatalogService
from app.domain.live.debug.debug_recorder import DebugRecorder
from app.domain.live.live_services import LiveServices
from app.domain.live.player.player_domain import PlayerService, requested_player_id
from app.domain.live.store.persistence import PersistenceAdapter
from app.utils.live_errors import LiveErrorCode

BODY_TOKEN_KEYS = ("token", "access_token", "sessionKey")


def get_live_services(request: Request) -> LiveServices:
    return request.app.state.live_services


def get_player_service(request: Request) -> PlayerService:
    return get_live_services(request).players


def get_catalog_service(request: Request) -> CatalogService:
    return get_live_services(request).catalog


def get_debug_recorder(request: Request) -> DebugRecorder:
    return get_live_services(request).debug


def get_store(request: Request) -> PersistenceAdapter:
    return get_live_services(request).store


async def read_json_body(request: Request) -> Any:
    """Best-effort body parse: JSON, then urlencoded form, else `{}`.

    Clients send bodies with missing or wrong content types, so a malformed
    body is logged and treated as empty instead of failing the call.
    """
    raw = await request.body()
    if not raw.strip():
        return {}

    content_type = request.headers.get("content-type", "")
    if "application/x-www-form-urlencoded" in content_type:
        return dict(parse_qsl(raw.decode("utf-8", errors="replace"), keep_blank_values=True))

    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        logger.warning("{} unparsable body on {}: {}", LiveErrorCode.E_VALIDATION.value, request.url.path, e)
        return {}


def extract_token(request: Request, body: Any) -> str | None:
    """Caller token from `?token=`, the body, `Authorization: Bearer` or `x-auth-token`."""
    token = request.query_params.get("token")
    if token:
        return token

    if isinstance(body, dict):
        for key in BODY_TOKEN_KEYS:
            value = body.get(key)
            if isinstance(value, str) and value:
                return value

    authorization = request.headers.get("authorization", "")
    if authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
        if token:
            return token

    return request.headers.get("x-auth-token") or None


async def get_request_body(request: Request) -> Any:
    return await read_json_body(request)


async def get_caller_token(request: Request, body: Any = Depends(get_request_body)) -> str | None:
    return extract_token(request, body)


async def get_requested_player_id(request: Request, body: Any = Depends(get_request_body)) -> str | None:
    """`?playerId=` or a body `playerId`, naming the player a read is about."""
    return requested_player_id(request.query_params) or requested_player_id(body)


RequestBody = Annotated[Any, Depends(get_request_body)]
CallerToken = Annotated[str | None, Depends(get_caller_token)]
RequestedPlayerId = Annotated[str | None, Depends(get_requested_player_id)]
