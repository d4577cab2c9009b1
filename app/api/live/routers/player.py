from typing import Any

from fastapi import APIRouter, Depends, Request

from app.api.live.dependency import (
    CallerToken,
    RequestBody,
    RequestedPlayerId,
    get_debug_recorder,
    get_player_service,
)
from app.domain.live.debug.debug_recorder import DebugRecorder
from app.domain.live.player.player_domain import PlayerService
from app.domain.live.player.player_models import AuthenParams

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]

router = APIRouter(prefix="/live/player", tags=["Live"])


def request_snapshot(request: Request, body: Any) -> dict[str, Any]:
    return {
        "method": request.method,
        "path": request.url.path,
        "originalPath": request.scope.get("state", {}).get("original_path", request.url.path),
        "query": dict(request.query_params),
        "headers": dict(request.headers),
        "body": body,
    }


@router.api_route("/authen", methods=["GET", "POST"])
async def authen(
    request: Request,
    body: RequestBody,
    service: PlayerService = Depends(get_player_service),
    recorder: DebugRecorder = Depends(get_debug_recorder),
) -> dict[str, Any]:
    """Issue a session for the posted ticket."""
    params = AuthenParams.from_body(body)
    _, envelope = await service.authen(params)
    recorder.record(request_snapshot(request, body), envelope)
    return envelope


@router.api_route("/get", methods=ALL_METHODS)
async def get_player(
    token: CallerToken,
    player_id: RequestedPlayerId,
    service: PlayerService = Depends(get_player_service),
) -> dict[str, Any]:
    return await service.get_player(token, player_id)
