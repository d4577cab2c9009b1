from typing import Any

from fastapi import APIRouter, Depends, Request

from app.api.live.dependency import CallerToken, RequestBody, RequestedPlayerId, get_catalog_service
from app.api.live.routers.player import ALL_METHODS
from app.domain.live.catalog.catalog_domain import LOBBY_ACTIONS, MATCHMAKING_ACTIONS, CatalogService

MAIL_ACTIONS = ("get", "read", "claim", "remove")
LIST_ROUTES = {
    "character": ("/character/list", "/character/listAll"),
    "skin": ("/skin/list", "/skin/listAll"),
    "item": ("/item/list", "/item/listAll"),
    "product": ("/productListing/list", "/product/list"),
}

router = APIRouter(prefix="/live", tags=["Live"])


@router.api_route("/store/list", methods=ALL_METHODS)
async def store_list(
    token: CallerToken,
    service: CatalogService = Depends(get_catalog_service),
) -> dict[str, Any]:
    return await service.store_list(token)


@router.api_route("/lootbox/balance", methods=ALL_METHODS)
async def lootbox_balance(
    token: CallerToken,
    player_id: RequestedPlayerId,
    service: CatalogService = Depends(get_catalog_service),
) -> dict[str, Any]:
    return await service.lootbox_balance(token, player_id)


@router.api_route("/ranked/info", methods=ALL_METHODS)
async def ranked_info(
    token: CallerToken,
    player_id: RequestedPlayerId,
    service: CatalogService = Depends(get_catalog_service),
) -> dict[str, Any]:
    return await service.ranked_info(token, player_id)


@router.api_route("/mail/{action}", methods=ALL_METHODS)
async def mailbox(
    action: str,
    request: Request,
    body: RequestBody,
    token: CallerToken,
    service: CatalogService = Depends(get_catalog_service),
) -> dict[str, Any]:
    """Mailbox get/read/claim/remove; other actions get the generic echo."""
    if action not in MAIL_ACTIONS:
        return await service.echo(token, request.method, request.url.path, dict(request.query_params), body)
    return await service.mailbox(token, action)


@router.api_route("/announcement", methods=ALL_METHODS)
async def announcement(
    token: CallerToken,
    service: CatalogService = Depends(get_catalog_service),
) -> dict[str, Any]:
    return await service.announcement(token)


@router.api_route("/version", methods=ALL_METHODS)
async def version(
    request: Request,
    body: RequestBody,
    token: CallerToken,
    service: CatalogService = Depends(get_catalog_service),
) -> dict[str, Any]:
    client_version = request.query_params.get("clientversion") or request.query_params.get("version")
    if not client_version and isinstance(body, dict):
        client_version = body.get("clientversion") or body.get("clientVersion") or body.get("version")
    return await service.version(token, str(client_version) if client_version else None)


@router.api_route("/quest/skin", methods=ALL_METHODS)
async def quest_skin(
    token: CallerToken,
    service: CatalogService = Depends(get_catalog_service),
) -> dict[str, Any]:
    return await service.quest_skin(token)


@router.api_route("/curse/relic", methods=ALL_METHODS)
async def curse_relic(
    token: CallerToken,
    service: CatalogService = Depends(get_catalog_service),
) -> dict[str, Any]:
    return await service.curse_relic(token)


@router.api_route("/player/profile", methods=ALL_METHODS)
async def player_profile(
    token: CallerToken,
    player_id: RequestedPlayerId,
    service: CatalogService = Depends(get_catalog_service),
) -> dict[str, Any]:
    return await service.player_profile(token, player_id)


@router.api_route("/player/currency", methods=ALL_METHODS)
async def player_currency(
    token: CallerToken,
    player_id: RequestedPlayerId,
    service: CatalogService = Depends(get_catalog_service),
) -> dict[str, Any]:
    return await service.player_currency(token, player_id)


@router.api_route("/lobby/{action}", methods=ALL_METHODS)
async def lobby(
    action: str,
    request: Request,
    body: RequestBody,
    token: CallerToken,
    player_id: RequestedPlayerId,
    service: CatalogService = Depends(get_catalog_service),
) -> dict[str, Any]:
    if action not in LOBBY_ACTIONS:
        return await service.echo(token, request.method, request.url.path, dict(request.query_params), body)
    return await service.lobby(action, token, player_id)


@router.api_route("/matchmaking/{action}", methods=ALL_METHODS)
async def matchmaking(
    action: str,
    request: Request,
    body: RequestBody,
    token: CallerToken,
    player_id: RequestedPlayerId,
    service: CatalogService = Depends(get_catalog_service),
) -> dict[str, Any]:
    if action not in MATCHMAKING_ACTIONS:
        return await service.echo(token, request.method, request.url.path, dict(request.query_params), body)
    return await service.lobby(action, token, player_id)


def list_route(kind: str):
    async def catalog_list(
        token: CallerToken,
        service: CatalogService = Depends(get_catalog_service),
    ) -> dict[str, Any]:
        return await service.catalog_list(kind, token)

    return catalog_list


for _kind, _paths in LIST_ROUTES.items():
    for _path in _paths:
        router.add_api_route(_path, list_route(_kind), methods=ALL_METHODS, name=f"{_kind}_list")
