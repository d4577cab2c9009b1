"""Catch-all for unknown `/live/*` operations.

Loaded last so every concrete route wins; answers any method with a generic
success envelope echoing the request.
"""

from typing import Any

from fastapi import APIRouter, Depends, Request

from app.api.live.dependency import CallerToken, RequestBody, get_catalog_service
from app.api.live.routers.player import ALL_METHODS
from app.domain.live.catalog.catalog_domain import CatalogService

router = APIRouter(tags=["Live"])


@router.api_route("/live", methods=ALL_METHODS)
@router.api_route("/live/{rest:path}", methods=ALL_METHODS)
async def live_fallback(
    request: Request,
    body: RequestBody,
    token: CallerToken,
    service: CatalogService = Depends(get_catalog_service),
) -> dict[str, Any]:
    return await service.echo(
        token,
        request.method,
        request.url.path,
        dict(request.query_params),
        body,
    )
