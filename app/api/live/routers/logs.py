from typing import Any

from fastapi import APIRouter, Depends

from app.api.live.dependency import CallerToken, RequestBody, get_catalog_service
from app.domain.live.catalog.catalog_domain import CatalogService

router = APIRouter(tags=["Live"])


@router.post("/live/log/{log_type}")
async def log_sink(
    log_type: str,
    body: RequestBody,
    token: CallerToken,
    service: CatalogService = Depends(get_catalog_service),
) -> dict[str, Any]:
    """Append the body as a log entry of `log_type`."""
    return await service.log(log_type.lower(), token, body)


@router.get("/YGG/{name}")
async def cache_get(
    name: str,
    service: CatalogService = Depends(get_catalog_service),
) -> Any:
    return await service.cache_get(name)


@router.post("/YGG/{name}")
async def cache_post(
    name: str,
    body: RequestBody,
    token: CallerToken,
    service: CatalogService = Depends(get_catalog_service),
) -> dict[str, Any]:
    return await service.cache_post(name, body, token)
