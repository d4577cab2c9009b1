from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from app.api.live.dependency import get_store
from app.domain.live.store.persistence import PersistenceAdapter


router = APIRouter()


@router.get('/health')
async def health(store: PersistenceAdapter = Depends(get_store)):
    # Always 200; the store kind is informational only
    return {'ok': True, 'store': store.kind}


@router.get('/', response_class=PlainTextResponse)
async def banner():
    return 'live api mock server is running'
