from typing import Any

from fastapi import APIRouter, Depends

from app.api.live.dependency import get_debug_recorder
from app.domain.live.debug.debug_recorder import DebugRecorder

router = APIRouter(prefix="/__debug", tags=["Debug"])


@router.get("/authen")
async def last_authen(recorder: DebugRecorder = Depends(get_debug_recorder)) -> dict[str, Any]:
    """Most recent authen request/response pair."""
    entry = recorder.latest()
    if entry is None:
        return {"note": "no authen captured yet"}
    return entry


@router.get("/history")
async def authen_history(recorder: DebugRecorder = Depends(get_debug_recorder)) -> dict[str, Any]:
    return {"count": len(recorder), "history": recorder.history()}
