from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, ORJSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.domain.live.envelope import build_error_envelope
from app.utils.live_errors import LiveError, LiveErrorCode, LiveStatusCode

LIVE_PATH_PREFIXES = ("/live", "/YGG")


def is_live_path(path: str) -> bool:
    return any(path == prefix or path.startswith(f"{prefix}/") for prefix in LIVE_PATH_PREFIXES)


def internal_error_response(request_id: str) -> ORJSONResponse:
    """Error envelope for an unhandled exception; only the request id leaks out."""
    envelope = build_error_envelope(
        f"Internal server error (request_id: {request_id})",
        LiveErrorCode.E_INTERNAL.value,
    )
    return ORJSONResponse(status_code=LiveStatusCode.OK, content=envelope)


async def live_error_handler(request: Request, exc: LiveError) -> JSONResponse:
    """
    Custom exception handler for LiveError.
    Answers with an error envelope carrying the errcode and erresid.
    """
    # Log with the caller info captured when LiveError was raised
    log_msg = f"{exc.errcode} {exc.erresid} msg={exc.errmesg} caller={exc.caller_info}"
    if exc.errcode == LiveErrorCode.E_INTERNAL.value:
        logger.error(log_msg)
    else:
        logger.warning(log_msg)

    envelope = build_error_envelope(exc.errmesg, exc.errcode, exc.erresid)
    return ORJSONResponse(status_code=exc.status_code, content=envelope)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()

    logger.warning(
        "Validation error: path={} method={} errors={}",
        request.url.path,
        request.method,
        errors,
    )

    if is_live_path(request.url.path):
        envelope = build_error_envelope("invalid request", LiveErrorCode.E_VALIDATION.value)
        return ORJSONResponse(status_code=LiveStatusCode.OK, content=envelope)

    return ORJSONResponse(
        status_code=422,
        content={"error": "Invalid request", "errcode": LiveErrorCode.E_VALIDATION.value},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == LiveStatusCode.NOT_FOUND:
        return ORJSONResponse(status_code=LiveStatusCode.NOT_FOUND, content={"error": "Not found"})

    return ORJSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )
