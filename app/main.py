import time
import traceback
import uuid
from contextlib import asynccontextmanager
from os import environ

import logfire
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from granian import Granian
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.live.aliasing import PathAliasMiddleware
from app.api.live.errors import (
    http_exception_handler,
    internal_error_response,
    is_live_path,
    live_error_handler,
    validation_exception_handler,
)
from app.app_config import get_app_environ_config
from app.domain.live.live_services import build_live_services
from app.shared.api.utils import init_logger, load_routes
from app.utils.live_errors import LiveError, LiveErrorCode, LiveStatusCode

# Registration order; the /live/* catch-all goes last
ROUTE_MODULES = [
    "app.shared.api.health",
    "app.api.live.routers.debug",
    "app.api.live.routers.player",
    "app.api.live.routers.catalog",
    "app.api.live.routers.logs",
    "app.api.live.routers.fallback",
]


class HTTPLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore
        start_time = time.time()
        request_id = str(uuid.uuid4())[:8]
        original_path = request.scope.get("state", {}).get("original_path")
        path_info = f"{request.url.path} (from {original_path})" if original_path else request.url.path

        # Log the incoming request
        logger.info(f"[{request_id}] {request.method} {path_info}")

        try:
            # Process the request
            response = await call_next(request)

            # Calculate request duration
            process_time = (time.time() - start_time) * 1000

            # Log the response
            logger.info(
                f"[{request_id}] {request.method} {path_info} - "
                f"Status: {response.status_code} - "
                f"Duration: {process_time:.2f}ms"
            )

            return response

        except Exception as exc:
            # Calculate request duration
            process_time = (time.time() - start_time) * 1000

            # Log the exception with full traceback
            logger.error(
                f"[{request_id}] Unhandled exception in {request.method} {path_info} - "
                f"Duration: {process_time:.2f}ms - "
                f"Error: {type(exc).__name__}: {exc}\n"
                f"Traceback:\n{traceback.format_exc()}"
            )

            # Game clients only understand 200 envelopes on the live surface
            if is_live_path(request.url.path):
                return internal_error_response(request_id)

            return ORJSONResponse(
                status_code=LiveStatusCode.INTERNAL_SERVER_ERROR,
                content={
                    "error": f"Internal server error (request_id: {request_id})",
                    "errcode": LiveErrorCode.E_INTERNAL.value,
                },
            )


@asynccontextmanager
async def lifespan(server: FastAPI):
    init_logger()

    logger.info("Application startup...")

    app_config = get_app_environ_config()

    if getattr(server.state, "live_services", None) is None:
        server.state.live_services = build_live_services(app_config)
    live_services = server.state.live_services

    # Soft failure: the adapter logs and the server keeps serving defaults
    if not await live_services.store.ensure_schema():
        logger.warning("{} schema not ensured, continuing", LiveErrorCode.E_STORE_UNAVAILABLE.value)
    logger.info("Store: {}", live_services.store.kind)

    if app_config.LOGFIRE_ENABLE:
        logger.info("Logfire initializing")

        logfire.configure(
            token=app_config.LOGFIRE_TOKEN,
            service_name="live-api-mock",
            service_version=environ.get("BUILD_COMMIT") or "dev",
        )

        logger.info("Logfire instrument fastapi")
        logfire.instrument_fastapi(server, capture_headers=False)

        logger.info("Logfire instrument asyncpg")
        logfire.instrument_asyncpg()

        logger.info("Logfire instrument pydantic")
        logfire.instrument_pydantic()

    yield

    logger.info("Application shutdown...")

    await live_services.close()


def create_app() -> FastAPI:
    app_config = get_app_environ_config()

    server = FastAPI(
        version="1.0",
        title="Live API Mock",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    server.add_middleware(HTTPLoggingMiddleware)

    server.add_middleware(
        CORSMiddleware,  # type: ignore
        allow_origins=app_config.API_CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Outermost: rewrite aliases before anything sees the path
    server.add_middleware(PathAliasMiddleware)  # type: ignore

    server.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore
    server.add_exception_handler(LiveError, live_error_handler)  # type: ignore
    server.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore

    load_routes(server, ROUTE_MODULES)

    return server


app = create_app()


def build_granian_kwargs():
    app_config = get_app_environ_config()
    kwargs = {
        "interface": "asgi",
        "address": app_config.API_HOST,
        "port": app_config.API_PORT,
        "workers": app_config.API_WORKERS,
        "reload": app_config.DEBUG,
    }

    return kwargs


if __name__ == "__main__":
    granian_kwargs = build_granian_kwargs()
    Granian("app.main:app", **granian_kwargs).serve()
