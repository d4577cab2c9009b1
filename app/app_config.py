from typing import Literal

from pydantic import BaseModel, ConfigDict

from app.cw.config import config


def _public_base_url() -> str:
    for key in ("PUBLIC_BASE_URL", "RENDER_EXTERNAL_URL"):
        url = config.get_str(key)
        if url:
            return url.rstrip("/")
    return f"http://localhost:{config.get_int('PORT', 10000)}"


def _pg_strict_ssl() -> bool | None:
    # Unset keeps whatever sslmode the DSN asks for.
    if not config.get_str("PG_STRICT_SSL"):
        return None
    return config.get_bool("PG_STRICT_SSL")


class AppEnvironConfig(BaseModel):
    # Defaults are read from the environment
    model_config = ConfigDict(validate_default=True)

    API_HOST: str = config.get_str("HOST", "0.0.0.0")
    API_PORT: int = config.get_int("PORT", 10000)
    API_WORKERS: int = config.get_int("API_WORKERS", 1)
    API_CORS_ORIGINS: list[str] = [
        x.strip() for x in config.get_str("API_CORS_ORIGINS", "*").split(",") if x.strip()
    ]
    DEBUG: bool = config.get_bool("DEBUG")

    # Store: no DATABASE_URL means the in-memory adapter
    DATABASE_URL: str | None = config.get_database_url() or None
    PG_STRICT_SSL: bool | None = _pg_strict_ssl()

    # Value embedded into every envelope's server/baseUrl fields
    PUBLIC_BASE_URL: str = _public_base_url()
    SERVER_REGION: str = config.get_str("SERVER_REGION", "sg")

    # Identity derivation
    IDENTITY_POLICY: Literal["deterministic", "random"] = config.get_str("IDENTITY_POLICY", "deterministic").lower()
    IDENTITY_FORMAT: Literal["steam64", "tag"] = config.get_str("IDENTITY_FORMAT", "steam64").lower()
    IDENTITY_HASH: Literal["sha256", "md5"] = config.get_str("IDENTITY_HASH", "sha256").lower()
    SESSION_TTL_SECONDS: int = config.get_int("SESSION_TTL_SECONDS", 86400)
    DEFAULT_CLIENT_VERSION: str = config.get_str("DEFAULT_CLIENT_VERSION", "1.0.6.0")

    # Optional external ticket verification (fail-open)
    TICKET_VERIFY_URL: str | None = config.get_str("TICKET_VERIFY_URL") or None
    TICKET_VERIFY_API_KEY: str | None = config.get_str("TICKET_VERIFY_API_KEY") or None
    TICKET_VERIFY_APP_ID: str | None = config.get_str("TICKET_VERIFY_APP_ID") or None
    TICKET_VERIFY_TIMEOUT: int = config.get_int("TICKET_VERIFY_TIMEOUT", 5)

    DEBUG_BUFFER_SIZE: int = config.get_int("DEBUG_BUFFER_SIZE", 16)

    LOGFIRE_ENABLE: bool = config.get_bool("LOGFIRE_ENABLE")
    LOGFIRE_TOKEN: str | None = config.get_str("LOGFIRE_TOKEN") or None


_app_environ_config = AppEnvironConfig()


def get_app_environ_config() -> AppEnvironConfig:
    return _app_environ_config
