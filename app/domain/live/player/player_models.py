"""Player domain models."""

from typing import Any

from loguru import logger
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from app.utils.live_errors import LiveErrorCode


def _coerce_optional_str(v: Any) -> str | None:
    if v is None:
        return None
    if isinstance(v, str):
        return v
    if isinstance(v, (int, float, bool)):
        return str(v)
    return None


class AuthenParams(BaseModel):
    """Body of the authen call. Every field is optional and loosely typed."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    ticket: str | None = Field(
        default=None, validation_alias=AliasChoices("ticket", "authTicket", "access_ticket")
    )
    auth_type: str | None = Field(default=None, validation_alias=AliasChoices("authType", "auth_type"))
    client_version: str | None = Field(
        default=None, validation_alias=AliasChoices("clientversion", "clientVersion", "version")
    )
    mac_address: str | None = Field(
        default=None, validation_alias=AliasChoices("macaddress", "macAddress", "mac_address")
    )

    @field_validator("ticket", "auth_type", "client_version", "mac_address", mode="before")
    @classmethod
    def _coerce(cls, v: Any) -> str | None:
        return _coerce_optional_str(v)

    @classmethod
    def from_body(cls, body: Any) -> "AuthenParams":
        """Tolerant parse: malformed bodies default every field."""
        if not isinstance(body, dict):
            if body:
                logger.warning("{} authen body is not an object: {}", LiveErrorCode.E_VALIDATION.value, type(body).__name__)
            return cls()
        try:
            return cls.model_validate(body)
        except ValidationError as e:
            logger.warning("{} authen body rejected: {}", LiveErrorCode.E_VALIDATION.value, e.errors())
            return cls()

    @property
    def identity_seed(self) -> str:
        """Ticket, or the MAC address for ticket-less clients."""
        if self.ticket:
            return self.ticket
        if self.mac_address:
            return f"mac:{self.mac_address}"
        return ""
