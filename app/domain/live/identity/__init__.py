from .identity_deriver import (
    DerivedIdentity,
    HashAlgorithm,
    IdentityDeriver,
    IdentityFormat,
    IdentityPolicy,
)
from .ticket_verifier import TicketVerdict, TicketVerifier

__all__ = [
    "DerivedIdentity",
    "HashAlgorithm",
    "IdentityDeriver",
    "IdentityFormat",
    "IdentityPolicy",
    "TicketVerdict",
    "TicketVerifier",
]
