"""Ticket -> pseudo player id / session token derivation.

This is a labeling function, not an authentication mechanism: nothing here
proves the ticket is genuine.
"""

import hashlib
import uuid
from dataclasses import dataclass
from enum import Enum
from time import time

# Lowest 64-bit platform id; derived ids land just above it so they look like
# real 17-digit account ids.
STEAM64_BASE = 76561197960265728
STEAM64_SPAN = 10_000_000_000

TAG_PREFIX = "p_"
TAG_HEX_LENGTH = 16


class IdentityPolicy(str, Enum):
    DETERMINISTIC = "deterministic"
    RANDOM = "random"


class IdentityFormat(str, Enum):
    STEAM64 = "steam64"
    TAG = "tag"


class HashAlgorithm(str, Enum):
    SHA256 = "sha256"
    MD5 = "md5"


@dataclass(frozen=True)
class DerivedIdentity:
    player_id: str
    token: str
    issued_at: int


class IdentityDeriver:
    """Derives player ids and tokens from client tickets.

    Under the deterministic policy the player id depends only on the ticket;
    the token additionally mixes in a salt (player id + issue time) so each
    auth call opens a distinct session. The random policy draws both values
    from uuid4 on every call.
    """

    def __init__(
        self,
        policy: IdentityPolicy | str = IdentityPolicy.DETERMINISTIC,
        id_format: IdentityFormat | str = IdentityFormat.STEAM64,
        algorithm: HashAlgorithm | str = HashAlgorithm.SHA256,
    ):
        self.policy = IdentityPolicy(policy)
        self.id_format = IdentityFormat(id_format)
        self.algorithm = HashAlgorithm(algorithm)

    def _digest(self, value: str) -> str:
        return hashlib.new(self.algorithm.value, value.encode("utf-8")).hexdigest()

    def _format_id(self, hex_digest: str) -> str:
        prefix = hex_digest[:TAG_HEX_LENGTH]
        if self.id_format == IdentityFormat.TAG:
            return f"{TAG_PREFIX}{prefix}"
        return str(STEAM64_BASE + int(prefix, 16) % STEAM64_SPAN)

    def derive_player_id(self, ticket: str | None) -> str:
        if self.policy == IdentityPolicy.RANDOM:
            return self._format_id(uuid.uuid4().hex)
        return self._format_id(self._digest(ticket or ""))

    def derive_token(self, ticket: str | None, salt: str) -> str:
        if self.policy == IdentityPolicy.RANDOM:
            return self._digest(uuid.uuid4().hex)
        return self._digest(f"{ticket or ''}:{salt}")

    def derive_identity(
        self,
        ticket: str | None,
        issued_at: int | None = None,
        player_id: str | None = None,
    ) -> DerivedIdentity:
        """Derive both values in one call.

        `player_id` lets an externally verified id replace the derived one;
        the token is then salted with the verified id.
        """
        issued_at = int(time()) if issued_at is None else issued_at
        player_id = player_id or self.derive_player_id(ticket)
        token = self.derive_token(ticket, f"{player_id}:{issued_at}")
        return DerivedIdentity(player_id=player_id, token=token, issued_at=issued_at)
