"""Path canonicalization for the live API.

Clients call the same operation under several spellings: `/player/authen`,
`/api/player/authen`, `/live/player/authen`, or any path ending in an
operation token such as `.../GetPlayerAPI`. The middleware rewrites the ASGI
scope path before routing; the query string is untouched and the original
path is kept in `scope["state"]["original_path"]`.
"""

import re

from loguru import logger
from starlette.types import ASGIApp, Receive, Scope, Send

LIVE_PREFIX = "/live"

PATH_TOKENS = {
    "GetPlayerAPI": "/live/player/get",
    "GetStoreAPI": "/live/store/list",
    "GetLootboxAPI": "/live/lootbox/balance",
    "GetRankedAPI": "/live/ranked/info",
    "MailBoxGet": "/live/mail/get",
    "MailBoxRead": "/live/mail/read",
    "MailBoxClaim": "/live/mail/claim",
    "MailBoxRemove": "/live/mail/remove",
    "Announcement": "/live/announcement",
    "GetServerVersion": "/live/version",
    "GetQuestSkinAPI": "/live/quest/skin",
    "GetCurseRelicAPI": "/live/curse/relic",
    "LogReport": "/live/log/report",
    "LogTransaction": "/live/log/transaction",
    "LogStore": "/live/log/store",
    "LogGetPlayerData": "/live/log/getplayerdata",
}

# Operations reachable as /<op> and /api/<op>
CANONICAL_OPERATIONS = (
    "player/authen",
    "player/get",
    "store/list",
    "lootbox/balance",
    "ranked/info",
    "mail/get",
    "mail/read",
    "mail/claim",
    "mail/remove",
    "announcement",
    "version",
    "quest/skin",
    "curse/relic",
    "player/profile",
    "player/currency",
    "character/list",
    "skin/list",
    "item/list",
    "product/list",
    "lobby/create",
    "lobby/join",
    "lobby/leave",
    "matchmaking/search",
    "matchmaking/cancel",
)

# Alternate login paths, under every prefix
LOGIN_PATHS = ("player/auth", "auth/login")

PREFIX_ALIASES = {
    **{f"/{op}": f"{LIVE_PREFIX}/{op}" for op in CANONICAL_OPERATIONS},
    **{f"/api/{op}": f"{LIVE_PREFIX}/{op}" for op in CANONICAL_OPERATIONS},
    **{f"{prefix}/{op}": f"{LIVE_PREFIX}/player/authen" for prefix in ("", "/api", LIVE_PREFIX) for op in LOGIN_PATHS},
}

_TOKEN_RE = re.compile(r"(?:^|/)(" + "|".join(map(re.escape, PATH_TOKENS)) + r")/?$")


def canonical_path(path: str) -> str | None:
    """Canonical `/live/...` path for an alias, or None when `path` is not one."""
    stripped = path.rstrip("/") or "/"
    if stripped in PREFIX_ALIASES:
        return PREFIX_ALIASES[stripped]

    match = _TOKEN_RE.search(path)
    if match:
        return PATH_TOKENS[match.group(1)]

    if stripped != path and stripped.startswith(f"{LIVE_PREFIX}/"):
        return stripped
    return None


class PathAliasMiddleware:
    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope["path"]
        target = canonical_path(path)
        if target is not None and target != path:
            logger.debug("alias {} -> {}", path, target)
            scope = dict(scope)
            scope["path"] = target
            scope["raw_path"] = target.encode("utf-8")
            scope["state"] = {**scope.get("state", {}), "original_path": path}

        await self.app(scope, receive, send)
