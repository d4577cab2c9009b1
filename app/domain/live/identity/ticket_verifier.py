import asyncio
from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger


@dataclass(frozen=True)
class TicketVerdict:
    valid: bool
    player_id: str | None = None


def _parse_verdict(body: Any) -> TicketVerdict | None:
    if not isinstance(body, dict):
        return None

    # Steam-style: {"response": {"params": {"result": "OK", "steamid": "..."}}}
    response = body.get("response")
    if isinstance(response, dict):
        if response.get("error"):
            return TicketVerdict(valid=False)
        params = response.get("params")
        if isinstance(params, dict):
            valid = str(params.get("result", "")).upper() == "OK"
            steamid = params.get("steamid") or params.get("steamId")
            return TicketVerdict(valid=valid, player_id=str(steamid) if steamid else None)

    # Flat: {"valid": true, "playerId": "..."}
    if "valid" in body:
        player_id = body.get("playerId") or body.get("steamid") or body.get("steamId")
        return TicketVerdict(valid=bool(body["valid"]), player_id=str(player_id) if player_id else None)

    return None


class TicketVerifier:
    """Best-effort check of a client ticket against an external identity service.

    Returns None whenever the service cannot give an answer; callers must then
    carry on with the derived pseudo id.
    """

    def __init__(
        self,
        url: str,
        api_key: str | None = None,
        app_id: str | None = None,
        timeout: float = 5,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.api_key = api_key
        self.app_id = app_id
        self.timeout = httpx.Timeout(timeout, connect=min(2, timeout))
        self._transport = transport

    def _build_params(self, ticket: str) -> dict[str, str]:
        params = {"ticket": ticket}
        if self.api_key:
            params["key"] = self.api_key
        if self.app_id:
            params["appid"] = self.app_id
        return params

    async def verify(self, ticket: str) -> TicketVerdict | None:
        if not ticket:
            return None

        params = self._build_params(ticket)
        for attempt in (1, 2):
            try:
                async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                    logger.debug("calling ticket verifier attempt={} url={}", attempt, self.url)
                    resp = await client.get(self.url, params=params)
                if resp.status_code != 200:
                    logger.debug(
                        "ticket verifier response status={} text={}", resp.status_code, resp.text
                    )
                    return None
                verdict = _parse_verdict(resp.json())
                logger.debug("ticket verifier verdict={}", verdict)
                return verdict
            except (httpx.HTTPError, ValueError) as e:
                if attempt == 1:
                    await asyncio.sleep(0.05)
                    continue
                logger.warning("call ticket verifier failed: {}", e)
        return None
