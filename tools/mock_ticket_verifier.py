"""
Mock implementation of an external ticket verification service.

Answers the same shape as the Steam `AuthenticateUserTicket` call so the live
API mock can exercise its verifier locally:

* GET /ISteamUserAuth/AuthenticateUserTicket/v1  - ?ticket=...&key=...&appid=...

Tickets starting with "bad" are rejected; every other non-empty ticket is
accepted and mapped to a stable 17-digit id.

Run with granian:
    granian --interface ASGI --host 127.0.0.1 --port 18081 tools.mock_ticket_verifier:app

Then point TICKET_VERIFY_URL to
http://127.0.0.1:18081/ISteamUserAuth/AuthenticateUserTicket/v1 (e.g. in env.local).
"""

from __future__ import annotations

import hashlib

from fastapi import FastAPI, Query
from fastapi.responses import ORJSONResponse

app = FastAPI(title="ticket-verifier mock", version="0.1.0", default_response_class=ORJSONResponse)

_STEAM64_BASE = 76561197960265728
_REJECT_PREFIX = "bad"


def _mock_steamid(ticket: str) -> str:
    digest = hashlib.sha256(f"verified:{ticket}".encode("utf-8")).hexdigest()
    return str(_STEAM64_BASE + int(digest[:8], 16))


@app.get("/ISteamUserAuth/AuthenticateUserTicket/v1")
async def authenticate_user_ticket(
    ticket: str = Query(""),
    key: str | None = Query(None),
    appid: str | None = Query(None),
):
    if not ticket or ticket.startswith(_REJECT_PREFIX):
        return {"response": {"error": {"errorcode": 3, "errordesc": "Invalid parameter"}}}

    steamid = _mock_steamid(ticket)
    return {
        "response": {
            "params": {
                "result": "OK",
                "steamid": steamid,
                "ownersteamid": steamid,
                "vacbanned": False,
                "publisherbanned": False,
            }
        }
    }


@app.get("/health")
async def health():
    return {"ok": True}
