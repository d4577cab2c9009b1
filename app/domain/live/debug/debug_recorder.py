from collections import deque
from typing import Any

REDACTED_HEADERS = {"authorization", "cookie", "x-auth-token", "proxy-authorization"}


def redact_headers(headers: dict[str, str]) -> dict[str, str]:
    return {k: ("***" if k.lower() in REDACTED_HEADERS else v) for k, v in headers.items()}


class DebugRecorder:
    """Bounded ring buffer of recent request/response pairs.

    Process-lifetime only; the oldest entry is dropped once `capacity` is
    reached.
    """

    def __init__(self, capacity: int = 16):
        self._entries: deque[dict[str, Any]] = deque(maxlen=max(1, capacity))

    def record(self, request: dict[str, Any], response: dict[str, Any]) -> None:
        if "headers" in request:
            request = {**request, "headers": redact_headers(request["headers"])}
        self._entries.append({"request": request, "response": response})

    def latest(self) -> dict[str, Any] | None:
        return self._entries[-1] if self._entries else None

    def history(self) -> list[dict[str, Any]]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
