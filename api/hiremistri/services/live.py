from __future__ import annotations

from functools import lru_cache
import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class LiveConnection(Protocol):
    async def send_json(self, data: Any, mode: str = "text") -> None: ...


class ConnectionHub:
    """Tracks live WebSocket connections per user; one user may hold many."""

    def __init__(self) -> None:
        self._connections: dict[str, set[LiveConnection]] = {}

    def join(self, user_id: str, connection: LiveConnection) -> None:
        self._connections.setdefault(user_id, set()).add(connection)

    def leave(self, connection: LiveConnection) -> None:
        for user_id in list(self._connections):
            sockets = self._connections[user_id]
            sockets.discard(connection)
            if not sockets:
                del self._connections[user_id]

    def connection_count(self, user_id: str) -> int:
        return len(self._connections.get(user_id, ()))

    async def emit_to_user(self, user_id: str, event: str, data: dict[str, Any]) -> int:
        """Multicast to every connection of the user; returns the number reached."""
        delivered = 0
        for connection in list(self._connections.get(user_id, ())):
            try:
                await connection.send_json({"event": event, "data": data})
            except Exception as exc:  # noqa: BLE001
                logger.info("dropping live connection user_id=%s event=%s error=%s", user_id, event, exc)
                self.leave(connection)
                continue
            delivered += 1
        return delivered


@lru_cache
def get_connection_hub() -> ConnectionHub:
    return ConnectionHub()
