"""
Live match fan-out over WebSocket.
Connections are process-local: match_id -> subscribed sockets. The database is
the source of truth; every push carries the full current state so late joiners
and reconnecting clients never need to replay deltas.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class LiveHub:
    def __init__(self) -> None:
        self._connections: dict[str, list[WebSocket]] = {}

    def subscribe(self, match_id: str, websocket: WebSocket) -> None:
        self._connections.setdefault(match_id, []).append(websocket)

    def unsubscribe(self, match_id: str, websocket: WebSocket) -> None:
        if match_id not in self._connections:
            return
        self._connections[match_id] = [w for w in self._connections[match_id] if w is not websocket]
        if not self._connections[match_id]:
            del self._connections[match_id]

    def subscriber_count(self, match_id: str) -> int:
        return len(self._connections.get(match_id, []))

    async def broadcast(self, match_id: str, payload: dict[str, Any]) -> int:
        """Send payload to every subscriber of match_id. Dead sockets are dropped. Returns deliveries."""
        delivered = 0
        for ws in self._connections.get(match_id, [])[:]:
            try:
                await ws.send_json(payload)
                delivered += 1
            except Exception as exc:  # client went away between receive loops
                logger.debug("Dropping live subscriber for match %s: %s", match_id, exc)
                self.unsubscribe(match_id, ws)
        return delivered


hub = LiveHub()
