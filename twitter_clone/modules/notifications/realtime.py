"""WebSocket hub: per-user connection registry and event fan-out.

Server-to-client frames have the shape ``{"type": <event>, "payload": {...}}``.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import WebSocket, status
from fastapi.encoders import jsonable_encoder

from twitter_clone.core.cache.redis_cache import cache_manager
from twitter_clone.core.config import settings
from twitter_clone.core.monitoring import hub_connections, hub_events_sent_total

logger = logging.getLogger(__name__)

RECEIVE_TWEET = "ReceiveTweet"
RECEIVE_NOTIFICATION = "ReceiveNotification"
RECEIVE_MESSAGE = "ReceiveMessage"
ERROR = "Error"


def build_frame(event: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": event, "payload": jsonable_encoder(payload)}


class ConnectionManager:
    """Tracks active WebSocket connections per user.

    Connections of one user are kept in a list so that several tabs/devices all
    receive the same events. A per-user cap rejects runaway clients with a policy
    violation close. Presence counts are mirrored to Redis when it is configured.
    """

    def __init__(
        self,
        *,
        max_connections_per_user: int = 5,
        registry_ttl: int = 600,
    ) -> None:
        self.active_connections: Dict[int, List[WebSocket]] = {}
        self.last_disconnect_reason: Dict[int, str] = {}
        self._lock = asyncio.Lock()
        self.max_connections_per_user = max_connections_per_user
        self.registry_ttl = registry_ttl

    async def connect(self, websocket: WebSocket, user_id: int) -> bool:
        """Accept and register a socket; False when the user is over the cap."""
        await websocket.accept()
        async with self._lock:
            slots = self.active_connections.setdefault(user_id, [])
            if len(slots) >= self.max_connections_per_user:
                await websocket.close(
                    code=status.WS_1008_POLICY_VIOLATION,
                    reason="socket limit exceeded",
                )
                self.last_disconnect_reason[user_id] = "limit_exceeded"
                logger.warning(
                    "WebSocket connection rejected for user %s (limit=%s)",
                    user_id,
                    self.max_connections_per_user,
                )
                return False
            slots.append(websocket)
            count = len(slots)

        hub_connections.inc()
        logger.info("WebSocket connected for user %s (connections=%s)", user_id, count)
        await self._sync_presence(user_id)
        return True

    async def disconnect(
        self,
        websocket: WebSocket,
        user_id: int,
        *,
        reason: str = "client_disconnected",
    ) -> None:
        async with self._lock:
            removed = self._remove(websocket, user_id)
            self.last_disconnect_reason[user_id] = reason
        if removed:
            hub_connections.dec()
        logger.info(
            "WebSocket disconnected for user %s (reason=%s, remaining=%s)",
            user_id,
            reason,
            self.connection_count(user_id),
        )
        await self._sync_presence(user_id, reason=reason)

    async def send_event(self, user_id: int, event: str, payload: Dict[str, Any]) -> int:
        """Push one event to every session of ``user_id``; returns deliveries."""
        connections = list(self.active_connections.get(user_id, []))
        if not connections:
            return 0

        frame = build_frame(event, payload)
        delivered = 0
        broken: List[WebSocket] = []
        for connection in connections:
            try:
                await connection.send_json(frame)
                delivered += 1
            except Exception as exc:
                logger.error("Error sending %s to user %s: %s", event, user_id, exc)
                broken.append(connection)

        if delivered:
            hub_events_sent_total.labels(event=event).inc(delivered)
        if broken:
            async with self._lock:
                for connection in broken:
                    if self._remove(connection, user_id):
                        hub_connections.dec()
            await self._sync_presence(user_id, reason="send_failure_cleanup")
        return delivered

    async def broadcast_event(self, event: str, payload: Dict[str, Any]) -> int:
        """Push one event to every connected session."""
        delivered = 0
        for user_id in list(self.active_connections.keys()):
            delivered += await self.send_event(user_id, event, payload)
        return delivered

    async def send_error(self, websocket: WebSocket, message: str) -> None:
        await websocket.send_json(build_frame(ERROR, {"message": message}))

    def connection_count(self, user_id: int) -> int:
        return len(self.active_connections.get(user_id, []))

    def is_online(self, user_id: int) -> bool:
        return self.connection_count(user_id) > 0

    def metrics(self) -> dict:
        return {
            "active_users": len(self.active_connections),
            "connection_counts": {
                user_id: len(slots) for user_id, slots in self.active_connections.items()
            },
            "last_disconnect_reason": dict(self.last_disconnect_reason),
        }

    async def clear_presence(self) -> None:
        """Drop every mirrored presence entry; called on shutdown."""
        if cache_manager.enabled:
            await cache_manager.invalidate_by_tag("presence")

    def reset(self) -> None:
        """Forget every registered socket without closing it."""
        self.active_connections.clear()
        self.last_disconnect_reason.clear()

    def _remove(self, websocket: WebSocket, user_id: int) -> bool:
        slots = self.active_connections.get(user_id)
        if not slots or websocket not in slots:
            return False
        slots.remove(websocket)
        if not slots:
            self.active_connections.pop(user_id, None)
        return True

    async def _sync_presence(self, user_id: int, *, reason: Optional[str] = None) -> None:
        """Mirror the connection count for ``user_id`` into Redis."""
        if not cache_manager.enabled:
            return
        payload = {
            "count": self.connection_count(user_id),
            "last_disconnect_reason": reason or self.last_disconnect_reason.get(user_id),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        await cache_manager.set_with_tags(
            f"presence:{user_id}",
            payload,
            tags=["presence", f"user:{user_id}"],
            ttl=self.registry_ttl,
        )


manager = ConnectionManager(
    max_connections_per_user=settings.hub_max_connections_per_user,
    registry_ttl=settings.hub_presence_ttl,
)


__all__ = [
    "ConnectionManager",
    "manager",
    "build_frame",
    "RECEIVE_TWEET",
    "RECEIVE_NOTIFICATION",
    "RECEIVE_MESSAGE",
    "ERROR",
]
