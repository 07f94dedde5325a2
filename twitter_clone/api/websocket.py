"""Realtime hub endpoint.

Auth:
- Clients connect to ``/ws?token=<jwt>``; a missing or invalid token closes the
  socket with code 4401 before it is registered.

Protocol:
- Server to client: ``{"type": <event>, "payload": {...}}`` frames
  (``ReceiveTweet``, ``ReceiveNotification``, ``ReceiveMessage``, ``Error``).
- Client to server: ``{"invoke": "SendMessage", "args": [recipient_id, text]}``.
  Any other invocation, or a failing one, is answered with an ``Error`` frame.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from twitter_clone import oauth2
from twitter_clone.core.database import get_db
from twitter_clone.core.exceptions import AppException
from twitter_clone.modules.messaging.service import MessageService
from twitter_clone.modules.notifications.realtime import manager
from twitter_clone.modules.users.models import User

router = APIRouter()
logger = logging.getLogger(__name__)

WS_UNAUTHORIZED = 4401


async def _safe_close(websocket: WebSocket, *, code: int, reason: str) -> None:
    try:
        await websocket.close(code=code, reason=reason)
    except RuntimeError:
        logger.debug("WebSocket already closed (code=%s)", code)


async def _authenticate_websocket(
    websocket: WebSocket, db: Session, token: Optional[str]
) -> Optional[int]:
    """Return the user id for ``token`` or close the socket with 4401."""
    user = oauth2.resolve_user_from_token(db, token)
    if user is None:
        await websocket.accept()
        await _safe_close(
            websocket, code=WS_UNAUTHORIZED, reason="Invalid authentication token"
        )
        return None
    return user.id


async def _send_message(db: Session, user_id: int, args: Any) -> None:
    if not isinstance(args, list) or len(args) != 2:
        raise ValueError("SendMessage expects [recipient_id, message]")
    recipient_id, text = args
    sender = db.query(User).filter(User.id == user_id).first()
    await MessageService(db).send_message(sender, int(recipient_id), str(text))


INVOCATIONS = {"SendMessage": _send_message}


async def _dispatch(websocket: WebSocket, db: Session, user_id: int, frame: Any) -> None:
    name = frame.get("invoke") if isinstance(frame, dict) else None
    handler = INVOCATIONS.get(name)
    if handler is None:
        await manager.send_error(websocket, f"Unknown invocation: {name!r}")
        return
    try:
        await handler(db, user_id, frame.get("args"))
    except AppException as exc:
        db.rollback()
        await manager.send_error(websocket, exc.message)
    except (TypeError, ValueError) as exc:
        await manager.send_error(websocket, str(exc))


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: Optional[str] = Query(None, description="Bearer token for socket auth"),
    db: Session = Depends(get_db),
):
    """Register the socket with the hub and serve client invocations until it closes."""
    user_id = await _authenticate_websocket(websocket, db, token)
    if user_id is None:
        return

    connected = await manager.connect(websocket, user_id)
    if not connected:
        return

    try:
        while True:
            try:
                frame = await websocket.receive_json()
            except ValueError:
                await manager.send_error(websocket, "Frames must be JSON objects")
                continue
            await _dispatch(websocket, db, user_id, frame)
    except WebSocketDisconnect as exc:
        await manager.disconnect(
            websocket, user_id, reason=f"disconnect:{getattr(exc, 'code', 'unknown')}"
        )
    except Exception as exc:
        logger.exception("WebSocket error for user_id=%s: %s", user_id, exc)
        await manager.disconnect(websocket, user_id, reason="error")
        await _safe_close(websocket, code=status.WS_1011_INTERNAL_ERROR, reason="error")


__all__ = ["router"]
