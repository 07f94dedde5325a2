"""Direct messaging between two users.

Both entry points (HTTP and the hub's ``SendMessage`` invocation) go through
``MessageService.send_message`` so a message is always stored before it is pushed.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from twitter_clone.core.exceptions import (
    ResourceNotFoundException,
    SelfActionException,
    ValidationException,
)
from twitter_clone.modules.notifications.models import NotificationType
from twitter_clone.modules.notifications.realtime import (
    RECEIVE_MESSAGE,
    ConnectionManager,
    manager,
)
from twitter_clone.modules.notifications.service import NotificationService
from twitter_clone.modules.users.models import User

from .models import ChatMessage

logger = logging.getLogger(__name__)


def message_payload(message: ChatMessage, sender: User) -> dict:
    """Payload of the ``ReceiveMessage`` event."""
    return {
        "id": message.id,
        "message": message.content,
        "username": sender.username,
        "sender_id": sender.id,
        "created_at": message.created_at,
    }


class MessageService:
    def __init__(
        self,
        db: Session,
        hub: Optional[ConnectionManager] = None,
        notifications: Optional[NotificationService] = None,
    ):
        self.db = db
        self.hub = hub or manager
        self.notifications = notifications or NotificationService(db, hub=self.hub)

    def _get_user_or_404(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise ResourceNotFoundException("User", user_id)
        return user

    async def send_message(self, sender: User, recipient_id: int, content: str) -> ChatMessage:
        if not content or not content.strip():
            raise ValidationException("Message must not be empty", field="content")
        if sender.id == recipient_id:
            raise SelfActionException("message")
        recipient = self._get_user_or_404(recipient_id)

        message = ChatMessage(sender_id=sender.id, recipient_id=recipient.id, content=content)
        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)
        logger.info("User %s sent message %s to user %s", sender.id, message.id, recipient.id)

        try:
            await self.hub.send_event(recipient.id, RECEIVE_MESSAGE, message_payload(message, sender))
        except Exception as exc:
            logger.error("Failed to push message %s: %s", message.id, exc)

        await self.notifications.notify(
            recipient.id,
            NotificationType.MESSAGE,
            f"{sender.username} sent you a message",
            actor_id=sender.id,
        )
        return message

    def conversation(self, user: User, other_id: int, *, skip: int = 0, limit: int = 100) -> List[ChatMessage]:
        """Messages exchanged with ``other_id``, oldest first."""
        self._get_user_or_404(other_id)
        return (
            self.db.query(ChatMessage)
            .filter(
                or_(
                    and_(ChatMessage.sender_id == user.id, ChatMessage.recipient_id == other_id),
                    and_(ChatMessage.sender_id == other_id, ChatMessage.recipient_id == user.id),
                )
            )
            .order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def conversations(self, user: User) -> List[Tuple[User, ChatMessage]]:
        """Each chat partner with the latest message exchanged, most recent first."""
        partner = func.coalesce(
            func.nullif(ChatMessage.sender_id, user.id), ChatMessage.recipient_id
        ).label("partner_id")
        latest = (
            self.db.query(partner, func.max(ChatMessage.id).label("last_id"))
            .filter(or_(ChatMessage.sender_id == user.id, ChatMessage.recipient_id == user.id))
            .group_by(partner)
            .subquery()
        )
        rows = (
            self.db.query(User, ChatMessage)
            .join(latest, latest.c.partner_id == User.id)
            .join(ChatMessage, ChatMessage.id == latest.c.last_id)
            .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
            .all()
        )
        return [(partner_user, message) for partner_user, message in rows]
