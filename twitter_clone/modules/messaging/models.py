"""Direct-message model."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import relationship

from twitter_clone.core.db_defaults import timestamp_default, utcnow
from twitter_clone.models.base import Base


class ChatMessage(Base):
    """A one-to-one chat message between two users."""

    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, index=True)
    sender_id = Column(
        Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    recipient_id = Column(
        Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    content = Column(Text, nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=timestamp_default(),
    )

    sender = relationship(
        "User", back_populates="sent_messages", foreign_keys=[sender_id]
    )
    recipient = relationship(
        "User", back_populates="received_messages", foreign_keys=[recipient_id]
    )

    __table_args__ = (
        Index("idx_chat_messages_pair_created", "sender_id", "recipient_id", "created_at"),
    )


__all__ = ["ChatMessage"]
