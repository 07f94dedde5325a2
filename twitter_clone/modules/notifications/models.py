"""SQLAlchemy models and enums for the notifications domain."""

from __future__ import annotations

import enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from twitter_clone.core.db_defaults import timestamp_default, utcnow
from twitter_clone.models.base import Base


class NotificationType(str, enum.Enum):
    NEW_TWEET = "new_tweet"
    REPLY = "reply"
    LIKE = "like"
    RETWEET = "retweet"
    FOLLOW = "follow"
    MESSAGE = "message"


class Notification(Base):
    """A per-user record signalling an event such as a new tweet from a followed user."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    actor_id = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    tweet_id = Column(
        Integer, ForeignKey("tweets.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    notification_type = Column(
        String(32), nullable=False, default=NotificationType.NEW_TWEET.value
    )
    message = Column(String, nullable=False)
    is_seen = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=timestamp_default(),
    )

    user = relationship("User", back_populates="notifications", foreign_keys=[user_id])
    actor = relationship("User", foreign_keys=[actor_id])
    tweet = relationship("Tweet")

    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "tweet_id",
            "notification_type",
            "actor_id",
            name="uq_notifications_user_tweet_type_actor",
        ),
        Index("idx_notifications_user_created", "user_id", "created_at"),
        Index("idx_notifications_user_seen", "user_id", "is_seen"),
    )


__all__ = ["NotificationType", "Notification"]
