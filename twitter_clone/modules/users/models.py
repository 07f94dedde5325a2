"""SQLAlchemy models for the users domain."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship

from twitter_clone.core.db_defaults import timestamp_default, utcnow
from twitter_clone.models.base import Base


class User(Base):
    """Application user; author of tweets and a node of the follow graph."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, nullable=False)
    username = Column(String(256), nullable=False, unique=True, index=True)
    email = Column(String(256), nullable=False, unique=True, index=True)
    hashed_password = Column(String, nullable=False)
    bio = Column(Text, nullable=False, default="")
    profile_picture = Column(String, nullable=False, default="")
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=timestamp_default(),
    )

    tweets = relationship("Tweet", back_populates="user", passive_deletes=True)
    liked_tweets = relationship("Like", back_populates="user")
    retweets = relationship("Retweet", back_populates="user")
    bookmarked_tweets = relationship("Bookmark", back_populates="user")
    followers = relationship(
        "UserFollower",
        back_populates="following",
        foreign_keys="UserFollower.following_id",
    )
    following = relationship(
        "UserFollower",
        back_populates="follower",
        foreign_keys="UserFollower.follower_id",
    )
    notifications = relationship(
        "Notification",
        back_populates="user",
        foreign_keys="Notification.user_id",
    )
    sent_messages = relationship(
        "ChatMessage", back_populates="sender", foreign_keys="ChatMessage.sender_id"
    )
    received_messages = relationship(
        "ChatMessage",
        back_populates="recipient",
        foreign_keys="ChatMessage.recipient_id",
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r}>"


__all__ = ["User"]
