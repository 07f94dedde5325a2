"""Follow-graph models."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship

from twitter_clone.core.db_defaults import timestamp_default, utcnow
from twitter_clone.models.base import Base


class UserFollower(Base):
    """Directed edge: `follower` follows `following`."""

    __tablename__ = "user_followers"

    follower_id = Column(
        Integer, ForeignKey("users.id", ondelete="RESTRICT"), primary_key=True
    )
    following_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="RESTRICT"),
        primary_key=True,
        index=True,
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=timestamp_default(),
    )

    follower = relationship(
        "User", back_populates="following", foreign_keys=[follower_id]
    )
    following = relationship(
        "User", back_populates="followers", foreign_keys=[following_id]
    )


__all__ = ["UserFollower"]
