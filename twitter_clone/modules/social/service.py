"""Follow/unfollow business logic."""

from __future__ import annotations

import logging
from typing import List

from sqlalchemy.orm import Session

from twitter_clone.core.exceptions import (
    ResourceAlreadyExistsException,
    ResourceNotFoundException,
    SelfActionException,
)
from twitter_clone.modules.notifications.models import NotificationType
from twitter_clone.modules.notifications.service import NotificationService
from twitter_clone.modules.users.models import User

from . import graph
from .models import UserFollower

logger = logging.getLogger(__name__)


class FollowService:
    """Encapsulates follow graph mutations and listings."""

    def __init__(self, db: Session, notifications: NotificationService | None = None):
        self.db = db
        self.notifications = notifications or NotificationService(db)

    def _get_user_or_404(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise ResourceNotFoundException("User", user_id)
        return user

    async def follow(self, current_user: User, target_user_id: int) -> UserFollower:
        if current_user.id == target_user_id:
            raise SelfActionException("follow")
        target = self._get_user_or_404(target_user_id)
        if graph.is_following(self.db, current_user.id, target.id):
            raise ResourceAlreadyExistsException("Follow", field="following_id")

        edge = UserFollower(follower_id=current_user.id, following_id=target.id)
        self.db.add(edge)
        self.db.commit()
        logger.info("User %s followed user %s", current_user.id, target.id)

        await self.notifications.notify(
            target.id,
            NotificationType.FOLLOW,
            f"{current_user.username} started following you",
            actor_id=current_user.id,
        )
        return edge

    def unfollow(self, current_user: User, target_user_id: int) -> None:
        edge = (
            self.db.query(UserFollower)
            .filter(
                UserFollower.follower_id == current_user.id,
                UserFollower.following_id == target_user_id,
            )
            .first()
        )
        if not edge:
            raise ResourceNotFoundException("Follow", target_user_id)
        self.db.delete(edge)
        self.db.commit()
        logger.info("User %s unfollowed user %s", current_user.id, target_user_id)

    def followers(self, user_id: int) -> List[UserFollower]:
        self._get_user_or_404(user_id)
        return (
            self.db.query(UserFollower)
            .filter(UserFollower.following_id == user_id)
            .order_by(UserFollower.created_at.desc())
            .all()
        )

    def following(self, user_id: int) -> List[UserFollower]:
        self._get_user_or_404(user_id)
        return (
            self.db.query(UserFollower)
            .filter(UserFollower.follower_id == user_id)
            .order_by(UserFollower.created_at.desc())
            .all()
        )

    def follower_ids(self, user_id: int) -> List[int]:
        return graph.follower_ids(self.db, user_id)
