"""Follow-graph lookups shared by the follow and notification services."""

from __future__ import annotations

from typing import List

from sqlalchemy.orm import Session

from .models import UserFollower


def follower_ids(db: Session, user_id: int) -> List[int]:
    """Ids of the users following ``user_id``."""
    rows = (
        db.query(UserFollower.follower_id)
        .filter(UserFollower.following_id == user_id)
        .order_by(UserFollower.follower_id)
        .all()
    )
    return [follower_id for (follower_id,) in rows]


def is_following(db: Session, follower_id: int, following_id: int) -> bool:
    return (
        db.query(UserFollower)
        .filter(
            UserFollower.follower_id == follower_id,
            UserFollower.following_id == following_id,
        )
        .first()
        is not None
    )


def count_followers(db: Session, user_id: int) -> int:
    return db.query(UserFollower).filter(UserFollower.following_id == user_id).count()


def count_following(db: Session, user_id: int) -> int:
    return db.query(UserFollower).filter(UserFollower.follower_id == user_id).count()
