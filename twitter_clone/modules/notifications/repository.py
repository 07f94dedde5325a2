"""Data-access helpers for the notifications domain."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Query, Session

from .models import Notification


class NotificationRepository:
    """Encapsulate notification-specific database operations."""

    def __init__(self, db: Session):
        self.db = db

    # ----------------------------------------------------------------- queries
    def for_user(self, user_id: int, *, unseen_only: bool = False) -> Query:
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if unseen_only:
            query = query.filter(Notification.is_seen.is_(False))
        return query.order_by(Notification.created_at.desc(), Notification.id.desc())

    def unseen_count(self, user_id: int) -> int:
        return (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.is_seen.is_(False))
            .count()
        )

    def find(
        self,
        user_id: int,
        tweet_id: Optional[int],
        notification_type: str,
        actor_id: Optional[int] = None,
    ) -> Optional[Notification]:
        """The row an identical event from the same actor already produced."""
        if tweet_id is None:
            return None
        return (
            self.db.query(Notification)
            .filter(
                Notification.user_id == user_id,
                Notification.tweet_id == tweet_id,
                Notification.notification_type == notification_type,
                Notification.actor_id == actor_id,
            )
            .first()
        )

    # --------------------------------------------------------------- mutations
    def add_many(self, rows: Iterable[Notification]) -> List[Notification]:
        rows = list(rows)
        self.db.add_all(rows)
        return rows

    def mark_seen(self, user_id: int, ids: Optional[List[int]] = None) -> int:
        query = self.db.query(Notification).filter(
            Notification.user_id == user_id, Notification.is_seen.is_(False)
        )
        if ids is not None:
            if not ids:
                return 0
            query = query.filter(Notification.id.in_(ids))
        return query.update({Notification.is_seen: True}, synchronize_session=False)

    def delete_for_tweet(self, tweet_id: int) -> int:
        return (
            self.db.query(Notification)
            .filter(Notification.tweet_id == tweet_id)
            .delete(synchronize_session=False)
        )

    def delete_seen_before(self, cutoff: datetime) -> int:
        return (
            self.db.query(Notification)
            .filter(Notification.is_seen.is_(True), Notification.created_at < cutoff)
            .delete(synchronize_session=False)
        )
