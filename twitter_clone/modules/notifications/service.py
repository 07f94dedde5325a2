"""Notification persistence and realtime delivery.

Rows are committed first; pushes to connected sessions happen afterwards and a
failed push is logged without touching the stored rows.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from twitter_clone.core.database import paginate_query
from twitter_clone.core.db_defaults import utcnow
from twitter_clone.core.monitoring import notifications_created_total
from twitter_clone.modules.social.graph import follower_ids

from .models import Notification, NotificationType
from .realtime import RECEIVE_NOTIFICATION, ConnectionManager, manager
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


def notification_payload(notification: Notification) -> dict:
    """Payload of the ``ReceiveNotification`` event."""
    return {
        "id": notification.id,
        "message": notification.message,
        "tweet_id": notification.tweet_id,
        "notification_type": notification.notification_type,
        "actor_id": notification.actor_id,
    }


class NotificationService:
    """Creates, lists and delivers user notifications."""

    def __init__(self, db: Session, hub: Optional[ConnectionManager] = None):
        self.db = db
        self.repo = NotificationRepository(db)
        self.hub = hub or manager

    async def notify_followers_of_new_tweet(
        self, author_id: int, tweet_id: int, message: str
    ) -> List[int]:
        """Insert one ``new_tweet`` notification per follower, then push each.

        Returns the follower ids that were notified.
        """
        recipients = follower_ids(self.db, author_id)
        if not recipients:
            return []

        rows = self.repo.add_many(
            Notification(
                user_id=follower_id,
                actor_id=author_id,
                tweet_id=tweet_id,
                notification_type=NotificationType.NEW_TWEET.value,
                message=message,
                is_seen=False,
            )
            for follower_id in recipients
        )
        self.db.commit()
        notifications_created_total.labels(
            notification_type=NotificationType.NEW_TWEET.value
        ).inc(len(rows))
        logger.info(
            "Fan-out for tweet %s: %s notifications",
            tweet_id,
            len(rows),
            extra={"tweet_id": tweet_id, "recipient_count": len(rows)},
        )

        for row in rows:
            await self._push(row.user_id, notification_payload(row))
        return recipients

    async def notify(
        self,
        user_id: int,
        notification_type: NotificationType,
        message: str,
        *,
        actor_id: Optional[int] = None,
        tweet_id: Optional[int] = None,
    ) -> Notification:
        """Store a single notification and push it.

        A repeat of the same event by the same actor refreshes the earlier row.
        """
        kind = NotificationType(notification_type).value
        notification = self.repo.find(user_id, tweet_id, kind, actor_id)
        if notification is None:
            notification = Notification(
                user_id=user_id, tweet_id=tweet_id, notification_type=kind
            )
            self.db.add(notification)
        notification.actor_id = actor_id
        notification.message = message
        notification.is_seen = False
        notification.created_at = utcnow()
        self.db.commit()
        self.db.refresh(notification)
        notifications_created_total.labels(notification_type=kind).inc()

        await self._push(user_id, notification_payload(notification))
        return notification

    def unseen_count(self, user_id: int) -> int:
        return self.repo.unseen_count(user_id)

    def list_for_user(
        self, user_id: int, *, skip: int = 0, limit: int = 50, mark_seen: bool = False
    ) -> List[Notification]:
        """Newest first; with ``mark_seen`` the returned rows already read as seen."""
        notifications = paginate_query(self.repo.for_user(user_id), skip, limit).all()
        if mark_seen:
            unseen = [n for n in notifications if not n.is_seen]
            if self.repo.mark_seen(user_id, [n.id for n in unseen]):
                self.db.commit()
                for notification in unseen:
                    self.db.refresh(notification)
        return notifications

    def mark_all_seen(self, user_id: int) -> int:
        updated = self.repo.mark_seen(user_id)
        self.db.commit()
        return updated

    def purge_old(self, days: int) -> int:
        """Delete seen notifications older than ``days``."""
        cutoff = utcnow() - timedelta(days=days)
        deleted = self.repo.delete_seen_before(cutoff)
        self.db.commit()
        logger.info("Purged %s seen notifications older than %s days", deleted, days)
        return deleted

    async def _push(self, user_id: int, payload: dict) -> None:
        try:
            await self.hub.send_event(user_id, RECEIVE_NOTIFICATION, payload)
        except Exception as exc:
            logger.error("Failed to push notification to user %s: %s", user_id, exc)
