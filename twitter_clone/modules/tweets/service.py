"""Application services for tweets and engagement.

Posting a tweet is a single transaction (tweet, hashtags, links). The follower
fan-out and the ``ReceiveTweet`` broadcast run after that commit.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Type

from sqlalchemy.orm import Session

from twitter_clone.core.config import settings
from twitter_clone.core.database import optimize_tweet_query, paginate_query
from twitter_clone.core.exceptions import (
    OwnershipRequiredException,
    ResourceAlreadyExistsException,
    ResourceNotFoundException,
    ValidationException,
)
from twitter_clone.core.monitoring import tweets_created_total
from twitter_clone.modules.notifications.models import NotificationType
from twitter_clone.modules.notifications.realtime import (
    RECEIVE_TWEET,
    ConnectionManager,
    manager,
)
from twitter_clone.modules.notifications.repository import NotificationRepository
from twitter_clone.modules.notifications.service import NotificationService
from twitter_clone.modules.users.models import User
from twitter_clone.modules.utils.content import extract_hashtags

from .models import Bookmark, Hashtag, Like, Retweet, Tweet, TweetHashtag
from .presenter import realtime_tweet_payload

logger = logging.getLogger(__name__)

_ENGAGEMENT_NOTICES = {
    Like: (NotificationType.LIKE, "{username} liked your tweet"),
    Retweet: (NotificationType.RETWEET, "{username} retweeted your tweet"),
}


class TweetService:
    """Tweet lifecycle and the like/retweet/bookmark toggles."""

    def __init__(
        self,
        db: Session,
        notifications: Optional[NotificationService] = None,
        hub: Optional[ConnectionManager] = None,
    ):
        self.db = db
        self.hub = hub or manager
        self.notifications = notifications or NotificationService(db, hub=self.hub)

    # ------------------------------------------------------------- lookups
    def get_tweet_or_404(self, tweet_id: int) -> Tweet:
        tweet = optimize_tweet_query(self.db.query(Tweet).filter(Tweet.id == tweet_id)).first()
        if not tweet:
            raise ResourceNotFoundException("Tweet", tweet_id)
        return tweet

    def view_tweet(self, tweet_id: int) -> tuple[Tweet, List[Tweet]]:
        """The tweet and its direct replies, oldest reply first."""
        tweet = self.get_tweet_or_404(tweet_id)
        replies = optimize_tweet_query(
            self.db.query(Tweet)
            .filter(Tweet.parent_tweet_id == tweet.id)
            .order_by(Tweet.created_at.asc(), Tweet.id.asc())
        ).all()
        return tweet, replies

    # ------------------------------------------------------------ creation
    def _get_or_create_hashtag(self, tag: str) -> Hashtag:
        hashtag = self.db.query(Hashtag).filter(Hashtag.tag == tag).first()
        if hashtag is None:
            hashtag = Hashtag(tag=tag)
            self.db.add(hashtag)
            self.db.flush()
        return hashtag

    def _persist_tweet(
        self, author: User, content: str, parent_tweet_id: Optional[int] = None
    ) -> Tweet:
        if not content or not content.strip():
            raise ValidationException("Tweet content must not be empty", field="content")

        tweet = Tweet(
            user_id=author.id,
            username=author.username,
            content=content,
            parent_tweet_id=parent_tweet_id,
        )
        self.db.add(tweet)
        self.db.flush()
        for tag in extract_hashtags(content):
            hashtag = self._get_or_create_hashtag(tag)
            self.db.add(TweetHashtag(tweet_id=tweet.id, hashtag_id=hashtag.id))
        self.db.commit()
        self.db.refresh(tweet)
        tweets_created_total.inc()
        return tweet

    async def create_tweet(
        self, author: User, content: str, parent_tweet_id: Optional[int] = None
    ) -> Tweet:
        """Persist a tweet, notify the author's followers and broadcast it."""
        if parent_tweet_id is not None:
            return await self.reply(author, parent_tweet_id, content)

        tweet = self._persist_tweet(author, content)
        logger.info("User %s posted tweet %s", author.id, tweet.id)

        await self.notifications.notify_followers_of_new_tweet(
            author.id, tweet.id, settings.new_tweet_notification_message
        )
        await self._broadcast(tweet)
        return tweet

    async def reply(self, author: User, tweet_id: int, content: str) -> Tweet:
        """Like ``create_tweet`` with a parent; the parent's author is told too."""
        parent = self.get_tweet_or_404(tweet_id)
        tweet = self._persist_tweet(author, content, parent_tweet_id=parent.id)
        logger.info("User %s replied to tweet %s with %s", author.id, parent.id, tweet.id)

        if parent.user_id != author.id:
            await self.notifications.notify(
                parent.user_id,
                NotificationType.REPLY,
                f"{author.username} replied to your tweet",
                actor_id=author.id,
                tweet_id=tweet.id,
            )
        await self.notifications.notify_followers_of_new_tweet(
            author.id, tweet.id, settings.new_tweet_notification_message
        )
        await self._broadcast(tweet)
        return tweet

    async def _broadcast(self, tweet: Tweet) -> None:
        try:
            await self.hub.broadcast_event(RECEIVE_TWEET, realtime_tweet_payload(tweet))
        except Exception as exc:
            logger.error("Failed to broadcast tweet %s: %s", tweet.id, exc)

    # ------------------------------------------------------------ deletion
    def delete_tweet(self, current_user: User, tweet_id: int) -> None:
        """Owner-only delete; clears engagement rows and detaches replies first."""
        tweet = self.get_tweet_or_404(tweet_id)
        if tweet.user_id != current_user.id:
            raise OwnershipRequiredException("tweet")

        for model in (Like, Retweet, Bookmark):
            self.db.query(model).filter(model.tweet_id == tweet.id).delete(
                synchronize_session=False
            )
        NotificationRepository(self.db).delete_for_tweet(tweet.id)
        self.db.query(Tweet).filter(Tweet.parent_tweet_id == tweet.id).update(
            {Tweet.parent_tweet_id: None}, synchronize_session=False
        )
        self.db.expire(tweet, ["replies"])
        self.db.delete(tweet)
        self.db.commit()
        logger.info("User %s deleted tweet %s", current_user.id, tweet_id)

    # ---------------------------------------------------------- engagement
    def _engagement(self, model: Type, user_id: int, tweet_id: int):
        return (
            self.db.query(model)
            .filter(model.user_id == user_id, model.tweet_id == tweet_id)
            .first()
        )

    async def _add_engagement(self, model: Type, label: str, user: User, tweet_id: int) -> None:
        tweet = self.get_tweet_or_404(tweet_id)
        if self._engagement(model, user.id, tweet.id):
            raise ResourceAlreadyExistsException(label)
        self.db.add(model(user_id=user.id, tweet_id=tweet.id))
        self.db.commit()

        notice = _ENGAGEMENT_NOTICES.get(model)
        if notice and tweet.user_id != user.id:
            notification_type, template = notice
            await self.notifications.notify(
                tweet.user_id,
                notification_type,
                template.format(username=user.username),
                actor_id=user.id,
                tweet_id=tweet.id,
            )

    def _remove_engagement(self, model: Type, label: str, user: User, tweet_id: int) -> None:
        self.get_tweet_or_404(tweet_id)
        row = self._engagement(model, user.id, tweet_id)
        if not row:
            raise ResourceNotFoundException(label, tweet_id)
        self.db.delete(row)
        self.db.commit()

    async def like(self, user: User, tweet_id: int) -> None:
        await self._add_engagement(Like, "Like", user, tweet_id)

    def unlike(self, user: User, tweet_id: int) -> None:
        self._remove_engagement(Like, "Like", user, tweet_id)

    async def retweet(self, user: User, tweet_id: int) -> None:
        await self._add_engagement(Retweet, "Retweet", user, tweet_id)

    def unretweet(self, user: User, tweet_id: int) -> None:
        self._remove_engagement(Retweet, "Retweet", user, tweet_id)

    async def bookmark(self, user: User, tweet_id: int) -> None:
        await self._add_engagement(Bookmark, "Bookmark", user, tweet_id)

    def unbookmark(self, user: User, tweet_id: int) -> None:
        self._remove_engagement(Bookmark, "Bookmark", user, tweet_id)

    def show_likes(self, tweet_id: int) -> List[User]:
        """Users who liked the tweet, most recent like first."""
        self.get_tweet_or_404(tweet_id)
        return (
            self.db.query(User)
            .join(Like, Like.user_id == User.id)
            .filter(Like.tweet_id == tweet_id)
            .order_by(Like.liked_at.desc())
            .all()
        )

    def bookmarks(self, user: User, skip: int = 0, limit: int = 100) -> List[Tweet]:
        query = optimize_tweet_query(
            self.db.query(Tweet)
            .join(Bookmark, Bookmark.tweet_id == Tweet.id)
            .filter(Bookmark.user_id == user.id)
            .order_by(Bookmark.created_at.desc(), Tweet.id.desc())
        )
        return paginate_query(query, skip, limit).all()
