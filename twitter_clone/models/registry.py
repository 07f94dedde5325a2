"""Aggregated model registry; importing it registers every table on `Base.metadata`."""

from twitter_clone.modules.messaging.models import ChatMessage
from twitter_clone.modules.notifications.models import Notification, NotificationType
from twitter_clone.modules.social.models import UserFollower
from twitter_clone.modules.tweets.models import (
    Bookmark,
    Hashtag,
    Like,
    Retweet,
    Tweet,
    TweetHashtag,
)
from twitter_clone.modules.users.models import User

__all__ = [
    "Bookmark",
    "ChatMessage",
    "Hashtag",
    "Like",
    "Notification",
    "NotificationType",
    "Retweet",
    "Tweet",
    "TweetHashtag",
    "User",
    "UserFollower",
]
