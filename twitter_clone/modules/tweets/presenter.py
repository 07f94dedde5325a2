"""Turn Tweet rows into API payloads with engagement counts and viewer flags.

Counts are computed with one GROUP BY per engagement table over the page of
tweet ids rather than by loading the collections.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from twitter_clone.core.database import grouped_counts
from twitter_clone.modules.utils.content import render_clickable_hashtags

from .models import Bookmark, Like, Retweet, Tweet
from .schemas import TweetDetailOut, TweetOut


def _viewer_tweet_ids(db: Session, model, viewer_id: int, ids: List[int]) -> Set[int]:
    rows = (
        db.query(model.tweet_id)
        .filter(model.user_id == viewer_id, model.tweet_id.in_(ids))
        .all()
    )
    return {tweet_id for (tweet_id,) in rows}


def serialize_tweets(
    db: Session, tweets: Iterable[Tweet], viewer_id: Optional[int] = None
) -> List[TweetOut]:
    tweets = list(tweets)
    ids = [tweet.id for tweet in tweets]
    if not ids:
        return []

    likes = grouped_counts(db, Like.tweet_id, ids)
    retweets = grouped_counts(db, Retweet.tweet_id, ids)
    bookmarks = grouped_counts(db, Bookmark.tweet_id, ids)
    replies = grouped_counts(db, Tweet.parent_tweet_id, ids)

    liked = retweeted = bookmarked = set()
    if viewer_id is not None:
        liked = _viewer_tweet_ids(db, Like, viewer_id, ids)
        retweeted = _viewer_tweet_ids(db, Retweet, viewer_id, ids)
        bookmarked = _viewer_tweet_ids(db, Bookmark, viewer_id, ids)

    return [
        TweetOut(
            id=tweet.id,
            user_id=tweet.user_id,
            username=tweet.username,
            content=tweet.content,
            content_html=render_clickable_hashtags(tweet.content),
            created_at=tweet.created_at,
            parent_tweet_id=tweet.parent_tweet_id,
            hashtags=tweet.hashtags,
            likes_count=likes.get(tweet.id, 0),
            retweets_count=retweets.get(tweet.id, 0),
            replies_count=replies.get(tweet.id, 0),
            bookmarks_count=bookmarks.get(tweet.id, 0),
            is_liked=tweet.id in liked,
            is_retweeted=tweet.id in retweeted,
            is_bookmarked=tweet.id in bookmarked,
        )
        for tweet in tweets
    ]


def serialize_tweet_detail(
    db: Session, tweet: Tweet, replies: List[Tweet], viewer_id: Optional[int] = None
) -> TweetDetailOut:
    head, *children = serialize_tweets(db, [tweet, *replies], viewer_id)
    return TweetDetailOut(**head.model_dump(), replies=children)


def realtime_tweet_payload(tweet: Tweet) -> dict:
    """Payload of the ``ReceiveTweet`` event for a freshly created tweet."""
    return {
        "id": tweet.id,
        "username": tweet.username,
        "content": tweet.content,
        "content_html": render_clickable_hashtags(tweet.content),
        "created_at": tweet.created_at,
        "likes_count": 0,
        "user_id": tweet.user_id,
        "is_liked_by_current_user": False,
    }
