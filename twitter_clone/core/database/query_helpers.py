"""
Query helpers for eager loading, pagination and grouped counts.
"""

from typing import Dict, Iterable

from sqlalchemy import func
from sqlalchemy.orm import Query, Session, joinedload, selectinload


def paginate_query(query: Query, skip: int = 0, limit: int = 100) -> Query:
    """Apply pagination to a query with validation."""
    limit = min(max(1, limit), 100)
    skip = max(0, skip)
    return query.offset(skip).limit(limit)


def optimize_tweet_query(query: Query) -> Query:
    """Eager-load the author and hashtags a tweet payload needs."""
    from twitter_clone.modules.tweets.models import Tweet, TweetHashtag

    return query.options(
        joinedload(Tweet.user),
        selectinload(Tweet.tweet_hashtags).joinedload(TweetHashtag.hashtag),
    )


def grouped_counts(db: Session, column, ids: Iterable[int]) -> Dict[int, int]:
    """Count rows per value of ``column`` restricted to ``ids`` in one GROUP BY."""
    ids = list(ids)
    if not ids:
        return {}
    rows = (
        db.query(column, func.count())
        .filter(column.in_(ids))
        .group_by(column)
        .all()
    )
    return {key: count for key, count in rows}


__all__ = [
    "paginate_query",
    "optimize_tweet_query",
    "grouped_counts",
]
