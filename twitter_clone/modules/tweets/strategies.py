"""Pluggable query strategies for feeds, popular tweets, search and trending.

Each strategy is a single query; ordering, counting and filtering happen in SQL.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from twitter_clone.core.database import optimize_tweet_query, paginate_query
from twitter_clone.modules.social.models import UserFollower
from twitter_clone.modules.users.models import User

from .models import Hashtag, Like, Tweet, TweetHashtag


def _newest_first(query: Query) -> Query:
    return query.order_by(Tweet.created_at.desc(), Tweet.id.desc())


# ------------------------------------------------------------------ feeds


class TweetRetrievalStrategy(ABC):
    """Selects the tweets shown on the home timeline."""

    name: str

    @abstractmethod
    def query(self, db: Session, user_id: Optional[int]) -> Query: ...

    def get_tweets(
        self, db: Session, user_id: Optional[int], skip: int = 0, limit: int = 50
    ) -> List[Tweet]:
        query = optimize_tweet_query(self.query(db, user_id))
        return paginate_query(query, skip, limit).all()


class AllTweetsStrategy(TweetRetrievalStrategy):
    name = "all"

    def query(self, db: Session, user_id: Optional[int]) -> Query:
        return _newest_first(db.query(Tweet))


class FollowingTweetsStrategy(TweetRetrievalStrategy):
    """Tweets by followed users plus the viewer's own; everything for anonymous viewers."""

    name = "following"

    def query(self, db: Session, user_id: Optional[int]) -> Query:
        if user_id is None:
            return AllTweetsStrategy().query(db, None)
        followed = db.query(UserFollower.following_id).filter(
            UserFollower.follower_id == user_id
        )
        return _newest_first(
            db.query(Tweet).filter(
                (Tweet.user_id == user_id) | Tweet.user_id.in_(followed)
            )
        )


RETRIEVAL_STRATEGIES = {
    strategy.name: strategy
    for strategy in (AllTweetsStrategy(), FollowingTweetsStrategy())
}


def get_retrieval_strategy(name: str) -> TweetRetrievalStrategy:
    return RETRIEVAL_STRATEGIES.get(name, RETRIEVAL_STRATEGIES["all"])


# ---------------------------------------------------------------- popular


class PopularTweetStrategy(ABC):
    @abstractmethod
    def get_tweets(self, db: Session, limit: int) -> List[Tweet]: ...


class MostLikedTweetsStrategy(PopularTweetStrategy):
    """Tweets ordered by like count, newest first among ties."""

    def get_tweets(self, db: Session, limit: int) -> List[Tweet]:
        like_counts = (
            db.query(Like.tweet_id, func.count().label("like_count"))
            .group_by(Like.tweet_id)
            .subquery()
        )
        query = (
            db.query(Tweet)
            .outerjoin(like_counts, like_counts.c.tweet_id == Tweet.id)
            .order_by(
                func.coalesce(like_counts.c.like_count, 0).desc(),
                Tweet.created_at.desc(),
                Tweet.id.desc(),
            )
            .limit(limit)
        )
        return optimize_tweet_query(query).all()


# ----------------------------------------------------------------- search


class SearchStrategy(ABC):
    @abstractmethod
    def query(self, db: Session, query: str) -> Optional[Query]: ...

    def search(
        self, db: Session, query: str, skip: int = 0, limit: int = 100
    ) -> List[Tweet]:
        tweets = self.query(db, query)
        if tweets is None:
            return []
        return paginate_query(optimize_tweet_query(_newest_first(tweets)), skip, limit).all()


class HashtagSearch(SearchStrategy):
    """Tweets linked to a tag; the leading '#' and letter case are ignored."""

    def query(self, db: Session, query: str) -> Optional[Query]:
        tag = query.strip().lstrip("#").lower()
        if not tag:
            return None
        return (
            db.query(Tweet)
            .join(TweetHashtag, TweetHashtag.tweet_id == Tweet.id)
            .join(Hashtag, Hashtag.id == TweetHashtag.hashtag_id)
            .filter(func.lower(Hashtag.tag) == tag)
        )


class UsernameSearch(SearchStrategy):
    """Tweets whose author's username contains the query, case-insensitively."""

    def query(self, db: Session, query: str) -> Optional[Query]:
        needle = query.strip().lower()
        return (
            db.query(Tweet)
            .join(User, User.id == Tweet.user_id)
            .filter(func.lower(User.username).contains(needle, autoescape=True))
        )


def select_search_strategy(query: str) -> SearchStrategy:
    return HashtagSearch() if query.strip().startswith("#") else UsernameSearch()


def search_tweets(
    db: Session, query: Optional[str], skip: int = 0, limit: int = 100
) -> List[Tweet]:
    """Dispatch on the leading '#'; an empty query returns every tweet."""
    if not query or not query.strip():
        return AllTweetsStrategy().get_tweets(db, None, skip=skip, limit=limit)
    return select_search_strategy(query).search(db, query, skip=skip, limit=limit)


# --------------------------------------------------------------- trending


def trending_topics(db: Session, limit: int) -> List[str]:
    """Bare tags with the most tweet links, most first."""
    link_count = func.count(TweetHashtag.tweet_id)
    rows = (
        db.query(Hashtag.tag)
        .join(TweetHashtag, TweetHashtag.hashtag_id == Hashtag.id)
        .group_by(Hashtag.id, Hashtag.tag)
        .order_by(link_count.desc(), Hashtag.tag.asc())
        .limit(limit)
        .all()
    )
    return [tag for (tag,) in rows]
