"""SQLAlchemy models for tweets, hashtags and engagement (likes, retweets, bookmarks)."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from twitter_clone.core.db_defaults import timestamp_default, utcnow
from twitter_clone.models.base import Base


class Tweet(Base):
    """A user-authored post, optionally a reply to a parent tweet."""

    __tablename__ = "tweets"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Author name at posting time; profile renames don't rewrite history.
    username = Column(String(256), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=timestamp_default(),
        index=True,
    )
    parent_tweet_id = Column(
        Integer,
        ForeignKey("tweets.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    user = relationship("User", back_populates="tweets")
    parent_tweet = relationship(
        "Tweet", remote_side=[id], back_populates="replies"
    )
    replies = relationship(
        "Tweet",
        back_populates="parent_tweet",
        order_by="Tweet.created_at",
    )
    likes = relationship("Like", back_populates="tweet")
    retweets = relationship("Retweet", back_populates="tweet")
    bookmarks = relationship("Bookmark", back_populates="tweet")
    tweet_hashtags = relationship(
        "TweetHashtag", back_populates="tweet", cascade="all, delete-orphan"
    )

    @property
    def hashtags(self) -> list[str]:
        return [link.hashtag.tag for link in self.tweet_hashtags]


class Hashtag(Base):
    """A tag (stored without the leading '#') shared across tweets."""

    __tablename__ = "hashtags"

    id = Column(Integer, primary_key=True, index=True)
    tag = Column(String(256), nullable=False, unique=True, index=True)

    tweet_hashtags = relationship("TweetHashtag", back_populates="hashtag")


class TweetHashtag(Base):
    """Many-to-many bridge between tweets and hashtags."""

    __tablename__ = "tweet_hashtags"

    tweet_id = Column(
        Integer, ForeignKey("tweets.id", ondelete="CASCADE"), primary_key=True
    )
    hashtag_id = Column(
        Integer,
        ForeignKey("hashtags.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )

    tweet = relationship("Tweet", back_populates="tweet_hashtags")
    hashtag = relationship("Hashtag", back_populates="tweet_hashtags")


class Like(Base):
    __tablename__ = "tweet_likes"

    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="RESTRICT"), primary_key=True
    )
    tweet_id = Column(
        Integer,
        ForeignKey("tweets.id", ondelete="RESTRICT"),
        primary_key=True,
        index=True,
    )
    liked_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=timestamp_default(),
    )

    user = relationship("User", back_populates="liked_tweets")
    tweet = relationship("Tweet", back_populates="likes")


class Retweet(Base):
    __tablename__ = "retweets"

    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="RESTRICT"), primary_key=True
    )
    tweet_id = Column(
        Integer,
        ForeignKey("tweets.id", ondelete="RESTRICT"),
        primary_key=True,
        index=True,
    )
    retweeted_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=timestamp_default(),
    )

    user = relationship("User", back_populates="retweets")
    tweet = relationship("Tweet", back_populates="retweets")


class Bookmark(Base):
    __tablename__ = "tweet_bookmarks"

    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="RESTRICT"), primary_key=True
    )
    tweet_id = Column(
        Integer,
        ForeignKey("tweets.id", ondelete="RESTRICT"),
        primary_key=True,
        index=True,
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=timestamp_default(),
    )

    user = relationship("User", back_populates="bookmarked_tweets")
    tweet = relationship("Tweet", back_populates="bookmarks")


__all__ = ["Tweet", "Hashtag", "TweetHashtag", "Like", "Retweet", "Bookmark"]
