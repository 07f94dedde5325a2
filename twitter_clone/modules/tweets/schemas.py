"""Pydantic schemas for tweets, engagement and discovery endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _require_text(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("Tweet content must not be empty")
    return value


class ReplyCreate(BaseModel):
    content: str = Field(..., max_length=10000)

    validate_content = field_validator("content")(_require_text)


class TweetCreate(ReplyCreate):
    parent_tweet_id: Optional[int] = None


class TweetOut(BaseModel):
    id: int
    user_id: int
    username: str
    content: str
    content_html: str
    created_at: datetime
    parent_tweet_id: Optional[int] = None
    hashtags: List[str] = []
    likes_count: int = 0
    retweets_count: int = 0
    replies_count: int = 0
    bookmarks_count: int = 0
    is_liked: bool = False
    is_retweeted: bool = False
    is_bookmarked: bool = False

    model_config = ConfigDict(from_attributes=True)


class TweetDetailOut(TweetOut):
    replies: List[TweetOut] = []


class TweetCreateResponse(BaseModel):
    success: bool = True
    tweet_id: int


class ActionResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None


class TrendingOut(BaseModel):
    hashtags: List[str]
