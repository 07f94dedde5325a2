"""Pydantic schemas for the users domain."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=256)
    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator("username")
    @classmethod
    def _strip_username(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("username must not be blank")
        return value


class UserUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=1, max_length=256)
    email: Optional[EmailStr] = None
    bio: Optional[str] = None
    profile_picture: Optional[str] = None


class UserSummary(BaseModel):
    id: int
    username: str
    profile_picture: str = ""

    model_config = ConfigDict(from_attributes=True)


class UserOut(UserSummary):
    email: EmailStr
    bio: str = ""
    created_at: datetime


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserProfileOut(BaseModel):
    """Profile page payload: the user, their tweets and retweets, graph counts."""

    user: UserOut
    tweets: List["TweetOut"]
    retweets: List["TweetOut"]
    followers_count: int
    following_count: int
    is_following: bool = False


class FollowEdgeOut(BaseModel):
    user: UserSummary
    followed_at: datetime


from twitter_clone.modules.tweets.schemas import TweetOut  # noqa: E402

UserProfileOut.model_rebuild()
