"""Application services for the users domain."""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from twitter_clone import oauth2
from twitter_clone.core.config import settings
from twitter_clone.core.database import optimize_tweet_query
from twitter_clone.core.exceptions import (
    InvalidCredentialsException,
    ResourceAlreadyExistsException,
    ResourceNotFoundException,
)
from twitter_clone.modules.social import graph
from twitter_clone.modules.tweets.models import Retweet, Tweet
from twitter_clone.modules.tweets.presenter import serialize_tweets
from twitter_clone.modules.utils import security

from . import schemas
from .models import User

logger = logging.getLogger(__name__)


class UserService:
    """Encapsulates user-centric business logic shared across routers."""

    def __init__(self, db: Session):
        self.db = db

    def get_user_or_404(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise ResourceNotFoundException("User", user_id)
        return user

    def _ensure_unique(
        self, *, username: Optional[str], email: Optional[str], exclude_id: Optional[int] = None
    ) -> None:
        checks = (("username", username), ("email", email))
        for field, value in checks:
            if value is None:
                continue
            column = getattr(User, field)
            query = self.db.query(User).filter(func.lower(column) == value.lower())
            if exclude_id is not None:
                query = query.filter(User.id != exclude_id)
            if query.first():
                raise ResourceAlreadyExistsException("User", field=field)

    def create_user(self, payload: schemas.UserCreate) -> User:
        """Create a new user after validating uniqueness."""
        self._ensure_unique(username=payload.username, email=payload.email)
        user = User(
            username=payload.username,
            email=payload.email,
            hashed_password=security.hash(payload.password),
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info("Registered user %s", user.id)
        return user

    def login(self, identifier: str, password: str) -> schemas.Token:
        """Exchange username-or-email plus password for a bearer token."""
        user = (
            self.db.query(User)
            .filter(
                or_(
                    func.lower(User.username) == identifier.lower(),
                    func.lower(User.email) == identifier.lower(),
                )
            )
            .first()
        )
        if not user or not security.verify(password, user.hashed_password):
            raise InvalidCredentialsException()
        return schemas.Token(access_token=oauth2.create_access_token({"user_id": user.id}))

    def get_profile(self, user_id: int, viewer: Optional[User]) -> schemas.UserProfileOut:
        user = self.get_user_or_404(user_id)
        viewer_id = viewer.id if viewer else None

        tweets = optimize_tweet_query(
            self.db.query(Tweet)
            .filter(Tweet.user_id == user.id)
            .order_by(Tweet.created_at.desc(), Tweet.id.desc())
        ).all()
        retweeted = optimize_tweet_query(
            self.db.query(Tweet)
            .join(Retweet, Retweet.tweet_id == Tweet.id)
            .filter(Retweet.user_id == user.id)
            .order_by(Retweet.retweeted_at.desc(), Tweet.id.desc())
        ).all()

        return schemas.UserProfileOut(
            user=schemas.UserOut.model_validate(user),
            tweets=serialize_tweets(self.db, tweets, viewer_id),
            retweets=serialize_tweets(self.db, retweeted, viewer_id),
            followers_count=graph.count_followers(self.db, user.id),
            following_count=graph.count_following(self.db, user.id),
            is_following=bool(
                viewer_id
                and viewer_id != user.id
                and graph.is_following(self.db, viewer_id, user.id)
            ),
        )

    def edit_profile(self, current_user: User, payload: schemas.UserUpdate) -> User:
        """Update profile fields; existing tweets keep the username they were posted with."""
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        self._ensure_unique(
            username=changes.get("username"),
            email=changes.get("email"),
            exclude_id=current_user.id,
        )
        for field, value in changes.items():
            setattr(current_user, field, value)
        self.db.commit()
        self.db.refresh(current_user)
        return current_user

    def follow_suggestions(self, current_user: Optional[User]) -> List[User]:
        """Random users other than the caller; anonymous callers get none."""
        if current_user is None:
            return []
        return (
            self.db.query(User)
            .filter(User.id != current_user.id)
            .order_by(func.random())
            .limit(settings.follow_suggestions_limit)
            .all()
        )
