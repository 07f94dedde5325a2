"""User profile endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Request
from sqlalchemy.orm import Session

from twitter_clone import oauth2
from twitter_clone.core.database import get_db
from twitter_clone.core.middleware.rate_limit import limiter
from twitter_clone.modules.users import schemas
from twitter_clone.modules.users.models import User
from twitter_clone.modules.users.service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


@router.get("/suggestions", response_model=List[schemas.UserSummary])
async def follow_suggestions(
    service: UserService = Depends(get_user_service),
    current_user: Optional[User] = Depends(oauth2.get_optional_user),
):
    """A few random users to follow; empty for anonymous callers."""
    return service.follow_suggestions(current_user)


@router.get("/me", response_model=schemas.UserOut)
async def read_me(current_user: User = Depends(oauth2.get_current_user)):
    return current_user


@router.put("/me", response_model=schemas.UserOut)
@limiter.limit("30/minute")
async def edit_profile(
    request: Request,
    payload: schemas.UserUpdate,
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(oauth2.get_current_user),
):
    """Update username, email, bio or profile picture of the caller."""
    return service.edit_profile(current_user, payload)


@router.get("/{user_id}", response_model=schemas.UserProfileOut)
async def get_profile(
    user_id: int = Path(..., gt=0),
    service: UserService = Depends(get_user_service),
    current_user: Optional[User] = Depends(oauth2.get_optional_user),
):
    """
    Profile page data.

    Returns the user, their tweets (newest first), the tweets they retweeted,
    follower/following counts and whether the caller follows them.
    """
    return service.get_profile(user_id, current_user)
