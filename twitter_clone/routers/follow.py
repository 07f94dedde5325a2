"""Follow router for follow/unfollow flows and follower listings."""

from typing import List

from fastapi import APIRouter, Depends, Path, Request, status
from sqlalchemy.orm import Session

from twitter_clone import oauth2
from twitter_clone.core.database import get_db
from twitter_clone.core.middleware.rate_limit import limiter
from twitter_clone.modules.social.service import FollowService
from twitter_clone.modules.tweets.schemas import ActionResponse
from twitter_clone.modules.users.models import User
from twitter_clone.modules.users.schemas import FollowEdgeOut, UserSummary

router = APIRouter(tags=["Follow"])


def get_follow_service(db: Session = Depends(get_db)) -> FollowService:
    """Provide a FollowService instance via FastAPI DI."""
    return FollowService(db)


@router.post(
    "/follow/{user_id}", status_code=status.HTTP_201_CREATED, response_model=ActionResponse
)
@limiter.limit("30/minute")
async def follow_user(
    request: Request,
    user_id: int = Path(..., gt=0),
    service: FollowService = Depends(get_follow_service),
    current_user: User = Depends(oauth2.get_current_user),
):
    """
    Follow a user.

    Rejects self-follows (400), unknown users (404) and duplicates (409). The
    followed user receives a ``follow`` notification.
    """
    await service.follow(current_user, user_id)
    return ActionResponse(message="Followed")


@router.delete("/follow/{user_id}", response_model=ActionResponse)
async def unfollow_user(
    user_id: int = Path(..., gt=0),
    service: FollowService = Depends(get_follow_service),
    current_user: User = Depends(oauth2.get_current_user),
):
    service.unfollow(current_user, user_id)
    return ActionResponse(message="Unfollowed")


@router.get("/users/{user_id}/followers", response_model=List[FollowEdgeOut])
async def list_followers(
    user_id: int = Path(..., gt=0),
    service: FollowService = Depends(get_follow_service),
):
    return [
        FollowEdgeOut(user=UserSummary.model_validate(edge.follower), followed_at=edge.created_at)
        for edge in service.followers(user_id)
    ]


@router.get("/users/{user_id}/following", response_model=List[FollowEdgeOut])
async def list_following(
    user_id: int = Path(..., gt=0),
    service: FollowService = Depends(get_follow_service),
):
    return [
        FollowEdgeOut(user=UserSummary.model_validate(edge.following), followed_at=edge.created_at)
        for edge in service.following(user_id)
    ]
