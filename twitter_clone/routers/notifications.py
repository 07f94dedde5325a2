"""Notification listing and unseen counters."""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from twitter_clone import oauth2
from twitter_clone.core.database import get_db
from twitter_clone.modules.notifications import schemas
from twitter_clone.modules.notifications.service import NotificationService
from twitter_clone.modules.users.models import User

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


@router.get("/count", response_model=schemas.NotificationCountOut)
async def notification_count(
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(oauth2.get_current_user),
):
    """Number of unseen notifications for the badge."""
    return schemas.NotificationCountOut(
        notification_count=service.unseen_count(current_user.id)
    )


@router.get("", response_model=List[schemas.NotificationOut])
async def list_notifications(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    mark_seen: bool = Query(False, description="Mark the returned page as seen"),
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(oauth2.get_current_user),
):
    """Notifications newest first."""
    return service.list_for_user(
        current_user.id, skip=skip, limit=limit, mark_seen=mark_seen
    )


@router.put("/seen", response_model=schemas.MarkSeenResponse)
async def mark_all_seen(
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(oauth2.get_current_user),
):
    return schemas.MarkSeenResponse(updated=service.mark_all_seen(current_user.id))
