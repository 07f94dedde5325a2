"""Pydantic schemas for the notifications domain."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class NotificationOut(BaseModel):
    id: int
    user_id: int
    actor_id: Optional[int] = None
    tweet_id: Optional[int] = None
    notification_type: str
    message: str
    is_seen: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationCountOut(BaseModel):
    notification_count: int


class MarkSeenResponse(BaseModel):
    success: bool = True
    updated: int
