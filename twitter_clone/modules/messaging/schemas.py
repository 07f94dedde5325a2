"""Pydantic schemas for direct messages."""

from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from twitter_clone.modules.users.schemas import UserSummary


class MessageCreate(BaseModel):
    recipient_id: int = Field(..., gt=0)
    content: str = Field(..., max_length=5000)

    @field_validator("content")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Message must not be empty")
        return value


class MessageOut(BaseModel):
    id: int
    sender_id: int
    recipient_id: int
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MessageSendResponse(BaseModel):
    success: bool = True
    message: MessageOut


class ConversationOut(BaseModel):
    partner: UserSummary
    last_message: MessageOut


class ConversationListOut(BaseModel):
    conversations: List[ConversationOut]
