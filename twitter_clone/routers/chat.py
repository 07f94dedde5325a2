"""Direct message endpoints."""

from typing import List

from fastapi import APIRouter, Depends, Path, Query, Request, status
from sqlalchemy.orm import Session

from twitter_clone import oauth2
from twitter_clone.core.database import get_db
from twitter_clone.core.middleware.rate_limit import limiter
from twitter_clone.modules.messaging import schemas
from twitter_clone.modules.messaging.service import MessageService
from twitter_clone.modules.users.models import User
from twitter_clone.modules.users.schemas import UserSummary

router = APIRouter(prefix="/chat", tags=["Chat"])


def get_message_service(db: Session = Depends(get_db)) -> MessageService:
    return MessageService(db)


@router.post(
    "/messages",
    status_code=status.HTTP_201_CREATED,
    response_model=schemas.MessageSendResponse,
)
@limiter.limit("60/minute")
async def send_message(
    request: Request,
    payload: schemas.MessageCreate,
    service: MessageService = Depends(get_message_service),
    current_user: User = Depends(oauth2.get_current_user),
):
    """Store a message and push ``ReceiveMessage`` to the recipient's sessions."""
    message = await service.send_message(current_user, payload.recipient_id, payload.content)
    return schemas.MessageSendResponse(message=schemas.MessageOut.model_validate(message))


@router.get("", response_model=schemas.ConversationListOut)
async def list_conversations(
    service: MessageService = Depends(get_message_service),
    current_user: User = Depends(oauth2.get_current_user),
):
    return schemas.ConversationListOut(
        conversations=[
            schemas.ConversationOut(
                partner=UserSummary.model_validate(partner),
                last_message=schemas.MessageOut.model_validate(message),
            )
            for partner, message in service.conversations(current_user)
        ]
    )


@router.get("/{user_id}", response_model=List[schemas.MessageOut])
async def conversation(
    user_id: int = Path(..., gt=0),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    service: MessageService = Depends(get_message_service),
    current_user: User = Depends(oauth2.get_current_user),
):
    """Messages exchanged with ``user_id``, oldest first."""
    return service.conversation(current_user, user_id, skip=skip, limit=limit)
