"""Registration and token login."""

from fastapi import APIRouter, Depends, Request, status
from fastapi.security.oauth2 import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from twitter_clone.core.database import get_db
from twitter_clone.core.middleware.rate_limit import limiter
from twitter_clone.modules.users import schemas
from twitter_clone.modules.users.service import UserService

router = APIRouter(tags=["Authentication"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


@router.post("/users", status_code=status.HTTP_201_CREATED, response_model=schemas.UserOut)
@limiter.limit("10/hour")
async def register_user(
    request: Request,
    payload: schemas.UserCreate,
    service: UserService = Depends(get_user_service),
):
    """Create an account; 409 when the username or email is taken."""
    return service.create_user(payload)


@router.post("/login", response_model=schemas.Token)
@limiter.limit("20/minute")
async def login(
    request: Request,
    user_credentials: OAuth2PasswordRequestForm = Depends(),
    service: UserService = Depends(get_user_service),
):
    """
    Exchange credentials for a bearer token.

    The ``username`` form field accepts either the username or the email address.
    """
    return service.login(user_credentials.username, user_credentials.password)
