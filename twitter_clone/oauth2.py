"""JWT utilities for bearer authentication.

Responsibilities:
- Create and verify HS256-signed access tokens carrying ``user_id`` and ``exp``.
- Resolve the current user for protected routes, or ``None`` for routes that
  also serve anonymous callers.
- Resolve a user from a raw token for the WebSocket hub, where no HTTP
  exception can be raised.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import BaseModel
from sqlalchemy.orm import Session

from twitter_clone.core.config import settings
from twitter_clone.core.database import get_db
from twitter_clone.core.exceptions import InvalidTokenException
from twitter_clone.modules.users.models import User

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="login", auto_error=False)


class TokenData(BaseModel):
    id: Optional[int] = None


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed JWT; ``user_id`` is normalised to int."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode["exp"] = expire
    if "user_id" in to_encode:
        to_encode["user_id"] = int(to_encode["user_id"])
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def verify_access_token(token: str) -> TokenData:
    """Decode ``token`` and return its user id; raises InvalidTokenException."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as e:
        logger.info(f"JWT Error: {str(e)}")
        raise InvalidTokenException()

    user_id = payload.get("user_id")
    try:
        return TokenData(id=int(user_id))
    except (TypeError, ValueError):
        logger.warning("Token payload carries no usable user_id")
        raise InvalidTokenException()


def resolve_user_from_token(db: Session, token: Optional[str]) -> Optional[User]:
    """Return the user a token belongs to, or None for missing/invalid tokens."""
    if not token:
        return None
    try:
        token_data = verify_access_token(token)
    except InvalidTokenException:
        return None
    return db.query(User).filter(User.id == token_data.id).first()


def get_current_user(
    request: Request,
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Return the authenticated user or raise 401."""
    token_data = verify_access_token(token)
    user = db.query(User).filter(User.id == token_data.id).first()
    if user is None:
        raise InvalidTokenException()
    request.state.user_id = user.id
    return user


def get_optional_user(
    request: Request,
    token: Optional[str] = Depends(optional_oauth2_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Like ``get_current_user`` but anonymous callers get None; bad tokens still 401."""
    if not token:
        return None
    return get_current_user(request, token, db)
