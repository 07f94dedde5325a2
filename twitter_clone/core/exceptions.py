"""
Domain errors raised by the tweet, follow, notification and chat services.

Each carries an ``error_code`` and optional ``details`` that
``core.error_handlers`` renders into the failure envelope.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base for every error the services raise on purpose."""

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(
            status_code=status_code,
            detail={
                "error_code": error_code,
                "message": message,
                "details": self.details,
            },
            headers=headers,
        )


# ---------------------------------------------------------------- identity


class AuthenticationException(AppException):
    """401 with a bearer challenge; raised by login and token checks."""

    def __init__(self, error_code: str, message: str):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code=error_code,
            message=message,
            headers={"WWW-Authenticate": "Bearer"},
        )


class InvalidCredentialsException(AuthenticationException):
    """Unknown username/email or wrong password at ``POST /login``."""

    def __init__(self):
        super().__init__("invalid_credentials", "Invalid username or password")


class InvalidTokenException(AuthenticationException):
    """Bearer token that is malformed, expired or names no user."""

    def __init__(self):
        super().__init__("invalid_token", "Invalid authentication token")


class OwnershipRequiredException(AppException):
    """Only the author may change this resource (e.g. deleting a tweet)."""

    def __init__(self, resource: str):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="permission_denied",
            message=f"Only the author can modify this {resource}",
            details={"resource": resource},
        )


# ---------------------------------------------------------------- lookups


class ResourceNotFoundException(AppException):
    """Unknown user/tweet, or an engagement/follow edge that does not exist."""

    def __init__(self, resource: str, identifier: Optional[Any] = None):
        details = {}
        if identifier is not None:
            details["identifier"] = str(identifier)
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="resource_not_found",
            message=f"{resource} not found",
            details=details,
        )


class ResourceAlreadyExistsException(AppException):
    """Duplicate username/email, like, retweet, bookmark or follow."""

    def __init__(self, resource: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code="resource_already_exists",
            message=f"{resource} already exists",
            details=details,
        )


# ---------------------------------------------------------------- input


class ValidationException(AppException):
    """Content the schema accepts but the service does not (blank tweet or message)."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code="validation_error",
            message=message,
            details=details,
        )


class SelfActionException(AppException):
    """Following or messaging yourself."""

    def __init__(self, action: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="self_action_not_allowed",
            message=f"You cannot {action} yourself",
            details={"action": action},
        )
