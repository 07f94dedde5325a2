"""
Exception handlers rendering every failure as one envelope:

    {"success": false, "error": {"code", "message", "details"}, "timestamp", "path"}

Service errors (``AppException``), framework HTTP errors, request validation,
rate limiting, database failures and anything unhandled all end up here.
"""

import logging
import traceback
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from twitter_clone.core.exceptions import AppException

logger = logging.getLogger(__name__)

# environments where a 500 carries the exception text and traceback
DEBUG_ENVIRONMENTS = ("development", "dev", "test")


def create_error_response(
    status_code: int,
    error_code: str,
    message: str,
    details: Optional[dict] = None,
    path: Optional[str] = None,
    headers: Optional[dict] = None,
) -> ORJSONResponse:
    """Build the failure envelope; ``path`` is omitted when unknown."""
    content = {
        "success": False,
        "error": {
            "code": error_code,
            "message": message,
            "details": details or {},
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if path:
        content["path"] = path
    return ORJSONResponse(status_code=status_code, content=content, headers=headers)


def _request_extra(request: Request, **fields) -> dict:
    return {"path": request.url.path, "method": request.method, **fields}


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        logger.warning(
            "%s on %s: %s",
            exc.error_code,
            request.url.path,
            exc.message,
            extra=_request_extra(request, error_code=exc.error_code, details=exc.details),
        )
        return create_error_response(
            exc.status_code,
            exc.error_code,
            exc.message,
            exc.details,
            path=request.url.path,
            headers=exc.headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # unknown routes, wrong methods and the bearer scheme's own 401
        message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        return create_error_response(
            exc.status_code,
            f"http_{exc.status_code}",
            message,
            path=request.url.path,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exc.errors()
        ]
        logger.warning(
            "Rejected request to %s (%s invalid fields)",
            request.url.path,
            len(errors),
            extra=_request_extra(request, errors=errors),
        )
        return create_error_response(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "validation_error",
            "Request validation failed",
            {"errors": errors},
            path=request.url.path,
        )

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        client_ip = request.client.host if request.client else "unknown"
        logger.warning(
            "Rate limit hit by %s on %s",
            client_ip,
            request.url.path,
            extra=_request_extra(request, client_ip=client_ip),
        )
        return create_error_response(
            status.HTTP_429_TOO_MANY_REQUESTS,
            "rate_limit_exceeded",
            "Too many requests. Slow down and try again shortly.",
            {"limit": str(exc.detail)},
            path=request.url.path,
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.error(
            "Database failure on %s: %s",
            request.url.path,
            exc,
            extra=_request_extra(request, error_type=type(exc).__name__),
            exc_info=True,
        )
        return create_error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "database_error",
            "A database error occurred. Please try again later.",
            path=request.url.path,
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled %s on %s: %s",
            type(exc).__name__,
            request.url.path,
            exc,
            extra=_request_extra(request, error_type=type(exc).__name__),
            exc_info=True,
        )
        env = getattr(request.app.state, "environment", "production").lower()
        if env in DEBUG_ENVIRONMENTS:
            message = str(exc)
            details = {
                "error_type": type(exc).__name__,
                "traceback": traceback.format_exc().split("\n"),
            }
        else:
            message = "An unexpected error occurred. Please try again later."
            details = {}
        return create_error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "internal_server_error",
            message,
            details,
            path=request.url.path,
        )
