"""HTTP middleware composed by the app factory."""

from .logging_middleware import LoggingMiddleware
from .rate_limit import limiter

__all__ = ["LoggingMiddleware", "limiter"]
