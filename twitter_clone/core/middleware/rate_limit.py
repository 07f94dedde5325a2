"""Rate limiting.

slowapi in every environment except tests, where a no-op limiter keeps fixtures
deterministic. Exceeded limits are rendered by the global error handlers.
"""

import os

from slowapi import Limiter
from slowapi.util import get_remote_address

from twitter_clone.core.config import settings


class _NoOpLimiter:
    """Stand-in used under APP_ENV=test."""

    def limit(self, *args, **kwargs):
        def decorator(func):
            return func

        return decorator


if os.getenv("APP_ENV", settings.environment).lower() == "test":
    limiter = _NoOpLimiter()
else:
    limiter = Limiter(
        key_func=get_remote_address, default_limits=["300 per minute", "5000 per day"]
    )
