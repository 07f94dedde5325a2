"""API router aggregation utilities.

Exposes `api_router` so the app factory can include all routes from one place.
"""

from .router import api_router

__all__ = ["api_router"]
