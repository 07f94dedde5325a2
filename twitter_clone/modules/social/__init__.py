"""Follow-graph package exports."""

from .models import UserFollower

__all__ = ["UserFollower"]
