"""User domain package exports."""

from .models import User

__all__ = ["User"]
