"""Shared helpers used across domain modules."""

from .content import extract_hashtags, render_clickable_hashtags
from .security import hash, verify

__all__ = ["hash", "verify", "extract_hashtags", "render_clickable_hashtags"]
