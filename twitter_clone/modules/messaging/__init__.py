"""Messaging domain exports."""

from .models import ChatMessage

__all__ = ["ChatMessage"]
