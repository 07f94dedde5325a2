"""Notifications domain: persisted per-user notifications plus the realtime hub."""

from .models import Notification, NotificationType
from .realtime import ConnectionManager, manager
from .service import NotificationService

__all__ = [
    "Notification",
    "NotificationType",
    "ConnectionManager",
    "manager",
    "NotificationService",
]
