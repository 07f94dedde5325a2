"""Centralised scheduling of periodic maintenance jobs."""

from __future__ import annotations

import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler

from twitter_clone.core.config import settings
from twitter_clone.core.database import SessionLocal
from twitter_clone.modules.notifications.service import NotificationService

logger = logging.getLogger(__name__)


def start_scheduler() -> Optional[BackgroundScheduler]:
    """Start the background scheduler; disabled under tests."""
    if settings.environment.lower() == "test":
        return None

    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        purge_old_notifications_job,
        "cron",
        hour=0,
        id="purge_old_notifications",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Background scheduler started")
    return scheduler


def purge_old_notifications_job(session_factory=SessionLocal) -> int:
    """Delete seen notifications past the retention window."""
    db = session_factory()
    try:
        return NotificationService(db).purge_old(settings.NOTIFICATION_RETENTION_DAYS)
    except Exception:
        db.rollback()
        logger.exception("Notification purge failed")
        raise
    finally:
        db.close()
