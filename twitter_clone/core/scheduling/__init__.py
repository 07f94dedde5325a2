"""Background job registration."""

from .tasks import purge_old_notifications_job, start_scheduler

__all__ = ["start_scheduler", "purge_old_notifications_job"]
