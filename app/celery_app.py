"""Celery application configuration."""

from celery import Celery
from celery.schedules import crontab

from app.core.config import settings

# Create Celery instance
celery_app = Celery(
    "minidrive",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["app.tasks.download_tasks", "app.tasks.file_tasks"],
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=settings.archive_job_timeout + 5 * 60,
    task_soft_time_limit=settings.archive_job_timeout + 60,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,
)

# Configure Celery Beat schedule for periodic tasks
celery_app.conf.beat_schedule = {
    "purge-deleted-items": {
        "task": "app.tasks.file_tasks.purge_deleted_items_task",
        "schedule": crontab(hour=settings.cleanup_hour, minute=settings.cleanup_minute),
        "options": {"expires": 3600},
    },
    "reconcile-stuck-downloads": {
        "task": "app.tasks.download_tasks.reconcile_stuck_downloads_task",
        "schedule": crontab(minute="*/15"),
        "options": {"expires": 600},
    },
}

celery_app.conf.task_routes = {
    "app.tasks.download_tasks.build_archive_task": {"queue": "archives"},
    "app.tasks.file_tasks.*": {"queue": "maintenance"},
    "app.tasks.download_tasks.reconcile_stuck_downloads_task": {"queue": "maintenance"},
}
