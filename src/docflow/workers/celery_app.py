"""Celery application and beat schedule.

Start a worker and the scheduler with:
    celery -A docflow.workers.celery_app worker --loglevel=info
    celery -A docflow.workers.celery_app beat --loglevel=info
"""

from celery import Celery
from celery.schedules import crontab

from ..config import settings

celery_app = Celery(
    "docflow",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["docflow.file_action_requests.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
)

celery_app.conf.beat_schedule = {
    'file-action-request-reminders-hourly': {
        'task': 'file_action_requests.send_reminders',
        'schedule': crontab(minute=0),
        'options': {
            'expires': 3000,  # Skip if not picked up before the next run
        },
    },
    'file-action-request-interrupted-approvals': {
        'task': 'file_action_requests.fail_interrupted_approvals',
        'schedule': crontab(minute='*/15'),
        'options': {
            'expires': 600,
        },
    },
}
