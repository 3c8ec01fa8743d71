"""Celery tasks for the file action request workflow.

Tasks:
- send_reminders_task: hourly reminder for requests left PENDING too long
- fail_interrupted_approvals_task: close APPROVED claims whose worker died
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from celery import shared_task
from sqlalchemy.orm import Session

from ..config import get_settings
from ..database import SessionLocal
from ..domain.file_action_requests import NotificationPort
from ..infrastructure.notifications import LoggingNotificationAdapter
from ..infrastructure.repositories import SqlAlchemyFileActionRequestRepository
from ..observability.request_id import set_request_id
from .command_service import FileActionRequestCommandService
from .dependencies import get_approver_directory, get_file_management, get_folder_lookup
from .reminders import FileActionRequestReminderService
from .validation import FileActionRequestValidationService

logger = logging.getLogger(__name__)


def run_reminders(
    db: Session,
    notifications: Optional[NotificationPort] = None,
    now: Optional[datetime] = None,
) -> int:
    """Wire the reminder service against db and send due reminders."""
    service = FileActionRequestReminderService(
        repository=SqlAlchemyFileActionRequestRepository(db),
        notifications=notifications or LoggingNotificationAdapter(),
        remind_after=timedelta(hours=get_settings().FILE_ACTION_REQUEST_REMINDER_AFTER_HOURS),
    )
    return service.send_reminders(now=now)


@shared_task(name="file_action_requests.send_reminders", bind=True)
def send_reminders_task(self) -> Dict[str, Any]:
    """Remind designated approvers of stale PENDING requests.

    Scheduled hourly via Celery Beat (see workers/celery_app.py). Safe to run
    repeatedly; each run re-notifies every request still pending past the
    threshold.
    """
    set_request_id(f"task-{self.request.id}")
    logger.info("File action request reminder task started")

    db = SessionLocal()
    try:
        sent = run_reminders(db)
        logger.info(
            "File action request reminder task completed",
            extra={"task_id": self.request.id},
        )
        return {'status': 'completed', 'reminders_sent': sent}

    except Exception as e:
        logger.error(
            "File action request reminder task failed",
            exc_info=True,
            extra={"task_id": self.request.id},
        )
        return {'status': 'failed', 'error': str(e), 'reminders_sent': 0}

    finally:
        db.close()


def run_interrupted_approval_recovery(
    db: Session,
    notifications: Optional[NotificationPort] = None,
    now: Optional[datetime] = None,
) -> int:
    """Wire the command service against db and fail stuck APPROVED requests."""
    repository = SqlAlchemyFileActionRequestRepository(db)
    files = get_file_management()
    service = FileActionRequestCommandService(
        repository=repository,
        files=files,
        notifications=notifications or LoggingNotificationAdapter(),
        validation=FileActionRequestValidationService(
            repository, files, get_folder_lookup(), get_approver_directory()
        ),
    )
    stale_after = timedelta(minutes=get_settings().FILE_ACTION_REQUEST_INTERRUPTED_AFTER_MINUTES)
    return service.fail_interrupted_approvals(stale_after, now=now)


@shared_task(name="file_action_requests.fail_interrupted_approvals", bind=True)
def fail_interrupted_approvals_task(self) -> Dict[str, Any]:
    """Mark approvals left in APPROVED by a crashed worker as FAILED.

    Scheduled every 15 minutes via Celery Beat.
    """
    set_request_id(f"task-{self.request.id}")

    db = SessionLocal()
    try:
        recovered = run_interrupted_approval_recovery(db)
        logger.info(
            "Interrupted approval recovery completed",
            extra={"task_id": self.request.id},
        )
        return {'status': 'completed', 'recovered': recovered}

    except Exception as e:
        logger.error(
            "Interrupted approval recovery failed",
            exc_info=True,
            extra={"task_id": self.request.id},
        )
        return {'status': 'failed', 'error': str(e), 'recovered': 0}

    finally:
        db.close()
