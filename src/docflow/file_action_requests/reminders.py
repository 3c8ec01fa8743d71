"""Reminders for requests left PENDING too long."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from ..domain.file_action_requests import (
    FileActionRequestRepositoryPort,
    NotificationPort,
    ReminderNotification,
)
from ..observability.metrics import file_action_request_notifications_failed_total

logger = logging.getLogger(__name__)


class FileActionRequestReminderService:
    """Sends a reminder to the designated approver of every stale PENDING request."""

    def __init__(
        self,
        repository: FileActionRequestRepositoryPort,
        notifications: NotificationPort,
        remind_after: timedelta = timedelta(hours=24),
    ):
        self.repository = repository
        self.notifications = notifications
        self.remind_after = remind_after

    def send_reminders(self, now: Optional[datetime] = None) -> int:
        """Notify approvers of requests pending longer than remind_after.

        Returns:
            Number of reminders delivered. Failed deliveries are logged and
            skipped.
        """
        now = now or datetime.now(timezone.utc)
        cutoff = now - self.remind_after
        stale = self.repository.find_pending_requested_before(cutoff)

        sent = 0
        for request in stale:
            try:
                self.notifications.notify_reminder(ReminderNotification(
                    request_id=request.id,
                    approver_id=request.designated_approver_id,
                    action_type=request.type,
                    file_name=request.file_name,
                    pending_since=request.requested_at,
                ))
                sent += 1
            except Exception as e:
                file_action_request_notifications_failed_total.labels(kind="reminder").inc()
                logger.warning(
                    f"Failed to send reminder: {e}",
                    extra={"file_action_request_id": str(request.id)},
                    exc_info=True,
                )

        logger.info(f"Sent {sent} of {len(stale)} file action request reminders")
        return sent
