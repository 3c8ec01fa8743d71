"""Notification adapter that writes each notification to the log.

Default NotificationPort until a delivery transport (email, websocket) is
wired in.
"""

import logging

from ...domain.file_action_requests import (
    DecisionNotification,
    NewRequestNotification,
    NotificationPort,
    ReminderNotification,
)

logger = logging.getLogger(__name__)


class LoggingNotificationAdapter(NotificationPort):

    def notify_new_request(self, notification: NewRequestNotification) -> None:
        logger.info(
            f"New {notification.action_type.value} request for '{notification.file_name}' "
            f"awaiting approval by {notification.approver_id}",
            extra={
                "file_action_request_id": str(notification.request_id),
                "user_id": str(notification.approver_id),
            },
        )

    def notify_decision(self, notification: DecisionNotification) -> None:
        logger.info(
            f"{notification.action_type.value} request decided: {notification.decision.value}",
            extra={
                "file_action_request_id": str(notification.request_id),
                "user_id": str(notification.requester_id),
            },
        )

    def notify_reminder(self, notification: ReminderNotification) -> None:
        logger.info(
            f"Reminder: {notification.action_type.value} request for '{notification.file_name}' "
            f"pending since {notification.pending_since.isoformat()}",
            extra={
                "file_action_request_id": str(notification.request_id),
                "user_id": str(notification.approver_id),
            },
        )
