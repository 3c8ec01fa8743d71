from .logging_notifier import LoggingNotificationAdapter

__all__ = ["LoggingNotificationAdapter"]
