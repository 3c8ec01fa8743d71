"""Observability: structured logging, request correlation, metrics and health checks."""

from .logging_config import configure_logging, get_logger
from .metrics import (
    file_action_requests_created_total,
    file_action_request_decisions_total,
    file_action_request_notifications_failed_total,
    file_action_execution_duration_seconds,
)
from .request_id import (
    request_id_var,
    accept_request_id,
    get_request_id,
    set_request_id,
    generate_request_id,
)
from .health import HealthStatus, ComponentHealth
from .middleware import RequestIDMiddleware

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    # Metrics
    "file_action_requests_created_total",
    "file_action_request_decisions_total",
    "file_action_request_notifications_failed_total",
    "file_action_execution_duration_seconds",
    # Request ID
    "request_id_var",
    "accept_request_id",
    "get_request_id",
    "set_request_id",
    "generate_request_id",
    # Health
    "HealthStatus",
    "ComponentHealth",
    # Middleware
    "RequestIDMiddleware",
]
