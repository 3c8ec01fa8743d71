"""Prometheus metrics for the file action request workflow."""

from prometheus_client import Counter, Histogram

file_action_requests_created_total = Counter(
    "docflow_file_action_requests_created_total",
    "Total file action requests created",
    ["type"]  # MOVE|DELETE
)

# outcome: EXECUTED|FAILED|INVALIDATED|REJECTED|CANCELED|CONFLICT
file_action_request_decisions_total = Counter(
    "docflow_file_action_request_decisions_total",
    "Total decisions taken on file action requests",
    ["type", "outcome"]
)

file_action_request_notifications_failed_total = Counter(
    "docflow_file_action_request_notifications_failed_total",
    "Notifications that could not be delivered",
    ["kind"]  # new_request|decision|reminder
)

file_action_execution_duration_seconds = Histogram(
    "docflow_file_action_execution_duration_seconds",
    "Time spent executing approved move/delete operations",
    ["type"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]
)
