"""Correlation ids attached to every log record.

The HTTP middleware binds the caller's X-Request-ID (or a fresh id) for the
duration of a request. Celery tasks bind ``task-<task id>``. Outside of both,
log records carry NO_REQUEST_ID.
"""

from contextvars import ContextVar
from typing import Optional
from uuid import uuid4

NO_REQUEST_ID = "no-request-id"
MAX_REQUEST_ID_LENGTH = 128

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def generate_request_id() -> str:
    return str(uuid4())


def accept_request_id(header_value: Optional[str]) -> str:
    """Reuse a caller supplied id if it is short and printable, else mint one."""
    if (
        header_value
        and len(header_value) <= MAX_REQUEST_ID_LENGTH
        and header_value.isprintable()
    ):
        return header_value
    return generate_request_id()


def get_request_id() -> str:
    return request_id_var.get() or NO_REQUEST_ID


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)
