"""Audit logging service.

Central entry point for writing immutable audit log entries. The file
action request routers record one entry per mutating call.

Audit Events:
- FILE_ACTION_REQUEST_MOVE_CREATED, FILE_ACTION_REQUEST_DELETE_CREATED
- FILE_ACTION_REQUEST_CANCELED
- FILE_ACTION_REQUEST_APPROVED, FILE_ACTION_REQUEST_REJECTED
- FILE_ACTION_REQUEST_BULK_APPROVED, FILE_ACTION_REQUEST_BULK_REJECTED
"""

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import Request
from sqlalchemy.orm import Session

from ..models.audit_log import AuditLog

logger = logging.getLogger(__name__)

ENTITY_FILE_ACTION_REQUEST = "file_action_request"


def log_audit_event(
    db: Session,
    action: str,
    actor_id: Optional[UUID] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[UUID] = None,
    metadata: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> AuditLog:
    """Create an audit log entry and commit it.

    All parameters are stored as-is. This function does not validate action
    names or entity types.

    Args:
        db: Database session
        action: Event action (e.g., "FILE_ACTION_REQUEST_APPROVED")
        actor_id: User who performed the action (None for system events)
        entity_type: Type of entity affected (e.g., "file_action_request")
        entity_id: ID of affected entity
        metadata: Additional context as JSON (e.g., {"status": "EXECUTED"})
        ip_address: Client IP address (IPv4 or IPv6)
        user_agent: Client User-Agent header

    Returns:
        AuditLog: The created audit log entry
    """
    audit_entry = AuditLog(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        metadata_json=metadata,
        ip_address=ip_address,
        user_agent=user_agent,
    )

    db.add(audit_entry)
    db.commit()

    return audit_entry


def client_info(request: Request) -> Dict[str, Optional[str]]:
    """Extract client IP (honouring X-Forwarded-For) and User-Agent."""
    ip_address = request.client.host if request.client else None
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # First IP in the chain is the original client
        ip_address = forwarded_for.split(",")[0].strip()

    return {
        "ip_address": ip_address,
        "user_agent": request.headers.get("User-Agent"),
    }


def try_log_from_request(
    db: Session,
    request: Request,
    action: str,
    actor_id: Optional[UUID] = None,
    entity_type: Optional[str] = ENTITY_FILE_ACTION_REQUEST,
    entity_id: Optional[UUID] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Optional[AuditLog]:
    """Best-effort audit write from a FastAPI request.

    A failing audit write is logged and rolled back; the caller's response
    is unaffected. Returns None in that case.
    """
    try:
        return log_audit_event(
            db=db,
            action=action,
            actor_id=actor_id,
            entity_type=entity_type,
            entity_id=entity_id,
            metadata=metadata,
            **client_info(request),
        )
    except Exception as e:
        db.rollback()
        logger.error(
            f"Failed to write audit event {action}: {e}",
            extra={"user_id": str(actor_id) if actor_id else None},
            exc_info=True,
        )
        return None
