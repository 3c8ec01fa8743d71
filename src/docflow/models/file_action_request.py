"""File action request SQLAlchemy model

One row per move/delete approval request. Rows are never deleted; terminal
rows are the durable record of a decision.

At most one PENDING row may exist per file_id. This is enforced by the
partial unique index ``uq_file_action_request_pending_file`` on both
PostgreSQL and SQLite.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, String, Text, DateTime, Index, text
from sqlalchemy.dialects.postgresql import UUID as PGUUID

from .base import Base


def _utcnow():
    return datetime.now(timezone.utc)


class FileActionRequestModel(Base):
    """Persistent form of the FileActionRequest aggregate.

    status/type hold FileActionRequestStatus / FileActionType values as text.
    """

    __tablename__ = 'file_action_request'
    __table_args__ = (
        Index('ix_file_action_request_status', 'status'),
        Index('ix_file_action_request_type', 'type'),
        Index('ix_file_action_request_file_id', 'file_id'),
        Index('ix_file_action_request_requester_id', 'requester_id'),
        Index('ix_file_action_request_designated_approver_id', 'designated_approver_id'),
        Index('ix_file_action_request_requested_at', 'requested_at'),
        Index(
            'uq_file_action_request_pending_file',
            'file_id',
            unique=True,
            postgresql_where=text("status = 'PENDING'"),
            sqlite_where=text("status = 'PENDING'"),
        ),
    )

    id = Column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    type = Column(String(16), nullable=False)
    status = Column(String(16), nullable=False, default='PENDING')

    file_id = Column(PGUUID(as_uuid=True), nullable=False)
    file_name = Column(Text, nullable=False, comment="Denormalized for display after rename/delete")
    source_folder_id = Column(PGUUID(as_uuid=True), nullable=True)
    target_folder_id = Column(PGUUID(as_uuid=True), nullable=True, comment="MOVE only")

    requester_id = Column(PGUUID(as_uuid=True), nullable=False)
    designated_approver_id = Column(PGUUID(as_uuid=True), nullable=False)
    approver_id = Column(PGUUID(as_uuid=True), nullable=True, comment="Who actually decided")

    reason = Column(Text, nullable=False)
    decision_comment = Column(Text, nullable=True)
    execution_note = Column(Text, nullable=True, comment="System generated on FAILED/INVALIDATED")

    # Optimistic-concurrency baseline, written once at creation
    snapshot_folder_id = Column(PGUUID(as_uuid=True), nullable=False)
    snapshot_file_state = Column(String(32), nullable=False)

    requested_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    decided_at = Column(DateTime(timezone=True), nullable=True)
    executed_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<FileActionRequestModel(id={self.id}, type={self.type}, status={self.status})>"
