"""FileActionRequest aggregate.

A requester asks a designated approver to authorize moving or deleting a
file. The aggregate holds the request record and its transition rules; it
performs no I/O. Persistence and orchestration live in the command service.

The snapshot (``snapshot_folder_id`` / ``snapshot_file_state``) records where
the file was and what state it was in when the request was created. It is
never changed afterwards and is the baseline for staleness detection when
the request is approved.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from .status import (
    FileActionRequestStatus,
    FileActionType,
    is_terminal,
    validate_transition,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class FileActionRequest:
    """One file action approval record (aggregate root)."""

    type: FileActionType
    file_id: UUID
    file_name: str
    requester_id: UUID
    designated_approver_id: UUID
    reason: str
    snapshot_folder_id: UUID
    snapshot_file_state: str
    source_folder_id: Optional[UUID] = None
    target_folder_id: Optional[UUID] = None
    id: UUID = field(default_factory=uuid4)
    status: FileActionRequestStatus = FileActionRequestStatus.PENDING
    approver_id: Optional[UUID] = None
    decision_comment: Optional[str] = None
    execution_note: Optional[str] = None
    requested_at: datetime = field(default_factory=utcnow)
    decided_at: Optional[datetime] = None
    executed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.type == FileActionType.MOVE and self.target_folder_id is None:
            raise ValueError("MOVE requests require a target folder")
        if self.type == FileActionType.DELETE and self.target_folder_id is not None:
            raise ValueError("DELETE requests cannot have a target folder")

    def __setattr__(self, name, value):
        # Snapshot and requested_at are fixed once the dataclass is constructed
        if name in _IMMUTABLE_FIELDS and name in self.__dict__:
            raise AttributeError(f"{name} cannot be changed after creation")
        super().__setattr__(name, value)

    @classmethod
    def create(
        cls,
        action_type: FileActionType,
        file_id: UUID,
        file_name: str,
        current_folder_id: UUID,
        current_file_state: str,
        requester_id: UUID,
        designated_approver_id: UUID,
        reason: str,
        target_folder_id: Optional[UUID] = None,
    ) -> "FileActionRequest":
        """Create a new PENDING request, snapshotting the file's current state."""
        return cls(
            type=action_type,
            file_id=file_id,
            file_name=file_name,
            source_folder_id=current_folder_id,
            target_folder_id=target_folder_id,
            requester_id=requester_id,
            designated_approver_id=designated_approver_id,
            reason=reason,
            snapshot_folder_id=current_folder_id,
            snapshot_file_state=current_file_state,
        )

    def is_decidable(self) -> bool:
        return self.status == FileActionRequestStatus.PENDING

    def is_terminal(self) -> bool:
        return is_terminal(self.status)

    def is_owned_by(self, user_id: UUID) -> bool:
        return self.requester_id == user_id

    def cancel(self) -> None:
        """PENDING → CANCELED. Ownership is checked by the caller."""
        self._transition(FileActionRequestStatus.CANCELED)
        self.updated_at = utcnow()

    def reject(self, approver_id: UUID, comment: str) -> None:
        """PENDING → REJECTED. The caller ensures comment is non-empty."""
        self._transition(FileActionRequestStatus.REJECTED)
        now = utcnow()
        self.approver_id = approver_id
        self.decision_comment = comment
        self.decided_at = now
        self.updated_at = now

    def approve(self, approver_id: UUID, comment: Optional[str] = None) -> None:
        """PENDING → APPROVED. Records the decision; not a resting state."""
        self._transition(FileActionRequestStatus.APPROVED)
        now = utcnow()
        self.approver_id = approver_id
        self.decision_comment = comment
        self.decided_at = now
        self.updated_at = now

    def validate_state_for_execution(self, live_folder_id: UUID, live_file_state: str) -> bool:
        """Compare the live file against the snapshot taken at creation.

        Returns False and moves the request to INVALIDATED (with an
        explanatory execution note) when the file changed folder or
        lifecycle state since the request was made.
        """
        if self.snapshot_folder_id != live_folder_id:
            self.invalidate(
                f"File location changed since the request was made "
                f"(at request: {self.snapshot_folder_id}, now: {live_folder_id})"
            )
            return False

        if self.snapshot_file_state != live_file_state:
            self.invalidate(
                f"File state changed since the request was made "
                f"(at request: {self.snapshot_file_state}, now: {live_file_state})"
            )
            return False

        return True

    def invalidate(self, note: str) -> None:
        """APPROVED → INVALIDATED. The requested operation was never run."""
        self._transition(FileActionRequestStatus.INVALIDATED)
        self.execution_note = note
        self.updated_at = utcnow()

    def mark_executed(self) -> None:
        self._transition(FileActionRequestStatus.EXECUTED)
        now = utcnow()
        self.executed_at = now
        self.updated_at = now

    def mark_failed(self, note: str) -> None:
        self._transition(FileActionRequestStatus.FAILED)
        self.execution_note = note
        self.updated_at = utcnow()

    def _transition(self, new_status: FileActionRequestStatus) -> None:
        validate_transition(self.status, new_status)
        self.status = new_status


_IMMUTABLE_FIELDS = frozenset({"snapshot_folder_id", "snapshot_file_state", "requested_at"})
