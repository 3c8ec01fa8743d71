"""
In-memory adapters for the file action request ports.

Used by unit tests and local development wiring. The repository honours the
same contract as the SQLAlchemy one: one PENDING request per file and an
atomic compare-and-set on status.

Usage:
    files = InMemoryFileStore()
    files.add_file(FileInfo(id=file_id, name="q3.pdf", folder_id=a, lifecycle_state="ACTIVE"))
    files.fail_next("Storage quota exceeded")
    result = files.move_file(file_id, b, actor_id)
    assert result.success is False
"""

import copy
import logging
import threading
from datetime import datetime
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from ..domain.file_action_requests import (
    ApproverDirectoryPort,
    ApproverProfile,
    DecisionNotification,
    ExecutionResult,
    FileActionRequest,
    FileActionRequestFilter,
    FileActionRequestRepositoryPort,
    FileActionRequestStatus,
    FileInfo,
    FileManagementPort,
    FolderInfo,
    FolderLookupPort,
    NewRequestNotification,
    NotificationPort,
    Page,
    Pagination,
    PendingRequestConflictError,
    ReminderNotification,
    WriteOutcome,
)


logger = logging.getLogger(__name__)


class InMemoryFileActionRequestRepository(FileActionRequestRepositoryPort):
    """Dict-backed repository. Entities are copied on the way in and out."""

    def __init__(self):
        self._rows: Dict[UUID, FileActionRequest] = {}
        self._lock = threading.Lock()

    def save(self, request: FileActionRequest) -> FileActionRequest:
        with self._lock:
            if request.status == FileActionRequestStatus.PENDING:
                for row in self._rows.values():
                    if row.file_id == request.file_id and row.status == FileActionRequestStatus.PENDING:
                        raise PendingRequestConflictError(request.file_id)
            self._rows[request.id] = copy.deepcopy(request)
        return request

    def update_if_status(
        self,
        request: FileActionRequest,
        expected_status: FileActionRequestStatus,
    ) -> WriteOutcome:
        with self._lock:
            current = self._rows.get(request.id)
            if current is None:
                return WriteOutcome.NOT_FOUND
            if current.status != expected_status:
                return WriteOutcome.CONFLICT
            self._rows[request.id] = copy.deepcopy(request)
            return WriteOutcome.APPLIED

    def find_by_id(self, request_id: UUID) -> Optional[FileActionRequest]:
        row = self._rows.get(request_id)
        return copy.deepcopy(row) if row else None

    def find_pending_by_file_id(self, file_id: UUID) -> Optional[FileActionRequest]:
        for row in self._rows.values():
            if row.file_id == file_id and row.status == FileActionRequestStatus.PENDING:
                return copy.deepcopy(row)
        return None

    def find_by_filter(
        self,
        filter: FileActionRequestFilter,
        pagination: Pagination,
    ) -> Page[FileActionRequest]:
        matches = [row for row in self._rows.values() if _matches(row, filter)]

        field_name = pagination.sort_field
        # None sorts first ascending, last descending
        matches.sort(
            key=lambda r: _sort_key(getattr(r, field_name)),
            reverse=pagination.sort_order == "desc",
        )

        start = pagination.offset
        items = matches[start:start + pagination.page_size]
        return Page(
            items=[copy.deepcopy(row) for row in items],
            page=pagination.page,
            page_size=pagination.page_size,
            total_items=len(matches),
        )

    def count_by_status(self) -> Dict[FileActionRequestStatus, int]:
        counts = {status: 0 for status in FileActionRequestStatus}
        for row in self._rows.values():
            counts[row.status] += 1
        return counts

    def find_pending_requested_before(self, cutoff: datetime) -> List[FileActionRequest]:
        rows = [
            row for row in self._rows.values()
            if row.status == FileActionRequestStatus.PENDING and row.requested_at < cutoff
        ]
        rows.sort(key=lambda r: r.requested_at)
        return [copy.deepcopy(row) for row in rows]

    def find_approved_decided_before(self, cutoff: datetime) -> List[FileActionRequest]:
        rows = [
            row for row in self._rows.values()
            if row.status == FileActionRequestStatus.APPROVED and row.decided_at < cutoff
        ]
        rows.sort(key=lambda r: r.decided_at)
        return [copy.deepcopy(row) for row in rows]


def _sort_key(value) -> Tuple[bool, object]:
    if value is None:
        return (False, "")
    return (True, getattr(value, "value", value))


def _matches(row: FileActionRequest, filter: FileActionRequestFilter) -> bool:
    if filter.status is not None and row.status != filter.status:
        return False
    if filter.type is not None and row.type != filter.type:
        return False
    if filter.requester_id is not None and row.requester_id != filter.requester_id:
        return False
    if filter.file_id is not None and row.file_id != filter.file_id:
        return False
    if filter.designated_approver_id is not None and row.designated_approver_id != filter.designated_approver_id:
        return False
    if filter.requested_from is not None and row.requested_at < filter.requested_from:
        return False
    if filter.requested_to is not None and row.requested_at > filter.requested_to:
        return False
    return True


class InMemoryFileStore(FileManagementPort, FolderLookupPort):
    """Files and folders held in dicts.

    Successful moves and deletes mutate the stored file. ``calls`` records
    every execution attempt as ("move" | "delete", file_id).
    """

    def __init__(self):
        self.files: Dict[UUID, FileInfo] = {}
        self.folders: Dict[UUID, FolderInfo] = {}
        self.calls: List[Tuple[str, UUID]] = []
        self._next_failure: Optional[str] = None
        self._next_exception: Optional[Exception] = None

    def add_file(self, file: FileInfo) -> None:
        self.files[file.id] = file

    def add_folder(self, folder: FolderInfo) -> None:
        self.folders[folder.id] = folder

    def relocate(self, file_id: UUID, folder_id: UUID) -> None:
        """Move a file outside of the approval workflow."""
        file = self.files[file_id]
        self.files[file_id] = FileInfo(file.id, file.name, folder_id, file.lifecycle_state)

    def set_state(self, file_id: UUID, lifecycle_state: str) -> None:
        file = self.files[file_id]
        self.files[file_id] = FileInfo(file.id, file.name, file.folder_id, lifecycle_state)

    def remove(self, file_id: UUID) -> None:
        self.files.pop(file_id, None)

    def fail_next(self, error_message: Optional[str]) -> None:
        """Make the next move/delete return a failed ExecutionResult."""
        self._next_failure = error_message or ""

    def raise_next(self, exc: Exception) -> None:
        """Make the next move/delete raise exc."""
        self._next_exception = exc

    def find_file(self, file_id: UUID) -> Optional[FileInfo]:
        return self.files.get(file_id)

    def find_folder(self, folder_id: UUID) -> Optional[FolderInfo]:
        return self.folders.get(folder_id)

    def move_file(self, file_id: UUID, target_folder_id: UUID, actor_id: UUID) -> ExecutionResult:
        self.calls.append(("move", file_id))
        failure = self._take_failure()
        if failure is not None:
            return failure
        self.relocate(file_id, target_folder_id)
        logger.info(f"InMemoryFileStore: moved {file_id} to {target_folder_id} for {actor_id}")
        return ExecutionResult.ok()

    def delete_file(self, file_id: UUID, actor_id: UUID) -> ExecutionResult:
        self.calls.append(("delete", file_id))
        failure = self._take_failure()
        if failure is not None:
            return failure
        self.set_state(file_id, "TRASHED")
        logger.info(f"InMemoryFileStore: deleted {file_id} for {actor_id}")
        return ExecutionResult.ok()

    def _take_failure(self) -> Optional[ExecutionResult]:
        if self._next_exception is not None:
            exc, self._next_exception = self._next_exception, None
            raise exc
        if self._next_failure is not None:
            message, self._next_failure = self._next_failure, None
            return ExecutionResult.failed(message or None)
        return None


class InMemoryApproverDirectory(ApproverDirectoryPort):

    def __init__(self):
        self.users: Dict[UUID, ApproverProfile] = {}

    def add_user(self, profile: ApproverProfile) -> None:
        self.users[profile.user_id] = profile

    def find_user_with_authorization_profile(self, user_id: UUID) -> Optional[ApproverProfile]:
        return self.users.get(user_id)

    def find_users_with_permission(self, permission: str) -> List[ApproverProfile]:
        return [
            user for user in self.users.values()
            if user.is_active and permission in user.permissions
        ]


class RecordingNotificationPort(NotificationPort):
    """Collects notifications; optionally raises to simulate delivery failure."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.new_requests: List[NewRequestNotification] = []
        self.decisions: List[DecisionNotification] = []
        self.reminders: List[ReminderNotification] = []

    def notify_new_request(self, notification: NewRequestNotification) -> None:
        self._check()
        self.new_requests.append(notification)

    def notify_decision(self, notification: DecisionNotification) -> None:
        self._check()
        self.decisions.append(notification)

    def notify_reminder(self, notification: ReminderNotification) -> None:
        self._check()
        self.reminders.append(notification)

    def _check(self):
        if self.fail:
            raise RuntimeError("Notification transport unavailable")


__all__ = [
    "InMemoryFileActionRequestRepository",
    "InMemoryFileStore",
    "InMemoryApproverDirectory",
    "RecordingNotificationPort",
]
