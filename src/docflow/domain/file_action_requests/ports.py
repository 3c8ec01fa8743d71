"""Ports consumed by the file action request workflow.

Following hexagonal architecture, the validation, command and query services
depend only on these interfaces. Adapters live in ``docflow.infrastructure``:
SQLAlchemy and in-memory repositories, httpx clients for the file-management
and user-directory services, and notification adapters.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Generic, List, Optional, TypeVar
from uuid import UUID

from .entity import FileActionRequest
from .status import FileActionRequestStatus, FileActionType


ACTIVE_FILE_STATE = "ACTIVE"


# ============================================================================
# File / folder / approver lookups
# ============================================================================

@dataclass(frozen=True)
class FileInfo:
    """Live view of a file as reported by the file-management service.

    Attributes:
        id: File ID
        name: Display name
        folder_id: Folder the file currently resides in
        lifecycle_state: ACTIVE, TRASHED, DELETED, ...
    """
    id: UUID
    name: str
    folder_id: UUID
    lifecycle_state: str

    @property
    def is_active(self) -> bool:
        return self.lifecycle_state == ACTIVE_FILE_STATE


@dataclass(frozen=True)
class FolderInfo:
    id: UUID
    is_active: bool
    name: Optional[str] = None


@dataclass(frozen=True)
class ApproverProfile:
    """User identity plus the permissions granted by their role."""
    user_id: UUID
    is_active: bool
    role: Optional[str] = None
    permissions: FrozenSet[str] = frozenset()
    name: Optional[str] = None
    email: Optional[str] = None

    @property
    def has_authorization_profile(self) -> bool:
        return self.role is not None


@dataclass
class ExecutionResult:
    """Outcome of a move/delete attempt on the file-management service."""
    success: bool
    error_message: Optional[str] = None

    @classmethod
    def ok(cls) -> "ExecutionResult":
        return cls(success=True)

    @classmethod
    def failed(cls, error_message: Optional[str]) -> "ExecutionResult":
        return cls(success=False, error_message=error_message)


class FileManagementPort(ABC):
    """Lookup and execution of file operations (owned by file management)."""

    @abstractmethod
    def find_file(self, file_id: UUID) -> Optional[FileInfo]:
        """Return the live file, or None if it no longer exists."""
        pass

    @abstractmethod
    def move_file(self, file_id: UUID, target_folder_id: UUID, actor_id: UUID) -> ExecutionResult:
        """Move a file on behalf of actor_id."""
        pass

    @abstractmethod
    def delete_file(self, file_id: UUID, actor_id: UUID) -> ExecutionResult:
        """Delete a file on behalf of actor_id."""
        pass


class FolderLookupPort(ABC):

    @abstractmethod
    def find_folder(self, folder_id: UUID) -> Optional[FolderInfo]:
        pass


class ApproverDirectoryPort(ABC):
    """Read access to user identities and their authorization profiles."""

    @abstractmethod
    def find_user_with_authorization_profile(self, user_id: UUID) -> Optional[ApproverProfile]:
        """Return the user's profile, or None if the user does not exist."""
        pass

    @abstractmethod
    def find_users_with_permission(self, permission: str) -> List[ApproverProfile]:
        """Active users whose role grants permission."""
        pass


# ============================================================================
# Notifications
# ============================================================================

@dataclass(frozen=True)
class NewRequestNotification:
    request_id: UUID
    requester_id: UUID
    approver_id: UUID
    action_type: FileActionType
    file_name: str


@dataclass(frozen=True)
class DecisionNotification:
    request_id: UUID
    requester_id: UUID
    action_type: FileActionType
    decision: FileActionRequestStatus
    comment: Optional[str] = None


@dataclass(frozen=True)
class ReminderNotification:
    request_id: UUID
    approver_id: UUID
    action_type: FileActionType
    file_name: str
    pending_since: datetime


class NotificationPort(ABC):
    """Delivery of workflow notifications.

    Callers never depend on the outcome: any exception raised here is logged
    by the caller and does not change the command result.
    """

    @abstractmethod
    def notify_new_request(self, notification: NewRequestNotification) -> None:
        pass

    @abstractmethod
    def notify_decision(self, notification: DecisionNotification) -> None:
        pass

    @abstractmethod
    def notify_reminder(self, notification: ReminderNotification) -> None:
        pass


# ============================================================================
# Persistence
# ============================================================================

class WriteOutcome(str, Enum):
    """Result of a conditional status write."""
    APPLIED = "APPLIED"
    CONFLICT = "CONFLICT"
    NOT_FOUND = "NOT_FOUND"


class PendingRequestConflictError(Exception):
    """Storage rejected a second PENDING request for the same file."""

    def __init__(self, file_id: UUID):
        super().__init__(f"A pending request already exists for file {file_id}")
        self.file_id = file_id


SORTABLE_FIELDS = ("requested_at", "updated_at", "decided_at", "executed_at", "status", "type")


@dataclass(frozen=True)
class FileActionRequestFilter:
    status: Optional[FileActionRequestStatus] = None
    type: Optional[FileActionType] = None
    requester_id: Optional[UUID] = None
    file_id: Optional[UUID] = None
    designated_approver_id: Optional[UUID] = None
    requested_from: Optional[datetime] = None
    requested_to: Optional[datetime] = None


@dataclass(frozen=True)
class Pagination:
    """1-based page request. Unknown sort fields fall back to requested_at."""
    page: int = 1
    page_size: int = 20
    sort_by: str = "requested_at"
    sort_order: str = "desc"

    def __post_init__(self):
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")
        if self.sort_order not in ("asc", "desc"):
            raise ValueError("sort_order must be 'asc' or 'desc'")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def sort_field(self) -> str:
        return self.sort_by if self.sort_by in SORTABLE_FIELDS else "requested_at"


T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    items: List[T]
    page: int
    page_size: int
    total_items: int
    total_pages: int = field(init=False)
    has_next: bool = field(init=False)
    has_previous: bool = field(init=False)

    def __post_init__(self):
        self.total_pages = (self.total_items + self.page_size - 1) // self.page_size
        self.has_next = self.page < self.total_pages
        self.has_previous = self.page > 1


class FileActionRequestRepositoryPort(ABC):
    """Persistence for the FileActionRequest aggregate.

    Status changes on existing rows go exclusively through
    ``update_if_status`` which must be an atomic compare-and-set on status.
    """

    @abstractmethod
    def save(self, request: FileActionRequest) -> FileActionRequest:
        """Insert a new request.

        Raises:
            PendingRequestConflictError: If a PENDING request already exists
                for the same file_id
        """
        pass

    @abstractmethod
    def update_if_status(
        self,
        request: FileActionRequest,
        expected_status: FileActionRequestStatus,
    ) -> WriteOutcome:
        """Persist request only if the stored status still equals expected_status."""
        pass

    @abstractmethod
    def find_by_id(self, request_id: UUID) -> Optional[FileActionRequest]:
        pass

    @abstractmethod
    def find_pending_by_file_id(self, file_id: UUID) -> Optional[FileActionRequest]:
        pass

    @abstractmethod
    def find_by_filter(
        self,
        filter: FileActionRequestFilter,
        pagination: Pagination,
    ) -> Page[FileActionRequest]:
        pass

    @abstractmethod
    def count_by_status(self) -> Dict[FileActionRequestStatus, int]:
        """Counts for every status, zero-filled."""
        pass

    @abstractmethod
    def find_pending_requested_before(self, cutoff: datetime) -> List[FileActionRequest]:
        pass

    @abstractmethod
    def find_approved_decided_before(self, cutoff: datetime) -> List[FileActionRequest]:
        """APPROVED requests decided before cutoff, i.e. claims never completed."""
        pass
