"""File action request domain: aggregate, status machine, errors and ports."""

from .status import (
    FileActionType,
    FileActionRequestStatus,
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    StateTransitionError,
    can_transition,
    validate_transition,
    get_allowed_transitions,
    is_terminal,
)
from .entity import FileActionRequest
from .errors import (
    FileActionRequestError,
    RequestNotFoundError,
    TargetFileNotFoundError,
    TargetFolderNotFoundError,
    NotRequestOwnerError,
    RequestNotDecidableError,
    RequestNotCancellableError,
    RequestNotApprovableError,
    RequestNotRejectableError,
    DuplicateRequestError,
    InvalidApproverError,
    DecisionPermissionDeniedError,
    DecisionCommentRequiredError,
)
from .ports import (
    ACTIVE_FILE_STATE,
    FileInfo,
    FolderInfo,
    ApproverProfile,
    ExecutionResult,
    FileManagementPort,
    FolderLookupPort,
    ApproverDirectoryPort,
    NotificationPort,
    NewRequestNotification,
    DecisionNotification,
    ReminderNotification,
    FileActionRequestRepositoryPort,
    FileActionRequestFilter,
    Pagination,
    Page,
    WriteOutcome,
    PendingRequestConflictError,
)

__all__ = [
    "FileActionType",
    "FileActionRequestStatus",
    "ALLOWED_TRANSITIONS",
    "TERMINAL_STATUSES",
    "StateTransitionError",
    "can_transition",
    "validate_transition",
    "get_allowed_transitions",
    "is_terminal",
    "FileActionRequest",
    "FileActionRequestError",
    "RequestNotFoundError",
    "TargetFileNotFoundError",
    "TargetFolderNotFoundError",
    "NotRequestOwnerError",
    "RequestNotDecidableError",
    "RequestNotCancellableError",
    "RequestNotApprovableError",
    "RequestNotRejectableError",
    "DuplicateRequestError",
    "InvalidApproverError",
    "DecisionPermissionDeniedError",
    "DecisionCommentRequiredError",
    "ACTIVE_FILE_STATE",
    "FileInfo",
    "FolderInfo",
    "ApproverProfile",
    "ExecutionResult",
    "FileManagementPort",
    "FolderLookupPort",
    "ApproverDirectoryPort",
    "NotificationPort",
    "NewRequestNotification",
    "DecisionNotification",
    "ReminderNotification",
    "FileActionRequestRepositoryPort",
    "FileActionRequestFilter",
    "Pagination",
    "Page",
    "WriteOutcome",
    "PendingRequestConflictError",
]
