"""Permissions used by the file action request workflow.

Permission Matrix:
┌──────────────────────────┬─────────────────────────────────────────┐
│ Permission               │ Grants                                  │
├──────────────────────────┼─────────────────────────────────────────┤
│ FILE_MOVE_REQUEST        │ Create MOVE requests                    │
│ FILE_DELETE_REQUEST      │ Create DELETE requests                  │
│ FILE_MOVE_APPROVE        │ Decide MOVE requests, approver views    │
│ FILE_DELETE_APPROVE      │ Decide DELETE requests, approver views  │
└──────────────────────────┴─────────────────────────────────────────┘

Role-to-permission evaluation is owned by the user directory; this service
only reads the resulting permission set (token claim or directory profile).
"""

from enum import Enum
from typing import Iterable

from ..domain.file_action_requests import FileActionType


class Permission(str, Enum):
    """Values must match the user directory's permission names exactly."""
    FILE_MOVE_REQUEST = "FILE_MOVE_REQUEST"
    FILE_DELETE_REQUEST = "FILE_DELETE_REQUEST"
    FILE_MOVE_APPROVE = "FILE_MOVE_APPROVE"
    FILE_DELETE_APPROVE = "FILE_DELETE_APPROVE"


APPROVAL_PERMISSIONS = {
    FileActionType.MOVE: Permission.FILE_MOVE_APPROVE,
    FileActionType.DELETE: Permission.FILE_DELETE_APPROVE,
}

REQUEST_PERMISSIONS = {
    FileActionType.MOVE: Permission.FILE_MOVE_REQUEST,
    FileActionType.DELETE: Permission.FILE_DELETE_REQUEST,
}


def required_approval_permission(action_type: FileActionType) -> Permission:
    """Permission an approver needs to decide a request of action_type.

    Examples:
        >>> required_approval_permission(FileActionType.DELETE)
        <Permission.FILE_DELETE_APPROVE: 'FILE_DELETE_APPROVE'>
    """
    return APPROVAL_PERMISSIONS[action_type]


def has_permission(granted: Iterable[str], required: Permission) -> bool:
    return required.value in set(granted)
