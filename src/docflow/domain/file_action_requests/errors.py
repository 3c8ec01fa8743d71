"""Precondition failures for the file action request workflow.

Every error carries a stable ``code`` and a ``details`` dict with the ids,
statuses and permissions a client needs to render an actionable message.
Execution failures and invalidations are not errors: they are recorded on
the request as FAILED / INVALIDATED.
"""

from typing import Any, Dict, Optional


class FileActionRequestError(Exception):
    """Base class for file action request precondition failures."""

    code = "FILE_ACTION_REQUEST_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for API error bodies and bulk results."""
        return {
            "error": self.code,
            "message": self.message,
            "details": _stringify(self.details),
        }


class RequestNotFoundError(FileActionRequestError):
    code = "FILE_ACTION_REQUEST_NOT_FOUND"

    def __init__(self, request_id: Any):
        super().__init__(
            f"File action request {request_id} not found",
            {"request_id": request_id},
        )


class TargetFileNotFoundError(FileActionRequestError):
    """File does not exist or is not in an active lifecycle state."""

    code = "FILE_NOT_FOUND"

    def __init__(self, file_id: Any):
        super().__init__(f"File {file_id} not found or not active", {"file_id": file_id})


class TargetFolderNotFoundError(FileActionRequestError):
    code = "FOLDER_NOT_FOUND"

    def __init__(self, folder_id: Any):
        super().__init__(f"Folder {folder_id} not found or not active", {"folder_id": folder_id})


class NotRequestOwnerError(FileActionRequestError):
    code = "FILE_ACTION_REQUEST_NOT_OWNER"

    def __init__(self, request_id: Any, user_id: Any):
        super().__init__(
            "Only the requester can cancel this request",
            {"request_id": request_id, "user_id": user_id},
        )


class RequestNotDecidableError(FileActionRequestError):
    """Request is no longer PENDING, or a conditional write lost a race."""

    code = "FILE_ACTION_REQUEST_NOT_DECIDABLE"
    verb = "decided"

    def __init__(self, request_id: Any, current_status: Any, conflict: bool = False):
        status_value = getattr(current_status, "value", current_status)
        details = {"request_id": request_id, "current_status": status_value}
        if conflict:
            details["conflict"] = True
        super().__init__(
            f"Request cannot be {self.verb} in status {status_value}",
            details,
        )
        self.current_status = current_status
        self.conflict = conflict


class RequestNotCancellableError(RequestNotDecidableError):
    code = "FILE_ACTION_REQUEST_NOT_CANCELLABLE"
    verb = "canceled"


class RequestNotApprovableError(RequestNotDecidableError):
    code = "FILE_ACTION_REQUEST_NOT_APPROVABLE"
    verb = "approved"


class RequestNotRejectableError(RequestNotDecidableError):
    code = "FILE_ACTION_REQUEST_NOT_REJECTABLE"
    verb = "rejected"


class DuplicateRequestError(FileActionRequestError):
    """A PENDING request already references the same file.

    Details include the existing request's id, requester, type, designated
    approver, file name, requested_at and (for MOVE) target folder.
    """

    code = "FILE_ACTION_REQUEST_DUPLICATE"

    def __init__(self, file_id: Any, existing: Optional[Any] = None):
        details: Dict[str, Any] = {"file_id": file_id}
        if existing is not None:
            details.update({
                "existing_request_id": existing.id,
                "requester_id": existing.requester_id,
                "type": existing.type.value,
                "designated_approver_id": existing.designated_approver_id,
                "file_name": existing.file_name,
                "requested_at": existing.requested_at,
            })
            if existing.target_folder_id is not None:
                details["target_folder_id"] = existing.target_folder_id
        super().__init__(
            f"A pending request already exists for file {file_id}",
            details,
        )
        self.existing = existing


class InvalidApproverError(FileActionRequestError):
    code = "FILE_ACTION_REQUEST_INVALID_APPROVER"

    def __init__(self, approver_id: Any, reason: str, required_permission: Optional[str] = None):
        details: Dict[str, Any] = {"approver_id": approver_id, "reason": reason}
        if required_permission:
            details["required_permission"] = required_permission
        super().__init__(f"User {approver_id} cannot approve this request: {reason}", details)


class DecisionPermissionDeniedError(FileActionRequestError):
    """Caller lacks the approve permission for this request's action type."""

    code = "FILE_ACTION_REQUEST_PERMISSION_DENIED"

    def __init__(self, request_id: Any, user_id: Any, required_permission: str):
        super().__init__(
            f"Deciding this request requires the {required_permission} permission",
            {
                "request_id": request_id,
                "user_id": user_id,
                "required_permission": required_permission,
            },
        )


class DecisionCommentRequiredError(FileActionRequestError):
    code = "FILE_ACTION_REQUEST_COMMENT_REQUIRED"

    def __init__(self, request_id: Any):
        super().__init__(
            "A comment is required to reject a request",
            {"request_id": request_id},
        )


def _stringify(details: Dict[str, Any]) -> Dict[str, Any]:
    """Make UUIDs, enums and datetimes JSON friendly."""
    result = {}
    for key, value in details.items():
        if value is None or isinstance(value, (bool, int, float, str)):
            result[key] = value
        elif hasattr(value, "isoformat"):
            result[key] = value.isoformat()
        else:
            result[key] = str(getattr(value, "value", value))
    return result
