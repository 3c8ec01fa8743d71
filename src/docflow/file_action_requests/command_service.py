"""Command service for file action requests.

The only component that mutates requests. It sequences validation, entity
transitions, the live-state re-check, execution and notification.

Concurrency:
    Every status change on an existing request is committed with a
    compare-and-set (``update_if_status``). Approval first commits
    PENDING → APPROVED as a claim; only the caller that wins the claim reads
    live state and executes, so a request is executed at most once. The
    final terminal state is then committed against APPROVED.
    A worker that dies between the two writes leaves the row APPROVED;
    ``fail_interrupted_approvals`` closes such rows as FAILED.

    Duplicate creation races are settled by the storage-level uniqueness of
    PENDING requests per file; the resulting conflict is reported as the
    same DuplicateRequestError the pre-check raises.

Failure semantics:
    Precondition failures raise FileActionRequestError subclasses before any
    mutation. Execution failures and stale file state are recorded as FAILED
    and INVALIDATED. Notification failures are logged and counted, never raised.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Type
from uuid import UUID

from ..auth.permissions import has_permission, required_approval_permission
from ..domain.file_action_requests import (
    DecisionCommentRequiredError,
    DecisionNotification,
    DecisionPermissionDeniedError,
    DuplicateRequestError,
    ExecutionResult,
    FileActionRequest,
    FileActionRequestError,
    FileActionRequestRepositoryPort,
    FileActionRequestStatus,
    FileActionType,
    FileManagementPort,
    NewRequestNotification,
    NotificationPort,
    NotRequestOwnerError,
    PendingRequestConflictError,
    RequestNotApprovableError,
    RequestNotCancellableError,
    RequestNotDecidableError,
    RequestNotFoundError,
    RequestNotRejectableError,
    WriteOutcome,
)
from ..observability.metrics import (
    file_action_execution_duration_seconds,
    file_action_request_decisions_total,
    file_action_request_notifications_failed_total,
    file_action_requests_created_total,
)
from .validation import FileActionRequestValidationService

logger = logging.getLogger(__name__)

GENERIC_EXECUTION_ERROR = "An error occurred while executing the file action"
FILE_DELETED_NOTE = "File was deleted since the request was made"
INTERRUPTED_EXECUTION_NOTE = (
    "Execution was interrupted after approval; check the file before resubmitting"
)
INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass
class BulkItemResult:
    """Outcome for one id of a bulk approve/reject, in input order."""
    request_id: UUID
    request: Optional[FileActionRequest] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    error_details: Dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.request is not None

    @classmethod
    def failure(cls, request_id: UUID, error: FileActionRequestError) -> "BulkItemResult":
        payload = error.to_dict()
        return cls(
            request_id=request_id,
            error_code=payload["error"],
            error_message=payload["message"],
            error_details=payload["details"],
        )


class FileActionRequestCommandService:
    """Create, cancel, approve and reject file action requests."""

    def __init__(
        self,
        repository: FileActionRequestRepositoryPort,
        files: FileManagementPort,
        notifications: NotificationPort,
        validation: FileActionRequestValidationService,
    ):
        self.repository = repository
        self.files = files
        self.notifications = notifications
        self.validation = validation

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_move_request(
        self,
        requester_id: UUID,
        file_id: UUID,
        target_folder_id: UUID,
        designated_approver_id: UUID,
        reason: str,
    ) -> FileActionRequest:
        return self._create(
            FileActionType.MOVE,
            requester_id,
            file_id,
            designated_approver_id,
            reason,
            target_folder_id=target_folder_id,
        )

    def create_delete_request(
        self,
        requester_id: UUID,
        file_id: UUID,
        designated_approver_id: UUID,
        reason: str,
    ) -> FileActionRequest:
        return self._create(
            FileActionType.DELETE,
            requester_id,
            file_id,
            designated_approver_id,
            reason,
        )

    def _create(
        self,
        action_type: FileActionType,
        requester_id: UUID,
        file_id: UUID,
        designated_approver_id: UUID,
        reason: str,
        target_folder_id: Optional[UUID] = None,
    ) -> FileActionRequest:
        file = self.validation.validate_file(file_id)
        if action_type == FileActionType.MOVE:
            self.validation.validate_target_folder(target_folder_id)
        self.validation.check_duplicate(file_id)
        self.validation.validate_approver(designated_approver_id, action_type)

        request = FileActionRequest.create(
            action_type=action_type,
            file_id=file_id,
            file_name=file.name,
            current_folder_id=file.folder_id,
            current_file_state=file.lifecycle_state,
            requester_id=requester_id,
            designated_approver_id=designated_approver_id,
            reason=reason,
            target_folder_id=target_folder_id,
        )

        try:
            self.repository.save(request)
        except PendingRequestConflictError:
            # Lost a concurrent creation race after passing check_duplicate
            existing = self.repository.find_pending_by_file_id(file_id)
            logger.info(
                f"Concurrent {action_type.value} request for file {file_id} rejected as duplicate",
                extra={"file_id": str(file_id), "user_id": str(requester_id)},
            )
            raise DuplicateRequestError(file_id, existing)

        file_action_requests_created_total.labels(type=action_type.value).inc()
        logger.info(
            f"Created {action_type.value} request for file {file_id}",
            extra={
                "file_action_request_id": str(request.id),
                "file_id": str(file_id),
                "user_id": str(requester_id),
            },
        )

        self._notify(
            "new_request",
            self.notifications.notify_new_request,
            NewRequestNotification(
                request_id=request.id,
                requester_id=request.requester_id,
                approver_id=request.designated_approver_id,
                action_type=request.type,
                file_name=request.file_name,
            ),
        )
        return request

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def cancel_request(self, request_id: UUID, user_id: UUID) -> FileActionRequest:
        request = self._load(request_id)

        if not request.is_owned_by(user_id):
            raise NotRequestOwnerError(request_id, user_id)
        if not request.is_decidable():
            raise RequestNotCancellableError(request_id, request.status)

        request.cancel()
        self._commit(request, FileActionRequestStatus.PENDING, RequestNotCancellableError)
        self._record_decision(request, user_id)
        return request

    def reject_request(
        self,
        request_id: UUID,
        approver_id: UUID,
        comment: str,
        permissions: Optional[Iterable[str]] = None,
    ) -> FileActionRequest:
        request = self._load(request_id)
        self._check_decision_permission(request, approver_id, permissions)

        if not request.is_decidable():
            raise RequestNotRejectableError(request_id, request.status)
        if not comment or not comment.strip():
            raise DecisionCommentRequiredError(request_id)

        request.reject(approver_id, comment.strip())
        self._commit(request, FileActionRequestStatus.PENDING, RequestNotRejectableError)
        self._record_decision(request, approver_id)
        self._notify_decision(request)
        return request

    def approve_request(
        self,
        request_id: UUID,
        approver_id: UUID,
        comment: Optional[str] = None,
        permissions: Optional[Iterable[str]] = None,
    ) -> FileActionRequest:
        """Approve, re-check live file state, and execute if still valid.

        Always returns the request in a terminal state (EXECUTED, FAILED or
        INVALIDATED) unless a precondition fails.

        Args:
            permissions: Permissions granted to the caller. When given, the
                caller must hold the approve permission for the request's
                type. None skips the check for callers that authorized the
                decision themselves.

        Raises:
            RequestNotFoundError: Unknown request_id
            DecisionPermissionDeniedError: Caller lacks the approve
                permission for this action type
            RequestNotApprovableError: Request not PENDING, or another
                decision won the race (``conflict=True``)
        """
        request = self._load(request_id)
        self._check_decision_permission(request, approver_id, permissions)

        if not request.is_decidable():
            raise RequestNotApprovableError(request_id, request.status)

        request.approve(approver_id, comment)
        self._commit(request, FileActionRequestStatus.PENDING, RequestNotApprovableError)

        self._resolve_approved(request, approver_id)

        self._commit(request, FileActionRequestStatus.APPROVED, RequestNotApprovableError)
        self._record_decision(request, approver_id)
        self._notify_decision(request)
        return request

    def _resolve_approved(self, request: FileActionRequest, approver_id: UUID) -> None:
        """Move a claimed APPROVED request to EXECUTED, FAILED or INVALIDATED."""
        try:
            live = self.files.find_file(request.file_id)
        except Exception as e:
            logger.error(
                f"Could not read current state of file {request.file_id}: {e}",
                extra={"file_action_request_id": str(request.id)},
                exc_info=True,
            )
            request.mark_failed(f"Could not read the current file state: {e}")
            return

        if live is None:
            request.invalidate(FILE_DELETED_NOTE)
            return

        if not request.validate_state_for_execution(live.folder_id, live.lifecycle_state):
            logger.info(
                f"Request invalidated: {request.execution_note}",
                extra={"file_action_request_id": str(request.id)},
            )
            return

        result = self._execute(request, approver_id)
        if result.success:
            request.mark_executed()
        else:
            request.mark_failed(result.error_message or GENERIC_EXECUTION_ERROR)

    def _execute(self, request: FileActionRequest, actor_id: UUID) -> ExecutionResult:
        start = time.time()
        try:
            if request.type == FileActionType.MOVE:
                result = self.files.move_file(request.file_id, request.target_folder_id, actor_id)
            else:
                result = self.files.delete_file(request.file_id, actor_id)
        except Exception as e:
            logger.error(
                f"{request.type.value} of file {request.file_id} raised: {e}",
                extra={"file_action_request_id": str(request.id)},
                exc_info=True,
            )
            result = ExecutionResult.failed(str(e) or None)
        finally:
            file_action_execution_duration_seconds.labels(type=request.type.value).observe(
                time.time() - start
            )

        if not result.success:
            logger.error(
                f"{request.type.value} of file {request.file_id} failed: {result.error_message}",
                extra={"file_action_request_id": str(request.id)},
            )
        return result

    # ------------------------------------------------------------------
    # Bulk
    # ------------------------------------------------------------------

    def bulk_approve(
        self,
        request_ids: List[UUID],
        approver_id: UUID,
        comment: Optional[str] = None,
        permissions: Optional[Iterable[str]] = None,
    ) -> List[BulkItemResult]:
        """Approve each id independently; one failure never stops the batch."""
        return self._bulk(
            request_ids,
            lambda request_id: self.approve_request(request_id, approver_id, comment, permissions),
        )

    def bulk_reject(
        self,
        request_ids: List[UUID],
        approver_id: UUID,
        comment: str,
        permissions: Optional[Iterable[str]] = None,
    ) -> List[BulkItemResult]:
        return self._bulk(
            request_ids,
            lambda request_id: self.reject_request(request_id, approver_id, comment, permissions),
        )

    def _bulk(
        self,
        request_ids: List[UUID],
        operation: Callable[[UUID], FileActionRequest],
    ) -> List[BulkItemResult]:
        results = []
        for request_id in request_ids:
            try:
                results.append(BulkItemResult(request_id=request_id, request=operation(request_id)))
            except FileActionRequestError as e:
                results.append(BulkItemResult.failure(request_id, e))
            except Exception as e:
                logger.error(
                    f"Unexpected error processing request {request_id} in bulk: {e}",
                    extra={"file_action_request_id": str(request_id)},
                    exc_info=True,
                )
                results.append(BulkItemResult(
                    request_id=request_id,
                    error_code=INTERNAL_ERROR,
                    error_message="An unexpected error occurred",
                ))

        succeeded = sum(1 for r in results if r.success)
        logger.info(f"Bulk operation processed {len(results)} requests, {succeeded} succeeded")
        return results

    # ------------------------------------------------------------------
    # Recovery
    # ------------------------------------------------------------------

    def fail_interrupted_approvals(
        self,
        stale_after: timedelta,
        now: Optional[datetime] = None,
    ) -> int:
        """Close approvals whose worker died between the claim and the final write.

        A request still APPROVED ``stale_after`` past its decision is marked
        FAILED with INTERRUPTED_EXECUTION_NOTE. Whether the file operation ran
        is unknown, so nothing is re-executed. A request finished by its own
        worker in the meantime is left alone.

        Returns:
            Number of requests moved to FAILED.
        """
        now = now or datetime.now(timezone.utc)
        stuck = self.repository.find_approved_decided_before(now - stale_after)

        recovered = 0
        for request in stuck:
            request.mark_failed(INTERRUPTED_EXECUTION_NOTE)
            outcome = self.repository.update_if_status(request, FileActionRequestStatus.APPROVED)
            if outcome != WriteOutcome.APPLIED:
                continue
            recovered += 1
            logger.warning(
                f"Approved request {request.id} was interrupted before completion, marked FAILED",
                extra={"file_action_request_id": str(request.id), "status": request.status.value},
            )
            self._record_decision(request, request.approver_id)
            self._notify_decision(request)

        if stuck:
            logger.info(f"Recovered {recovered} of {len(stuck)} interrupted approvals")
        return recovered

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load(self, request_id: UUID) -> FileActionRequest:
        request = self.repository.find_by_id(request_id)
        if request is None:
            raise RequestNotFoundError(request_id)
        return request

    def _check_decision_permission(
        self,
        request: FileActionRequest,
        user_id: UUID,
        permissions: Optional[Iterable[str]],
    ) -> None:
        if permissions is None:
            return
        required = required_approval_permission(request.type)
        if not has_permission(permissions, required):
            logger.info(
                f"User {user_id} lacks {required.value} to decide request {request.id}",
                extra={"file_action_request_id": str(request.id), "user_id": str(user_id)},
            )
            raise DecisionPermissionDeniedError(request.id, user_id, required.value)

    def _commit(
        self,
        request: FileActionRequest,
        expected_status: FileActionRequestStatus,
        conflict_error: Type[RequestNotDecidableError],
    ) -> None:
        """Conditional write; raises conflict_error(conflict=True) if another writer won."""
        outcome = self.repository.update_if_status(request, expected_status)
        if outcome == WriteOutcome.APPLIED:
            return

        if outcome == WriteOutcome.NOT_FOUND:
            raise RequestNotFoundError(request.id)

        stored = self.repository.find_by_id(request.id)
        current_status = stored.status if stored else None
        file_action_request_decisions_total.labels(type=request.type.value, outcome="CONFLICT").inc()

        log = logger.error if expected_status == FileActionRequestStatus.APPROVED else logger.warning
        log(
            f"Conditional write lost: expected {expected_status.value}, "
            f"found {getattr(current_status, 'value', current_status)}",
            extra={"file_action_request_id": str(request.id)},
        )
        raise conflict_error(request.id, current_status, conflict=True)

    def _record_decision(self, request: FileActionRequest, actor_id: UUID) -> None:
        file_action_request_decisions_total.labels(
            type=request.type.value, outcome=request.status.value
        ).inc()
        logger.info(
            f"Request {request.id} is now {request.status.value}",
            extra={
                "file_action_request_id": str(request.id),
                "user_id": str(actor_id),
                "status": request.status.value,
            },
        )

    def _notify_decision(self, request: FileActionRequest) -> None:
        self._notify(
            "decision",
            self.notifications.notify_decision,
            DecisionNotification(
                request_id=request.id,
                requester_id=request.requester_id,
                action_type=request.type,
                decision=request.status,
                comment=_decision_comment(request),
            ),
        )

    def _notify(self, kind: str, send: Callable[[Any], None], notification: Any) -> None:
        try:
            send(notification)
        except Exception as e:
            file_action_request_notifications_failed_total.labels(kind=kind).inc()
            logger.warning(
                f"Failed to send {kind} notification: {e}",
                extra={"file_action_request_id": str(notification.request_id)},
                exc_info=True,
            )


def _decision_comment(request: FileActionRequest) -> Optional[str]:
    """The requester is told why an approval did not run."""
    if request.status in (FileActionRequestStatus.INVALIDATED, FileActionRequestStatus.FAILED):
        return request.execution_note
    return request.decision_comment
