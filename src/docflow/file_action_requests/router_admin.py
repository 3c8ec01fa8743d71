"""File action request API - approver endpoints.

All endpoints require FILE_MOVE_APPROVE or FILE_DELETE_APPROVE.
Deciding a request additionally requires the approve permission matching its
type; bulk endpoints report a missing permission per item.

Endpoints:
    GET  /admin/file-action-requests                 All requests (filterable)
    GET  /admin/file-action-requests/summary         Counts per status
    GET  /admin/file-action-requests/my-pending      PENDING requests assigned to caller
    GET  /admin/file-action-requests/{id}            Request detail
    POST /admin/file-action-requests/{id}/approve    Approve and execute
    POST /admin/file-action-requests/{id}/reject     Reject with comment
    POST /admin/file-action-requests/bulk-approve    Per-item results
    POST /admin/file-action-requests/bulk-reject     Per-item results
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..audit.service import try_log_from_request
from ..auth.dependencies import CurrentUser, get_current_approver
from ..database import get_db
from ..domain.file_action_requests import (
    FileActionRequestFilter,
    FileActionRequestStatus,
    FileActionType,
    Pagination,
)
from .command_service import BulkItemResult, FileActionRequestCommandService
from .dependencies import get_command_service, get_query_service
from .query_service import FileActionRequestQueryService
from .router import pagination_params, to_page_response, to_response
from .schemas import (
    ApproveBody,
    BulkApproveBody,
    BulkItemResponse,
    BulkRejectBody,
    BulkResponse,
    ErrorBody,
    FileActionRequestPage,
    FileActionRequestResponse,
    RejectBody,
    StatusSummaryResponse,
)


router = APIRouter(prefix="/admin/file-action-requests", tags=["file_action_requests_admin"])


def to_bulk_response(results: List[BulkItemResult]) -> BulkResponse:
    items = []
    for result in results:
        if result.success:
            items.append(BulkItemResponse(
                request_id=result.request_id,
                success=True,
                request=to_response(result.request),
            ))
        else:
            items.append(BulkItemResponse(
                request_id=result.request_id,
                success=False,
                error=ErrorBody(
                    error=result.error_code,
                    message=result.error_message,
                    details=result.error_details,
                ),
            ))
    succeeded = sum(1 for item in items if item.success)
    return BulkResponse(results=items, succeeded=succeeded, failed=len(items) - succeeded)


@router.get("", response_model=FileActionRequestPage)
def list_requests(
    status: Optional[FileActionRequestStatus] = Query(None),
    type: Optional[FileActionType] = Query(None),
    requester_id: Optional[UUID] = Query(None),
    file_id: Optional[UUID] = Query(None),
    designated_approver_id: Optional[UUID] = Query(None),
    requested_from: Optional[datetime] = Query(None),
    requested_to: Optional[datetime] = Query(None),
    pagination: Pagination = Depends(pagination_params),
    current_user: CurrentUser = Depends(get_current_approver),
    service: FileActionRequestQueryService = Depends(get_query_service),
) -> FileActionRequestPage:
    filter = FileActionRequestFilter(
        status=status,
        type=type,
        requester_id=requester_id,
        file_id=file_id,
        designated_approver_id=designated_approver_id,
        requested_from=requested_from,
        requested_to=requested_to,
    )
    return to_page_response(service.get_all_requests(filter, pagination))


@router.get("/summary", response_model=StatusSummaryResponse)
def get_summary(
    current_user: CurrentUser = Depends(get_current_approver),
    service: FileActionRequestQueryService = Depends(get_query_service),
) -> StatusSummaryResponse:
    counts = service.get_status_summary()
    return StatusSummaryResponse(counts=counts, total=sum(counts.values()))


@router.get("/my-pending", response_model=FileActionRequestPage)
def list_my_pending_approvals(
    pagination: Pagination = Depends(pagination_params),
    current_user: CurrentUser = Depends(get_current_approver),
    service: FileActionRequestQueryService = Depends(get_query_service),
) -> FileActionRequestPage:
    return to_page_response(service.get_pending_approvals(current_user.id, pagination))


@router.post("/bulk-approve", response_model=BulkResponse)
def bulk_approve(
    body: BulkApproveBody,
    request: Request,
    current_user: CurrentUser = Depends(get_current_approver),
    service: FileActionRequestCommandService = Depends(get_command_service),
    db: Session = Depends(get_db),
) -> BulkResponse:
    """Approve each id independently. Always 200; inspect per-item results."""
    results = service.bulk_approve(
        body.request_ids, current_user.id, body.comment, permissions=current_user.permissions
    )
    response = to_bulk_response(results)

    try_log_from_request(
        db=db,
        request=request,
        action="FILE_ACTION_REQUEST_BULK_APPROVED",
        actor_id=current_user.id,
        entity_id=None,
        metadata={
            "request_ids": [str(i) for i in body.request_ids],
            "succeeded": response.succeeded,
            "failed": response.failed,
        },
    )
    return response


@router.post("/bulk-reject", response_model=BulkResponse)
def bulk_reject(
    body: BulkRejectBody,
    request: Request,
    current_user: CurrentUser = Depends(get_current_approver),
    service: FileActionRequestCommandService = Depends(get_command_service),
    db: Session = Depends(get_db),
) -> BulkResponse:
    results = service.bulk_reject(
        body.request_ids, current_user.id, body.comment, permissions=current_user.permissions
    )
    response = to_bulk_response(results)

    try_log_from_request(
        db=db,
        request=request,
        action="FILE_ACTION_REQUEST_BULK_REJECTED",
        actor_id=current_user.id,
        entity_id=None,
        metadata={
            "request_ids": [str(i) for i in body.request_ids],
            "succeeded": response.succeeded,
            "failed": response.failed,
        },
    )
    return response


@router.get("/{request_id}", response_model=FileActionRequestResponse)
def get_request(
    request_id: UUID,
    current_user: CurrentUser = Depends(get_current_approver),
    service: FileActionRequestQueryService = Depends(get_query_service),
) -> FileActionRequestResponse:
    return to_response(service.get_request(request_id))


@router.post("/{request_id}/approve", response_model=FileActionRequestResponse)
def approve_request(
    request_id: UUID,
    request: Request,
    body: Optional[ApproveBody] = None,
    current_user: CurrentUser = Depends(get_current_approver),
    service: FileActionRequestCommandService = Depends(get_command_service),
    db: Session = Depends(get_db),
) -> FileActionRequestResponse:
    """Approve a PENDING request.

    The response carries the terminal state: EXECUTED, or FAILED /
    INVALIDATED with an execution_note. Those are not errors.

    Raises:
        404: Request not found
        403: Caller lacks the approve permission for the request's type
        409: Request is no longer PENDING, or a concurrent decision won
    """
    comment = body.comment if body else None
    decided = service.approve_request(
        request_id, current_user.id, comment, permissions=current_user.permissions
    )

    try_log_from_request(
        db=db,
        request=request,
        action="FILE_ACTION_REQUEST_APPROVED",
        actor_id=current_user.id,
        entity_id=decided.id,
        metadata={"status": decided.status.value, "execution_note": decided.execution_note},
    )
    return to_response(decided)


@router.post("/{request_id}/reject", response_model=FileActionRequestResponse)
def reject_request(
    request_id: UUID,
    body: RejectBody,
    request: Request,
    current_user: CurrentUser = Depends(get_current_approver),
    service: FileActionRequestCommandService = Depends(get_command_service),
    db: Session = Depends(get_db),
) -> FileActionRequestResponse:
    rejected = service.reject_request(
        request_id, current_user.id, body.comment, permissions=current_user.permissions
    )

    try_log_from_request(
        db=db,
        request=request,
        action="FILE_ACTION_REQUEST_REJECTED",
        actor_id=current_user.id,
        entity_id=rejected.id,
        metadata={"comment": rejected.decision_comment},
    )
    return to_response(rejected)
