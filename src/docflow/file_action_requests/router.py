"""File action request API - requester endpoints.

Endpoints:
    POST /file-action-requests/move          Create a MOVE request
    POST /file-action-requests/delete        Create a DELETE request
    GET  /file-action-requests/my            Requests created by the caller
    GET  /file-action-requests/approvers     Users able to approve a type
    GET  /file-action-requests/{id}          Request detail
    POST /file-action-requests/{id}/cancel   Cancel own PENDING request

Precondition failures are raised as FileActionRequestError and rendered by
the handler registered in main.py.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..audit.service import try_log_from_request
from ..auth.dependencies import (
    APPROVER_PERMISSIONS,
    CurrentUser,
    get_current_user,
    require_permission,
)
from ..auth.permissions import Permission
from ..config import settings
from ..database import get_db
from ..domain.file_action_requests import (
    FileActionRequest,
    FileActionRequestFilter,
    FileActionRequestStatus,
    FileActionType,
    Page,
    Pagination,
)
from .command_service import FileActionRequestCommandService
from .dependencies import get_command_service, get_query_service
from .query_service import FileActionRequestQueryService
from .schemas import (
    ApproverResponse,
    CreateDeleteRequest,
    CreateMoveRequest,
    FileActionRequestPage,
    FileActionRequestResponse,
)


router = APIRouter(prefix="/file-action-requests", tags=["file_action_requests"])


def pagination_params(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=settings.FILE_ACTION_REQUEST_MAX_PAGE_SIZE),
    sort_by: str = Query("requested_at", description="Unknown fields fall back to requested_at"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
) -> Pagination:
    return Pagination(page=page, page_size=page_size, sort_by=sort_by, sort_order=sort_order)


def to_response(request: FileActionRequest) -> FileActionRequestResponse:
    return FileActionRequestResponse.model_validate(request)


def to_page_response(page: Page[FileActionRequest]) -> FileActionRequestPage:
    return FileActionRequestPage(
        items=[to_response(item) for item in page.items],
        page=page.page,
        page_size=page.page_size,
        total_items=page.total_items,
        total_pages=page.total_pages,
        has_next=page.has_next,
        has_previous=page.has_previous,
    )


@router.post("/move", response_model=FileActionRequestResponse, status_code=201)
def create_move_request(
    body: CreateMoveRequest,
    request: Request,
    current_user: CurrentUser = Depends(require_permission(Permission.FILE_MOVE_REQUEST)),
    service: FileActionRequestCommandService = Depends(get_command_service),
    db: Session = Depends(get_db),
) -> FileActionRequestResponse:
    """Ask the designated approver to move a file.

    Raises:
        404: File or target folder not found / inactive
        409: A PENDING request already exists for the file
        422: Designated approver cannot approve moves
    """
    created = service.create_move_request(
        requester_id=current_user.id,
        file_id=body.file_id,
        target_folder_id=body.target_folder_id,
        designated_approver_id=body.designated_approver_id,
        reason=body.reason,
    )

    try_log_from_request(
        db=db,
        request=request,
        action="FILE_ACTION_REQUEST_MOVE_CREATED",
        actor_id=current_user.id,
        entity_id=created.id,
        metadata={
            "file_id": str(created.file_id),
            "target_folder_id": str(created.target_folder_id),
            "designated_approver_id": str(created.designated_approver_id),
        },
    )
    return to_response(created)


@router.post("/delete", response_model=FileActionRequestResponse, status_code=201)
def create_delete_request(
    body: CreateDeleteRequest,
    request: Request,
    current_user: CurrentUser = Depends(require_permission(Permission.FILE_DELETE_REQUEST)),
    service: FileActionRequestCommandService = Depends(get_command_service),
    db: Session = Depends(get_db),
) -> FileActionRequestResponse:
    created = service.create_delete_request(
        requester_id=current_user.id,
        file_id=body.file_id,
        designated_approver_id=body.designated_approver_id,
        reason=body.reason,
    )

    try_log_from_request(
        db=db,
        request=request,
        action="FILE_ACTION_REQUEST_DELETE_CREATED",
        actor_id=current_user.id,
        entity_id=created.id,
        metadata={
            "file_id": str(created.file_id),
            "designated_approver_id": str(created.designated_approver_id),
        },
    )
    return to_response(created)


@router.get("/my", response_model=FileActionRequestPage)
def list_my_requests(
    status: Optional[FileActionRequestStatus] = Query(None),
    type: Optional[FileActionType] = Query(None),
    pagination: Pagination = Depends(pagination_params),
    current_user: CurrentUser = Depends(get_current_user),
    service: FileActionRequestQueryService = Depends(get_query_service),
) -> FileActionRequestPage:
    page = service.get_my_requests(
        current_user.id,
        FileActionRequestFilter(status=status, type=type),
        pagination,
    )
    return to_page_response(page)


@router.get("/approvers", response_model=List[ApproverResponse])
def list_eligible_approvers(
    type: FileActionType = Query(..., description="MOVE or DELETE"),
    current_user: CurrentUser = Depends(get_current_user),
    service: FileActionRequestQueryService = Depends(get_query_service),
) -> List[ApproverResponse]:
    """Users who may be chosen as designated approver for type."""
    return [ApproverResponse.model_validate(p) for p in service.get_eligible_approvers(type)]


@router.get("/{request_id}", response_model=FileActionRequestResponse)
def get_request(
    request_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    service: FileActionRequestQueryService = Depends(get_query_service),
) -> FileActionRequestResponse:
    """Request detail, visible to its requester, designated approver and approvers."""
    can_view_all = any(current_user.has(p) for p in APPROVER_PERMISSIONS)
    return to_response(service.get_request_for_user(request_id, current_user.id, can_view_all))


@router.post("/{request_id}/cancel", response_model=FileActionRequestResponse)
def cancel_request(
    request_id: UUID,
    request: Request,
    current_user: CurrentUser = Depends(get_current_user),
    service: FileActionRequestCommandService = Depends(get_command_service),
    db: Session = Depends(get_db),
) -> FileActionRequestResponse:
    """Cancel a PENDING request. Only the requester may cancel.

    Raises:
        403: Caller is not the requester
        404: Request not found
        409: Request is no longer PENDING
    """
    canceled = service.cancel_request(request_id, current_user.id)

    try_log_from_request(
        db=db,
        request=request,
        action="FILE_ACTION_REQUEST_CANCELED",
        actor_id=current_user.id,
        entity_id=canceled.id,
    )
    return to_response(canceled)
