"""Pydantic schemas for the file action request API."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..config import settings
from ..domain.file_action_requests import FileActionRequestStatus, FileActionType


# ============================================================================
# Requests
# ============================================================================

class CreateMoveRequest(BaseModel):
    """Body for POST /file-action-requests/move"""
    file_id: UUID
    target_folder_id: UUID
    designated_approver_id: UUID
    reason: str = Field(..., min_length=1, max_length=2000)

    model_config = ConfigDict(extra='forbid')


class CreateDeleteRequest(BaseModel):
    """Body for POST /file-action-requests/delete"""
    file_id: UUID
    designated_approver_id: UUID
    reason: str = Field(..., min_length=1, max_length=2000)

    model_config = ConfigDict(extra='forbid')


class ApproveBody(BaseModel):
    comment: Optional[str] = Field(None, max_length=2000)


class RejectBody(BaseModel):
    comment: str = Field(..., min_length=1, max_length=2000, description="Mandatory on reject")


class BulkApproveBody(BaseModel):
    request_ids: List[UUID] = Field(
        ..., min_length=1, max_length=settings.FILE_ACTION_REQUEST_BULK_MAX_ITEMS
    )
    comment: Optional[str] = Field(None, max_length=2000)


class BulkRejectBody(BaseModel):
    request_ids: List[UUID] = Field(
        ..., min_length=1, max_length=settings.FILE_ACTION_REQUEST_BULK_MAX_ITEMS
    )
    comment: str = Field(..., min_length=1, max_length=2000)


# ============================================================================
# Responses
# ============================================================================

class FileActionRequestResponse(BaseModel):
    """Full request record, including snapshot and execution note"""
    id: UUID
    type: FileActionType
    status: FileActionRequestStatus
    file_id: UUID
    file_name: str
    source_folder_id: Optional[UUID] = None
    target_folder_id: Optional[UUID] = None
    requester_id: UUID
    designated_approver_id: UUID
    approver_id: Optional[UUID] = None
    reason: str
    decision_comment: Optional[str] = None
    execution_note: Optional[str] = None
    snapshot_folder_id: UUID
    snapshot_file_state: str
    requested_at: datetime
    decided_at: Optional[datetime] = None
    executed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class FileActionRequestPage(BaseModel):
    items: List[FileActionRequestResponse]
    page: int
    page_size: int
    total_items: int
    total_pages: int
    has_next: bool
    has_previous: bool

    model_config = ConfigDict(from_attributes=True)


class StatusSummaryResponse(BaseModel):
    """Request counts per status (every status present)"""
    counts: Dict[FileActionRequestStatus, int]
    total: int


class ApproverResponse(BaseModel):
    user_id: UUID
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ErrorBody(BaseModel):
    error: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class BulkItemResponse(BaseModel):
    request_id: UUID
    success: bool
    request: Optional[FileActionRequestResponse] = None
    error: Optional[ErrorBody] = None


class BulkResponse(BaseModel):
    """Per-item outcomes in input order"""
    results: List[BulkItemResponse]
    succeeded: int
    failed: int
