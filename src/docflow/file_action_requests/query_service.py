"""Read side of the file action request workflow."""

from dataclasses import replace
from typing import Dict, List, Optional
from uuid import UUID

from ..auth.permissions import required_approval_permission
from ..domain.file_action_requests import (
    ApproverDirectoryPort,
    ApproverProfile,
    FileActionRequest,
    FileActionRequestFilter,
    FileActionRequestRepositoryPort,
    FileActionRequestStatus,
    FileActionType,
    Page,
    Pagination,
    RequestNotFoundError,
)


class FileActionRequestQueryService:
    """Filtered, paginated reads and the status summary."""

    def __init__(
        self,
        repository: FileActionRequestRepositoryPort,
        approvers: ApproverDirectoryPort,
        max_page_size: int = 100,
    ):
        self.repository = repository
        self.approvers = approvers
        self.max_page_size = max_page_size

    def get_request(self, request_id: UUID) -> FileActionRequest:
        request = self.repository.find_by_id(request_id)
        if request is None:
            raise RequestNotFoundError(request_id)
        return request

    def get_request_for_user(
        self,
        request_id: UUID,
        user_id: UUID,
        can_view_all: bool = False,
    ) -> FileActionRequest:
        """Like get_request, but hides requests the user is not a party to.

        A user sees a request if they are its requester or designated
        approver, or if can_view_all is set (approvers). Otherwise the
        request is reported as not found.
        """
        request = self.get_request(request_id)
        if can_view_all or user_id in (request.requester_id, request.designated_approver_id):
            return request
        raise RequestNotFoundError(request_id)

    def get_my_requests(
        self,
        user_id: UUID,
        filter: Optional[FileActionRequestFilter] = None,
        pagination: Optional[Pagination] = None,
    ) -> Page[FileActionRequest]:
        filter = filter or FileActionRequestFilter()
        return self.repository.find_by_filter(
            replace(filter, requester_id=user_id),
            self._clamp(pagination),
        )

    def get_pending_approvals(
        self,
        approver_id: UUID,
        pagination: Optional[Pagination] = None,
    ) -> Page[FileActionRequest]:
        return self.repository.find_by_filter(
            FileActionRequestFilter(
                designated_approver_id=approver_id,
                status=FileActionRequestStatus.PENDING,
            ),
            self._clamp(pagination),
        )

    def get_all_requests(
        self,
        filter: Optional[FileActionRequestFilter] = None,
        pagination: Optional[Pagination] = None,
    ) -> Page[FileActionRequest]:
        return self.repository.find_by_filter(
            filter or FileActionRequestFilter(),
            self._clamp(pagination),
        )

    def get_status_summary(self) -> Dict[FileActionRequestStatus, int]:
        """Counts per status; every status is present."""
        counts = self.repository.count_by_status()
        return {status: counts.get(status, 0) for status in FileActionRequestStatus}

    def get_eligible_approvers(self, action_type: FileActionType) -> List[ApproverProfile]:
        """Active users holding the approve permission for action_type."""
        permission = required_approval_permission(action_type)
        return self.approvers.find_users_with_permission(permission.value)

    def _clamp(self, pagination: Optional[Pagination]) -> Pagination:
        pagination = pagination or Pagination()
        if pagination.page_size > self.max_page_size:
            return replace(pagination, page_size=self.max_page_size)
        return pagination
