"""Unit tests for FileActionRequestQueryService"""

from uuid import uuid4

import pytest

from docflow.domain.file_action_requests import (
    ApproverProfile,
    FileActionRequestFilter,
    FileActionRequestStatus,
    FileActionType,
    FileInfo,
    Pagination,
    RequestNotFoundError,
)


@pytest.fixture
def several_requests(command_service, file_store, requester_id, approver_id, source_folder_id, target_folder_id):
    """Five requests from requester_id: 3 MOVE (one canceled), 2 DELETE."""
    created = []
    for index in range(5):
        file_id = uuid4()
        file_store.add_file(FileInfo(
            id=file_id, name=f"file-{index}.pdf", folder_id=source_folder_id, lifecycle_state="ACTIVE",
        ))
        if index < 3:
            created.append(command_service.create_move_request(
                requester_id, file_id, target_folder_id, approver_id, f"move {index}"
            ))
        else:
            created.append(command_service.create_delete_request(
                requester_id, file_id, approver_id, f"delete {index}"
            ))
    command_service.cancel_request(created[0].id, requester_id)
    return created


class TestGetRequest:

    def test_get_request(self, query_service, pending_move_request):
        assert query_service.get_request(pending_move_request.id).id == pending_move_request.id

    def test_get_unknown_request(self, query_service):
        with pytest.raises(RequestNotFoundError):
            query_service.get_request(uuid4())

    def test_parties_can_view(self, query_service, pending_move_request, requester_id, approver_id):
        assert query_service.get_request_for_user(pending_move_request.id, requester_id).id == pending_move_request.id
        assert query_service.get_request_for_user(pending_move_request.id, approver_id).id == pending_move_request.id

    def test_unrelated_user_sees_not_found(self, query_service, pending_move_request):
        """Test a non-party without view-all is told the request does not exist"""
        with pytest.raises(RequestNotFoundError):
            query_service.get_request_for_user(pending_move_request.id, uuid4())

        assert query_service.get_request_for_user(pending_move_request.id, uuid4(), can_view_all=True)


class TestListings:

    def test_my_requests_only_returns_own(self, query_service, command_service, several_requests, requester_id, approver_id, file_store, source_folder_id):
        other_file = uuid4()
        file_store.add_file(FileInfo(id=other_file, name="x", folder_id=source_folder_id, lifecycle_state="ACTIVE"))
        command_service.create_delete_request(uuid4(), other_file, approver_id, "someone else")

        page = query_service.get_my_requests(requester_id)

        assert page.total_items == 5
        assert all(r.requester_id == requester_id for r in page.items)

    def test_my_requests_filtered(self, query_service, several_requests, requester_id):
        page = query_service.get_my_requests(
            requester_id,
            FileActionRequestFilter(type=FileActionType.MOVE, status=FileActionRequestStatus.PENDING),
        )
        assert page.total_items == 2

    def test_my_requests_ignores_foreign_requester_filter(self, query_service, several_requests, requester_id):
        """Test the caller id always overrides requester_id in the filter"""
        page = query_service.get_my_requests(requester_id, FileActionRequestFilter(requester_id=uuid4()))
        assert page.total_items == 5

    def test_pending_approvals(self, query_service, several_requests, approver_id):
        page = query_service.get_pending_approvals(approver_id)

        assert page.total_items == 4
        assert all(r.status == FileActionRequestStatus.PENDING for r in page.items)

    def test_pagination(self, query_service, several_requests):
        """Test page metadata for 5 items in pages of 2"""
        first = query_service.get_all_requests(pagination=Pagination(page=1, page_size=2))
        last = query_service.get_all_requests(pagination=Pagination(page=3, page_size=2))

        assert len(first.items) == 2
        assert first.total_pages == 3
        assert first.has_next is True
        assert first.has_previous is False
        assert len(last.items) == 1
        assert last.has_next is False
        assert last.has_previous is True

    def test_page_size_clamped(self, query_service, several_requests):
        page = query_service.get_all_requests(pagination=Pagination(page_size=500))
        assert page.page_size == 50

    def test_unknown_sort_field_falls_back(self):
        assert Pagination(sort_by="reason").sort_field == "requested_at"
        assert Pagination(sort_by="status").sort_field == "status"

    def test_invalid_pagination_rejected(self):
        with pytest.raises(ValueError):
            Pagination(page=0)
        with pytest.raises(ValueError):
            Pagination(sort_order="sideways")


class TestSummaryAndApprovers:

    def test_status_summary_has_every_status(self, query_service, several_requests):
        summary = query_service.get_status_summary()

        assert set(summary) == set(FileActionRequestStatus)
        assert summary[FileActionRequestStatus.PENDING] == 4
        assert summary[FileActionRequestStatus.CANCELED] == 1
        assert summary[FileActionRequestStatus.EXECUTED] == 0

    def test_eligible_approvers(self, query_service, approver_directory, approver_id):
        """Test only active users with the matching approve permission are listed"""
        move_only = uuid4()
        approver_directory.add_user(ApproverProfile(
            user_id=move_only, is_active=True, role="EDITOR", permissions=frozenset({"FILE_MOVE_APPROVE"}),
        ))
        approver_directory.add_user(ApproverProfile(
            user_id=uuid4(), is_active=False, role="MANAGER", permissions=frozenset({"FILE_DELETE_APPROVE"}),
        ))

        move_approvers = {p.user_id for p in query_service.get_eligible_approvers(FileActionType.MOVE)}
        delete_approvers = {p.user_id for p in query_service.get_eligible_approvers(FileActionType.DELETE)}

        assert move_approvers == {approver_id, move_only}
        assert delete_approvers == {approver_id}
