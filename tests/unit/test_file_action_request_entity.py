"""Unit tests for the FileActionRequest aggregate"""

from uuid import uuid4

import pytest

from docflow.domain.file_action_requests import (
    FileActionRequest,
    FileActionRequestStatus,
    FileActionType,
    StateTransitionError,
)


def make_request(action_type=FileActionType.MOVE, **overrides) -> FileActionRequest:
    folder_id = uuid4()
    values = dict(
        action_type=action_type,
        file_id=uuid4(),
        file_name="budget.xlsx",
        current_folder_id=folder_id,
        current_file_state="ACTIVE",
        requester_id=uuid4(),
        designated_approver_id=uuid4(),
        reason="Quarter closed",
        target_folder_id=uuid4() if action_type == FileActionType.MOVE else None,
    )
    values.update(overrides)
    return FileActionRequest.create(**values)


class TestFileActionRequestCreate:
    """Test request creation and snapshot"""

    def test_create_move_request(self):
        """Test a new MOVE request is PENDING with snapshot from current state"""
        request = make_request()

        assert request.status == FileActionRequestStatus.PENDING
        assert request.type == FileActionType.MOVE
        assert request.snapshot_folder_id == request.source_folder_id
        assert request.snapshot_file_state == "ACTIVE"
        assert request.requested_at.tzinfo is not None
        assert request.approver_id is None
        assert request.decided_at is None

    def test_create_delete_request_has_no_target(self):
        request = make_request(FileActionType.DELETE)

        assert request.type == FileActionType.DELETE
        assert request.target_folder_id is None

    def test_move_without_target_rejected(self):
        """Test MOVE requires a target folder"""
        with pytest.raises(ValueError):
            make_request(FileActionType.MOVE, target_folder_id=None)

    def test_delete_with_target_rejected(self):
        with pytest.raises(ValueError):
            make_request(FileActionType.DELETE, target_folder_id=uuid4())

    def test_snapshot_is_immutable(self):
        """Test snapshot fields and requested_at cannot be reassigned"""
        request = make_request()

        with pytest.raises(AttributeError):
            request.snapshot_folder_id = uuid4()
        with pytest.raises(AttributeError):
            request.snapshot_file_state = "TRASHED"
        with pytest.raises(AttributeError):
            request.requested_at = request.requested_at

    def test_ids_are_unique(self):
        assert make_request().id != make_request().id


class TestFileActionRequestTransitions:
    """Test decision and execution transitions"""

    def test_cancel(self):
        request = make_request()
        request.cancel()

        assert request.status == FileActionRequestStatus.CANCELED
        assert request.is_terminal() is True
        assert request.updated_at is not None

    def test_reject_records_decision(self):
        request = make_request()
        approver_id = uuid4()
        request.reject(approver_id, "Wrong folder")

        assert request.status == FileActionRequestStatus.REJECTED
        assert request.approver_id == approver_id
        assert request.decision_comment == "Wrong folder"
        assert request.decided_at is not None

    def test_approve_then_execute(self):
        """Test PENDING → APPROVED → EXECUTED sets executed_at"""
        request = make_request()
        request.approve(uuid4(), "ok")
        assert request.status == FileActionRequestStatus.APPROVED
        assert request.is_decidable() is False

        request.mark_executed()

        assert request.status == FileActionRequestStatus.EXECUTED
        assert request.executed_at is not None
        assert request.execution_note is None

    def test_mark_failed_records_note(self):
        request = make_request()
        request.approve(uuid4())
        request.mark_failed("Storage quota exceeded")

        assert request.status == FileActionRequestStatus.FAILED
        assert request.execution_note == "Storage quota exceeded"
        assert request.executed_at is None

    def test_cannot_execute_pending(self):
        """Test execution outcomes require APPROVED"""
        request = make_request()
        with pytest.raises(StateTransitionError):
            request.mark_executed()

    def test_cannot_decide_twice(self):
        request = make_request()
        request.reject(uuid4(), "no")
        with pytest.raises(StateTransitionError):
            request.approve(uuid4())
        with pytest.raises(StateTransitionError):
            request.cancel()

    def test_is_owned_by(self):
        request = make_request()
        assert request.is_owned_by(request.requester_id) is True
        assert request.is_owned_by(uuid4()) is False


class TestValidateStateForExecution:
    """Test staleness detection against the creation snapshot"""

    def test_unchanged_file_is_valid(self):
        request = make_request()
        request.approve(uuid4())

        assert request.validate_state_for_execution(request.snapshot_folder_id, "ACTIVE") is True
        assert request.status == FileActionRequestStatus.APPROVED

    def test_moved_file_invalidates(self):
        """Test a folder change invalidates with both locations in the note"""
        request = make_request()
        request.approve(uuid4())
        other_folder = uuid4()

        assert request.validate_state_for_execution(other_folder, "ACTIVE") is False
        assert request.status == FileActionRequestStatus.INVALIDATED
        assert str(request.snapshot_folder_id) in request.execution_note
        assert str(other_folder) in request.execution_note

    def test_state_change_invalidates(self):
        request = make_request(FileActionType.DELETE)
        request.approve(uuid4())

        assert request.validate_state_for_execution(request.snapshot_folder_id, "TRASHED") is False
        assert request.status == FileActionRequestStatus.INVALIDATED
        assert "TRASHED" in request.execution_note
