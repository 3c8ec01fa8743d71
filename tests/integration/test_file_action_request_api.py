"""Integration tests for the file action request HTTP API

Runs the FastAPI app against SQLite with the file, folder, approver and
notification ports replaced by in-memory adapters.
"""

from uuid import uuid4

import pytest

from docflow.auth.permissions import Permission
from docflow.models.audit_log import AuditLog


API = "/api/v1/file-action-requests"
ADMIN = "/api/v1/admin/file-action-requests"


@pytest.fixture
def move_body(file_id, target_folder_id, approver_id):
    return {
        "file_id": str(file_id),
        "target_folder_id": str(target_folder_id),
        "designated_approver_id": str(approver_id),
        "reason": "Archive signed contract",
    }


@pytest.fixture
def created(client, requester_headers, move_body):
    response = client.post(f"{API}/move", json=move_body, headers=requester_headers)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def created_delete(client, requester_headers, file_id, approver_id):
    response = client.post(
        f"{API}/delete",
        json={"file_id": str(file_id), "designated_approver_id": str(approver_id), "reason": "Old draft"},
        headers=requester_headers,
    )
    assert response.status_code == 201
    return response.json()


class TestAuthentication:

    def test_missing_token_rejected(self, client):
        response = client.get(f"{API}/my")
        assert response.status_code in (401, 403)

    def test_invalid_token_rejected(self, client):
        response = client.get(f"{API}/my", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    def test_create_requires_request_permission(self, client, make_headers, move_body):
        headers = make_headers(uuid4(), Permission.FILE_DELETE_REQUEST)
        response = client.post(f"{API}/move", json=move_body, headers=headers)
        assert response.status_code == 403

    def test_admin_requires_approve_permission(self, client, requester_headers):
        response = client.get(ADMIN, headers=requester_headers)
        assert response.status_code == 403


class TestCreateEndpoints:

    def test_create_move(self, created, requester_id, source_folder_id, db_session):
        """Test POST /move returns the PENDING request with its snapshot"""
        assert created["status"] == "PENDING"
        assert created["type"] == "MOVE"
        assert created["requester_id"] == str(requester_id)
        assert created["snapshot_folder_id"] == str(source_folder_id)
        assert created["snapshot_file_state"] == "ACTIVE"
        assert created["file_name"] == "contract.pdf"

        audit = db_session.query(AuditLog).filter(AuditLog.action == "FILE_ACTION_REQUEST_MOVE_CREATED").one()
        assert str(audit.entity_id) == created["id"]

    def test_create_delete(self, client, requester_headers, file_id, approver_id, notifier):
        response = client.post(
            f"{API}/delete",
            json={"file_id": str(file_id), "designated_approver_id": str(approver_id), "reason": "Old draft"},
            headers=requester_headers,
        )

        assert response.status_code == 201
        assert response.json()["target_folder_id"] is None
        assert len(notifier.new_requests) == 1

    def test_duplicate_returns_409(self, client, requester_headers, created, move_body):
        response = client.post(f"{API}/move", json=move_body, headers=requester_headers)

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "FILE_ACTION_REQUEST_DUPLICATE"
        assert body["details"]["existing_request_id"] == created["id"]

    def test_unknown_file_returns_404(self, client, requester_headers, move_body):
        move_body["file_id"] = str(uuid4())
        response = client.post(f"{API}/move", json=move_body, headers=requester_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "FILE_NOT_FOUND"

    def test_invalid_approver_returns_422(self, client, requester_headers, move_body):
        move_body["designated_approver_id"] = str(uuid4())
        response = client.post(f"{API}/move", json=move_body, headers=requester_headers)

        assert response.status_code == 422
        assert response.json()["details"]["reason"] == "User not found"

    def test_unknown_field_rejected(self, client, requester_headers, move_body):
        move_body["priority"] = "high"
        response = client.post(f"{API}/move", json=move_body, headers=requester_headers)

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"


class TestRequesterEndpoints:

    def test_my_requests(self, client, requester_headers, created):
        response = client.get(f"{API}/my", headers=requester_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["total_items"] == 1
        assert body["items"][0]["id"] == created["id"]

    def test_detail_visible_to_requester(self, client, requester_headers, created):
        response = client.get(f"{API}/{created['id']}", headers=requester_headers)
        assert response.status_code == 200

    def test_detail_hidden_from_unrelated_user(self, client, make_headers, created):
        headers = make_headers(uuid4(), Permission.FILE_MOVE_REQUEST)
        response = client.get(f"{API}/{created['id']}", headers=headers)

        assert response.status_code == 404

    def test_eligible_approvers(self, client, requester_headers, approver_id):
        response = client.get(f"{API}/approvers", params={"type": "DELETE"}, headers=requester_headers)

        assert response.status_code == 200
        assert [a["user_id"] for a in response.json()] == [str(approver_id)]

    def test_cancel_by_other_user_forbidden(self, client, make_headers, created):
        headers = make_headers(uuid4(), Permission.FILE_MOVE_REQUEST)
        response = client.post(f"{API}/{created['id']}/cancel", headers=headers)

        assert response.status_code == 403
        assert response.json()["error"] == "FILE_ACTION_REQUEST_NOT_OWNER"

    def test_cancel_twice(self, client, requester_headers, created):
        first = client.post(f"{API}/{created['id']}/cancel", headers=requester_headers)
        second = client.post(f"{API}/{created['id']}/cancel", headers=requester_headers)

        assert first.status_code == 200
        assert first.json()["status"] == "CANCELED"
        assert second.status_code == 409
        assert second.json()["error"] == "FILE_ACTION_REQUEST_NOT_CANCELLABLE"


class TestApproverEndpoints:

    def test_approve_executes_move(self, client, approver_headers, created, file_store, file_id, target_folder_id):
        """Test approve runs the move and returns EXECUTED"""
        response = client.post(
            f"{ADMIN}/{created['id']}/approve", json={"comment": "Approved"}, headers=approver_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "EXECUTED"
        assert body["decision_comment"] == "Approved"
        assert body["executed_at"] is not None
        assert file_store.files[file_id].folder_id == target_folder_id

    def test_approve_without_body(self, client, approver_headers, created):
        response = client.post(f"{ADMIN}/{created['id']}/approve", headers=approver_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "EXECUTED"

    def test_approve_stale_file_invalidated(self, client, approver_headers, created, file_store, file_id):
        """Test an out-of-band move is reported as INVALIDATED with a note, not an error"""
        file_store.relocate(file_id, uuid4())

        response = client.post(f"{ADMIN}/{created['id']}/approve", headers=approver_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "INVALIDATED"
        assert response.json()["execution_note"]
        assert file_store.calls == []

    def test_approve_execution_failure(self, client, approver_headers, created, file_store):
        file_store.fail_next("Target folder is full")

        response = client.post(f"{ADMIN}/{created['id']}/approve", headers=approver_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "FAILED"
        assert response.json()["execution_note"] == "Target folder is full"

    def test_approve_twice_conflicts(self, client, approver_headers, created):
        client.post(f"{ADMIN}/{created['id']}/approve", headers=approver_headers)
        response = client.post(f"{ADMIN}/{created['id']}/approve", headers=approver_headers)

        assert response.status_code == 409
        assert response.json()["details"]["current_status"] == "EXECUTED"

    def test_approve_unknown_request(self, client, approver_headers):
        response = client.post(f"{ADMIN}/{uuid4()}/approve", headers=approver_headers)
        assert response.status_code == 404

    def test_reject_requires_comment(self, client, approver_headers, created):
        response = client.post(f"{ADMIN}/{created['id']}/reject", json={}, headers=approver_headers)
        assert response.status_code == 422

    def test_reject_blank_comment(self, client, approver_headers, created):
        response = client.post(f"{ADMIN}/{created['id']}/reject", json={"comment": "   "}, headers=approver_headers)

        assert response.status_code == 422
        assert response.json()["error"] == "FILE_ACTION_REQUEST_COMMENT_REQUIRED"

    def test_reject(self, client, approver_headers, created, approver_id, notifier):
        response = client.post(
            f"{ADMIN}/{created['id']}/reject", json={"comment": "Keep it here"}, headers=approver_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "REJECTED"
        assert body["approver_id"] == str(approver_id)
        assert notifier.decisions[-1].comment == "Keep it here"

    def test_list_and_summary(self, client, approver_headers, created):
        listing = client.get(ADMIN, params={"status": "PENDING"}, headers=approver_headers)
        summary = client.get(f"{ADMIN}/summary", headers=approver_headers)
        mine = client.get(f"{ADMIN}/my-pending", headers=approver_headers)

        assert listing.json()["total_items"] == 1
        assert summary.json()["counts"]["PENDING"] == 1
        assert summary.json()["total"] == 1
        assert [r["id"] for r in mine.json()["items"]] == [created["id"]]

    def test_admin_detail(self, client, approver_headers, created):
        response = client.get(f"{ADMIN}/{created['id']}", headers=approver_headers)

        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

    def test_page_size_limit(self, client, approver_headers):
        response = client.get(ADMIN, params={"page_size": 10000}, headers=approver_headers)
        assert response.status_code == 422


class TestDecisionPermissions:
    """Test approving or rejecting needs the approve permission for the request's type"""

    def test_move_approver_cannot_approve_delete(self, client, make_headers, created_delete, file_store, file_id):
        headers = make_headers(uuid4(), Permission.FILE_MOVE_APPROVE)

        response = client.post(f"{ADMIN}/{created_delete['id']}/approve", headers=headers)

        assert response.status_code == 403
        body = response.json()
        assert body["error"] == "FILE_ACTION_REQUEST_PERMISSION_DENIED"
        assert body["details"]["required_permission"] == "FILE_DELETE_APPROVE"
        assert file_store.calls == []
        assert file_store.files[file_id].lifecycle_state == "ACTIVE"

        detail = client.get(f"{ADMIN}/{created_delete['id']}", headers=headers)
        assert detail.json()["status"] == "PENDING"

    def test_delete_approver_cannot_reject_move(self, client, make_headers, created):
        headers = make_headers(uuid4(), Permission.FILE_DELETE_APPROVE)

        response = client.post(
            f"{ADMIN}/{created['id']}/reject", json={"comment": "No"}, headers=headers,
        )

        assert response.status_code == 403
        assert response.json()["details"]["required_permission"] == "FILE_MOVE_APPROVE"

    def test_delete_approver_approves_delete(self, client, make_headers, created_delete):
        headers = make_headers(uuid4(), Permission.FILE_DELETE_APPROVE)

        response = client.post(f"{ADMIN}/{created_delete['id']}/approve", headers=headers)

        assert response.status_code == 200
        assert response.json()["status"] == "EXECUTED"

    def test_bulk_approve_reports_missing_permission(self, client, make_headers, created_delete, file_store):
        headers = make_headers(uuid4(), Permission.FILE_MOVE_APPROVE)

        response = client.post(
            f"{ADMIN}/bulk-approve", json={"request_ids": [created_delete["id"]]}, headers=headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["failed"] == 1
        assert body["results"][0]["error"]["error"] == "FILE_ACTION_REQUEST_PERMISSION_DENIED"
        assert file_store.calls == []


class TestBulkEndpoints:

    def test_bulk_approve_reports_each_item(self, client, approver_headers, created):
        """Test bulk approve returns 200 with per-item success and errors"""
        missing = str(uuid4())
        response = client.post(
            f"{ADMIN}/bulk-approve",
            json={"request_ids": [created["id"], missing]},
            headers=approver_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["succeeded"] == 1
        assert body["failed"] == 1
        assert body["results"][0]["request"]["status"] == "EXECUTED"
        assert body["results"][1]["request_id"] == missing
        assert body["results"][1]["error"]["error"] == "FILE_ACTION_REQUEST_NOT_FOUND"

    def test_bulk_reject(self, client, approver_headers, created):
        response = client.post(
            f"{ADMIN}/bulk-reject",
            json={"request_ids": [created["id"]], "comment": "Not this quarter"},
            headers=approver_headers,
        )

        assert response.status_code == 200
        assert response.json()["results"][0]["request"]["status"] == "REJECTED"

    def test_bulk_requires_ids(self, client, approver_headers):
        response = client.post(f"{ADMIN}/bulk-approve", json={"request_ids": []}, headers=approver_headers)
        assert response.status_code == 422


class TestObservabilityEndpoints:

    def test_metrics_exposes_workflow_counters(self, client, created):
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "docflow_file_action_requests_created_total" in response.text

    def test_request_id_echoed(self, client):
        response = client.get("/", headers={"X-Request-ID": "trace-42"})
        assert response.headers["X-Request-ID"] == "trace-42"

    def test_ready_checks_database(self, client):
        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"
