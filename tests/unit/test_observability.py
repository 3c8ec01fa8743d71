"""Unit tests for structured logging and error serialization"""

import json
import logging
from uuid import uuid4

from docflow.domain.file_action_requests import (
    DecisionPermissionDeniedError,
    DuplicateRequestError,
    FileActionRequestStatus,
    RequestNotApprovableError,
)
from docflow.file_action_requests.http_errors import status_code_for
from docflow.observability.health import (
    ComponentHealth,
    HealthStatus,
    check_database_health,
    get_overall_health,
    timed_check,
)
from docflow.observability.logging_config import JSONFormatter, RequestIDFilter
from docflow.observability.request_id import MAX_REQUEST_ID_LENGTH, accept_request_id, set_request_id


class TestJSONFormatter:

    def test_includes_request_id_and_extras(self):
        """Test request id and workflow extras appear in the JSON line"""
        set_request_id("req-123")
        request_id = uuid4()
        record = logging.LogRecord("docflow", logging.INFO, __file__, 1, "approved", None, None)
        record.file_action_request_id = str(request_id)
        record.status_code = 200
        RequestIDFilter().filter(record)

        data = json.loads(JSONFormatter().format(record))

        assert data["request_id"] == "req-123"
        assert data["message"] == "approved"
        assert data["file_action_request_id"] == str(request_id)
        assert data["status_code"] == 200


class TestErrorMapping:

    def test_not_approvable_is_conflict(self):
        error = RequestNotApprovableError(uuid4(), FileActionRequestStatus.REJECTED, conflict=True)

        assert status_code_for(error) == 409
        body = error.to_dict()
        assert body["error"] == "FILE_ACTION_REQUEST_NOT_APPROVABLE"
        assert body["details"]["current_status"] == "REJECTED"
        assert body["details"]["conflict"] is True

    def test_details_are_json_friendly(self):
        file_id = uuid4()
        body = DuplicateRequestError(file_id).to_dict()

        assert body["details"] == {"file_id": str(file_id)}
        json.dumps(body)

    def test_permission_denied_is_forbidden(self):
        error = DecisionPermissionDeniedError(uuid4(), uuid4(), "FILE_DELETE_APPROVE")

        assert status_code_for(error) == 403
        assert error.to_dict()["details"]["required_permission"] == "FILE_DELETE_APPROVE"


class TestRequestIDs:

    def test_caller_id_reused(self):
        assert accept_request_id("trace-42") == "trace-42"

    def test_missing_oversized_or_unprintable_replaced(self):
        for value in (None, "", "x" * (MAX_REQUEST_ID_LENGTH + 1), "bad\nid"):
            replacement = accept_request_id(value)
            assert replacement != value
            assert len(replacement) == 36


class TestHealth:

    def test_failed_check_reports_unhealthy(self):
        def down():
            raise ConnectionError("refused")

        result = timed_check("Redis", down)

        assert result.status == HealthStatus.UNHEALTHY
        assert "refused" in result.message
        assert result.to_dict()["status"] == "unhealthy"

    def test_database_check(self, db_session):
        result = check_database_health(db_session)

        assert result.status == HealthStatus.HEALTHY
        assert result.latency_ms is not None

    def test_overall_status_takes_the_worst(self):
        healthy = ComponentHealth(HealthStatus.HEALTHY)
        degraded = ComponentHealth(HealthStatus.DEGRADED)
        down = ComponentHealth(HealthStatus.UNHEALTHY)

        assert get_overall_health({"a": healthy, "b": healthy}) == HealthStatus.HEALTHY
        assert get_overall_health({"a": healthy, "b": degraded}) == HealthStatus.DEGRADED
        assert get_overall_health({"a": degraded, "b": down}) == HealthStatus.UNHEALTHY
