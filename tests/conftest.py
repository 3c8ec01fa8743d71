"""Pytest fixtures for the file action request workflow.

Provides:
- In-memory adapters (repository, file store, approver directory, notifier)
- Validation / command / query services wired to them
- A SQLite in-memory engine and session for repository and API tests
- A FastAPI TestClient with ports and database overridden
- JWT helpers for authenticated requests

Usage:
    def test_approve(command_service, pending_move_request, approver_id):
        result = command_service.approve_request(pending_move_request.id, approver_id)
        assert result.status == FileActionRequestStatus.EXECUTED
"""

import os

# Set environment variables BEFORE any imports to ensure they take effect
if "DATABASE_URL" not in os.environ:
    os.environ["DATABASE_URL"] = "sqlite://"

if "JWT_SECRET" not in os.environ:
    os.environ["JWT_SECRET"] = "test-jwt-secret-key-256-bits-minimum-length-required-for-security"

os.environ.setdefault("LOG_JSON", "false")

from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from docflow.auth.jwt import create_access_token
from docflow.auth.permissions import Permission
from docflow.domain.file_action_requests import (
    ApproverProfile,
    FileActionRequest,
    FileInfo,
    FolderInfo,
)
from docflow.file_action_requests.command_service import FileActionRequestCommandService
from docflow.file_action_requests.query_service import FileActionRequestQueryService
from docflow.file_action_requests.validation import FileActionRequestValidationService
from docflow.infrastructure.in_memory import (
    InMemoryApproverDirectory,
    InMemoryFileActionRequestRepository,
    InMemoryFileStore,
    RecordingNotificationPort,
)
from docflow.models import Base


ALL_APPROVE = frozenset({Permission.FILE_MOVE_APPROVE.value, Permission.FILE_DELETE_APPROVE.value})


# =============================================================================
# Identities
# =============================================================================

@pytest.fixture
def requester_id() -> UUID:
    return uuid4()


@pytest.fixture
def approver_id() -> UUID:
    return uuid4()


@pytest.fixture
def source_folder_id() -> UUID:
    return uuid4()


@pytest.fixture
def target_folder_id() -> UUID:
    return uuid4()


@pytest.fixture
def file_id() -> UUID:
    return uuid4()


# =============================================================================
# In-memory adapters
# =============================================================================

@pytest.fixture
def file_store(file_id, source_folder_id, target_folder_id) -> InMemoryFileStore:
    """File contract.pdf ACTIVE in the source folder; both folders active."""
    store = InMemoryFileStore()
    store.add_folder(FolderInfo(id=source_folder_id, is_active=True, name="Inbox"))
    store.add_folder(FolderInfo(id=target_folder_id, is_active=True, name="Archive"))
    store.add_file(FileInfo(
        id=file_id,
        name="contract.pdf",
        folder_id=source_folder_id,
        lifecycle_state="ACTIVE",
    ))
    return store


@pytest.fixture
def approver_directory(approver_id) -> InMemoryApproverDirectory:
    directory = InMemoryApproverDirectory()
    directory.add_user(ApproverProfile(
        user_id=approver_id,
        is_active=True,
        role="MANAGER",
        permissions=ALL_APPROVE,
        name="Approver",
        email="approver@example.com",
    ))
    return directory


@pytest.fixture
def repository() -> InMemoryFileActionRequestRepository:
    return InMemoryFileActionRequestRepository()


@pytest.fixture
def notifier() -> RecordingNotificationPort:
    return RecordingNotificationPort()


# =============================================================================
# Services
# =============================================================================

@pytest.fixture
def validation_service(repository, file_store, approver_directory) -> FileActionRequestValidationService:
    return FileActionRequestValidationService(repository, file_store, file_store, approver_directory)


@pytest.fixture
def command_service(repository, file_store, notifier, validation_service) -> FileActionRequestCommandService:
    return FileActionRequestCommandService(repository, file_store, notifier, validation_service)


@pytest.fixture
def query_service(repository, approver_directory) -> FileActionRequestQueryService:
    return FileActionRequestQueryService(repository, approver_directory, max_page_size=50)


@pytest.fixture
def pending_move_request(
    command_service, requester_id, approver_id, file_id, target_folder_id
) -> FileActionRequest:
    return command_service.create_move_request(
        requester_id=requester_id,
        file_id=file_id,
        target_folder_id=target_folder_id,
        designated_approver_id=approver_id,
        reason="Archive signed contract",
    )


@pytest.fixture
def pending_delete_request(command_service, requester_id, approver_id, file_id) -> FileActionRequest:
    return command_service.create_delete_request(
        requester_id=requester_id,
        file_id=file_id,
        designated_approver_id=approver_id,
        reason="Duplicate upload",
    )


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
def db_engine():
    """SQLite in-memory engine shared across threads (TestClient)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# API
# =============================================================================

@pytest.fixture
def client(db_session, file_store, approver_directory, notifier):
    """TestClient with database and external ports overridden."""
    from fastapi.testclient import TestClient

    from docflow.database import get_db
    from docflow.file_action_requests import dependencies
    from docflow.main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[dependencies.get_file_management] = lambda: file_store
    app.dependency_overrides[dependencies.get_folder_lookup] = lambda: file_store
    app.dependency_overrides[dependencies.get_approver_directory] = lambda: approver_directory
    app.dependency_overrides[dependencies.get_notification_port] = lambda: notifier

    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth_headers(user_id: UUID, *permissions: Permission) -> dict:
    token = create_access_token(user_id=user_id, permissions=[p.value for p in permissions])
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_headers():
    """Factory: make_headers(user_id, *permissions) -> Authorization header."""
    return auth_headers


@pytest.fixture
def requester_headers(requester_id) -> dict:
    return auth_headers(requester_id, Permission.FILE_MOVE_REQUEST, Permission.FILE_DELETE_REQUEST)


@pytest.fixture
def approver_headers(approver_id) -> dict:
    return auth_headers(approver_id, Permission.FILE_MOVE_APPROVE, Permission.FILE_DELETE_APPROVE)
