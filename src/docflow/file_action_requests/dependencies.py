"""FastAPI dependency wiring for the file action request services.

Tests override the port providers (``get_file_management``,
``get_folder_lookup``, ``get_approver_directory``, ``get_notification_port``)
and ``get_db`` through ``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from ..config import get_settings
from ..database import get_db
from ..domain.file_action_requests import (
    ApproverDirectoryPort,
    FileActionRequestRepositoryPort,
    FileManagementPort,
    FolderLookupPort,
    NotificationPort,
)
from ..infrastructure.clients import FileServiceClient, UserDirectoryClient
from ..infrastructure.notifications import LoggingNotificationAdapter
from ..infrastructure.repositories import SqlAlchemyFileActionRequestRepository
from .command_service import FileActionRequestCommandService
from .query_service import FileActionRequestQueryService
from .validation import FileActionRequestValidationService


@lru_cache()
def _file_service_client() -> FileServiceClient:
    settings = get_settings()
    return FileServiceClient(
        base_url=settings.FILE_SERVICE_URL,
        internal_api_key=settings.INTERNAL_API_KEY,
        timeout=settings.EXTERNAL_SERVICE_TIMEOUT_SECONDS,
    )


@lru_cache()
def _user_directory_client() -> UserDirectoryClient:
    settings = get_settings()
    return UserDirectoryClient(
        base_url=settings.USER_SERVICE_URL,
        internal_api_key=settings.INTERNAL_API_KEY,
        timeout=settings.EXTERNAL_SERVICE_TIMEOUT_SECONDS,
    )


def get_file_management() -> FileManagementPort:
    return _file_service_client()


def get_folder_lookup() -> FolderLookupPort:
    return _file_service_client()


def get_approver_directory() -> ApproverDirectoryPort:
    return _user_directory_client()


def get_notification_port() -> NotificationPort:
    return LoggingNotificationAdapter()


def get_repository(db: Session = Depends(get_db)) -> FileActionRequestRepositoryPort:
    return SqlAlchemyFileActionRequestRepository(db)


def get_validation_service(
    repository: FileActionRequestRepositoryPort = Depends(get_repository),
    files: FileManagementPort = Depends(get_file_management),
    folders: FolderLookupPort = Depends(get_folder_lookup),
    approvers: ApproverDirectoryPort = Depends(get_approver_directory),
) -> FileActionRequestValidationService:
    return FileActionRequestValidationService(repository, files, folders, approvers)


def get_command_service(
    repository: FileActionRequestRepositoryPort = Depends(get_repository),
    files: FileManagementPort = Depends(get_file_management),
    notifications: NotificationPort = Depends(get_notification_port),
    validation: FileActionRequestValidationService = Depends(get_validation_service),
) -> FileActionRequestCommandService:
    return FileActionRequestCommandService(repository, files, notifications, validation)


def get_query_service(
    repository: FileActionRequestRepositoryPort = Depends(get_repository),
    approvers: ApproverDirectoryPort = Depends(get_approver_directory),
) -> FileActionRequestQueryService:
    return FileActionRequestQueryService(
        repository,
        approvers,
        max_page_size=get_settings().FILE_ACTION_REQUEST_MAX_PAGE_SIZE,
    )
