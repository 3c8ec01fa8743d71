"""Precondition checks run before a file action request is created.

Each check either returns what it looked up or raises a
FileActionRequestError. The duplicate check is advisory only: two concurrent
creations can both pass it, and the partial unique index on
``file_action_request`` settles the race (see FileActionRequestCommandService).
"""

import logging
from uuid import UUID

from ..auth.permissions import required_approval_permission
from ..domain.file_action_requests import (
    ApproverDirectoryPort,
    ApproverProfile,
    DuplicateRequestError,
    FileActionRequestRepositoryPort,
    FileActionType,
    FileInfo,
    FileManagementPort,
    FolderInfo,
    FolderLookupPort,
    InvalidApproverError,
    TargetFileNotFoundError,
    TargetFolderNotFoundError,
)

logger = logging.getLogger(__name__)


class FileActionRequestValidationService:
    """Stateless validation against the file, folder, approver and request ports."""

    def __init__(
        self,
        repository: FileActionRequestRepositoryPort,
        files: FileManagementPort,
        folders: FolderLookupPort,
        approvers: ApproverDirectoryPort,
    ):
        self.repository = repository
        self.files = files
        self.folders = folders
        self.approvers = approvers

    def validate_file(self, file_id: UUID) -> FileInfo:
        """File must exist and be ACTIVE.

        Raises:
            TargetFileNotFoundError: If the file is missing, trashed or deleted
        """
        file = self.files.find_file(file_id)
        if file is None or not file.is_active:
            raise TargetFileNotFoundError(file_id)
        return file

    def validate_target_folder(self, folder_id: UUID) -> FolderInfo:
        """Destination of a MOVE must exist and be active."""
        folder = self.folders.find_folder(folder_id)
        if folder is None or not folder.is_active:
            raise TargetFolderNotFoundError(folder_id)
        return folder

    def check_duplicate(self, file_id: UUID) -> None:
        """Fail if a PENDING request already references file_id.

        Raises:
            DuplicateRequestError: Carries the existing request's id,
                requester, type, approver, file name and target folder
        """
        existing = self.repository.find_pending_by_file_id(file_id)
        if existing is not None:
            raise DuplicateRequestError(file_id, existing)

    def validate_approver(self, approver_id: UUID, action_type: FileActionType) -> ApproverProfile:
        """Approver must be active and hold the approve permission for action_type.

        Raises:
            InvalidApproverError: With a reason and, when relevant, the
                missing permission
        """
        required = required_approval_permission(action_type)
        profile = self.approvers.find_user_with_authorization_profile(approver_id)

        if profile is None:
            raise InvalidApproverError(approver_id, "User not found")

        if not profile.is_active:
            raise InvalidApproverError(approver_id, "User is inactive")

        if not profile.has_authorization_profile:
            raise InvalidApproverError(approver_id, "User has no authorization profile")

        if required.value not in profile.permissions:
            logger.info(
                f"Approver {approver_id} lacks {required.value}",
                extra={"user_id": str(approver_id)},
            )
            raise InvalidApproverError(
                approver_id,
                f"User lacks the {required.value} permission",
                required_permission=required.value,
            )

        return profile
