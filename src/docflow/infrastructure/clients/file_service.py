"""
HTTP adapter for the file-management service.

Implements FileManagementPort and FolderLookupPort against the internal API
of the service that owns files and folders. Lookups propagate transport and
5xx errors; execution calls never raise and report failures through
ExecutionResult instead.
"""

import logging
from typing import Any, Dict, Optional
from uuid import UUID

import httpx

from ...domain.file_action_requests import (
    ExecutionResult,
    FileInfo,
    FileManagementPort,
    FolderInfo,
    FolderLookupPort,
)

logger = logging.getLogger(__name__)


class FileServiceClient(FileManagementPort, FolderLookupPort):
    """Synchronous httpx client for /internal/files and /internal/folders."""

    def __init__(
        self,
        base_url: str,
        internal_api_key: str,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        """
        Args:
            base_url: Base URL of the file-management service
            internal_api_key: Key sent as X-Internal-Auth
            timeout: Request timeout in seconds
            client: Pre-built httpx.Client (tests pass one with a MockTransport)
        """
        self._client = client or httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
        )
        self._headers = {"X-Internal-Auth": internal_api_key}

    def close(self) -> None:
        self._client.close()

    def find_file(self, file_id: UUID) -> Optional[FileInfo]:
        data = self._get_or_none(f"/internal/files/{file_id}")
        if data is None:
            return None
        return FileInfo(
            id=UUID(str(data["id"])),
            name=data["name"],
            folder_id=UUID(str(data["folder_id"])),
            lifecycle_state=data["lifecycle_state"],
        )

    def find_folder(self, folder_id: UUID) -> Optional[FolderInfo]:
        data = self._get_or_none(f"/internal/folders/{folder_id}")
        if data is None:
            return None
        return FolderInfo(
            id=UUID(str(data["id"])),
            is_active=bool(data.get("is_active", False)),
            name=data.get("name"),
        )

    def move_file(self, file_id: UUID, target_folder_id: UUID, actor_id: UUID) -> ExecutionResult:
        return self._execute(
            "POST",
            f"/internal/files/{file_id}/move",
            actor_id,
            json={"target_folder_id": str(target_folder_id)},
        )

    def delete_file(self, file_id: UUID, actor_id: UUID) -> ExecutionResult:
        return self._execute("DELETE", f"/internal/files/{file_id}", actor_id)

    def _get_or_none(self, path: str) -> Optional[Dict[str, Any]]:
        logger.debug(f"GET {path}")
        response = self._client.get(path, headers=self._headers)
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.json()

    def _execute(
        self,
        method: str,
        path: str,
        actor_id: UUID,
        json: Optional[Dict[str, Any]] = None,
    ) -> ExecutionResult:
        headers = dict(self._headers)
        headers["X-Actor-Id"] = str(actor_id)

        try:
            response = self._client.request(method, path, json=json, headers=headers)
        except httpx.RequestError as e:
            logger.error(f"File service unreachable for {method} {path}: {e}")
            return ExecutionResult.failed(f"File service unreachable: {e}")

        if response.is_success:
            return ExecutionResult.ok()

        detail = _error_detail(response)
        logger.warning(
            f"File service rejected {method} {path}: {response.status_code} {detail}"
        )
        return ExecutionResult.failed(detail)


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("message")
        if detail:
            return str(detail)
    return f"HTTP {response.status_code}"
