"""HTTP adapter for the user-directory service (ApproverDirectoryPort)."""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

import httpx

from ...domain.file_action_requests import ApproverDirectoryPort, ApproverProfile

logger = logging.getLogger(__name__)


class UserDirectoryClient(ApproverDirectoryPort):
    """Reads user identities and authorization profiles over httpx."""

    def __init__(
        self,
        base_url: str,
        internal_api_key: str,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        self._client = client or httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
        )
        self._headers = {"X-Internal-Auth": internal_api_key}

    def close(self) -> None:
        self._client.close()

    def find_user_with_authorization_profile(self, user_id: UUID) -> Optional[ApproverProfile]:
        response = self._client.get(
            f"/internal/users/{user_id}/authorization-profile",
            headers=self._headers,
        )
        if response.status_code == 404:
            logger.info(f"User {user_id} not found in user directory")
            return None
        response.raise_for_status()
        return _to_profile(response.json())

    def find_users_with_permission(self, permission: str) -> List[ApproverProfile]:
        response = self._client.get(
            "/internal/users",
            params={"permission": permission},
            headers=self._headers,
        )
        response.raise_for_status()
        return [_to_profile(item) for item in response.json()]


def _to_profile(data: Dict[str, Any]) -> ApproverProfile:
    return ApproverProfile(
        user_id=UUID(str(data["id"])),
        is_active=bool(data.get("is_active", False)),
        role=data.get("role"),
        permissions=frozenset(data.get("permissions") or []),
        name=data.get("name"),
        email=data.get("email"),
    )
