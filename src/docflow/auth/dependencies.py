"""FastAPI dependencies for authentication and authorization.

Usage:
    @router.post("/move")
    def create_move(user: CurrentUser = Depends(require_permission(Permission.FILE_MOVE_REQUEST))):
        ...

    @router.get("/summary")
    def summary(user: CurrentUser = Depends(require_any_permission(*APPROVER_PERMISSIONS))):
        ...
"""

from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Optional
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from .jwt import decode_token
from .permissions import Permission, has_permission


# HTTP Bearer token security scheme
security = HTTPBearer()

APPROVER_PERMISSIONS = (Permission.FILE_MOVE_APPROVE, Permission.FILE_DELETE_APPROVE)


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated caller, built from token claims."""
    id: UUID
    permissions: FrozenSet[str] = field(default_factory=frozenset)
    email: Optional[str] = None

    def has(self, permission: Permission) -> bool:
        return has_permission(self.permissions, permission)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """Extract and validate the bearer token.

    Raises:
        HTTPException 401: If token is missing, invalid, expired, or has no subject
    """
    token = credentials.credentials

    try:
        payload = decode_token(token)

        user_id_str = payload.get("sub")
        if not user_id_str:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token: missing user ID claim",
                headers={"WWW-Authenticate": "Bearer"},
            )

        user_id = UUID(user_id_str)

    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token claims: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return CurrentUser(
        id=user_id,
        permissions=frozenset(payload.get("permissions") or []),
        email=payload.get("email"),
    )


def require_permission(required: Permission) -> Callable:
    """Create a dependency that requires a single permission.

    Raises:
        HTTPException 403: If the caller lacks the permission
    """

    def permission_dependency(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not current_user.has(required):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required permission: {required.value}",
            )
        return current_user

    return permission_dependency


def require_any_permission(*permissions: Permission) -> Callable:
    """Create a dependency that requires at least one of permissions."""

    def permission_dependency(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not any(current_user.has(p) for p in permissions):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=(
                    "Insufficient permissions. Required one of: "
                    f"{', '.join(p.value for p in permissions)}"
                ),
            )
        return current_user

    return permission_dependency


def get_current_approver(
    current_user: CurrentUser = Depends(require_any_permission(*APPROVER_PERMISSIONS)),
) -> CurrentUser:
    """Convenience dependency for approver endpoints."""
    return current_user
