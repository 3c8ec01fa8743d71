"""JWT token generation and validation

Tokens are issued by the identity provider; this service only validates
them. ``create_access_token`` exists for local tooling and tests.

JWT Token Claims Structure:
===========================

- sub: User ID as UUID string
- permissions: List of permission names granted by the user's role
  Example: ["FILE_MOVE_REQUEST", "FILE_MOVE_APPROVE"]
- email: Optional, used in logs only
- iat / exp: Issued-at and expiration Unix timestamps

Security Properties:
- Algorithm: JWT_ALGORITHM (HS256 by default)
- Secret: JWT_SECRET setting
- Stateless validation (no database lookup)
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional
from uuid import UUID

import jwt

from ..config import get_settings


def create_access_token(
    user_id: UUID,
    permissions: Iterable[str],
    email: Optional[str] = None,
    expires_in_minutes: Optional[int] = None,
) -> str:
    """Create a signed access token.

    Args:
        user_id: User's UUID
        permissions: Permission names to embed
        email: Optional email claim
        expires_in_minutes: Override JWT_EXPIRY_MINUTES (negative values
            produce an already expired token)

    Returns:
        str: Signed JWT token
    """
    settings = get_settings()
    if expires_in_minutes is None:
        expires_in_minutes = settings.JWT_EXPIRY_MINUTES

    now = datetime.now(timezone.utc)
    expiration = now + timedelta(minutes=expires_in_minutes)

    payload = {
        'sub': str(user_id),
        'permissions': [getattr(p, "value", p) for p in permissions],
        'iat': int(now.timestamp()),
        'exp': int(expiration.timestamp()),
    }
    if email:
        payload['email'] = email

    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or tampered
    """
    settings = get_settings()

    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise jwt.ExpiredSignatureError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise jwt.InvalidTokenError(f"Invalid token: {str(e)}")
