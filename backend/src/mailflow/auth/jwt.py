"""JWT verification for identity provider tokens

MailFlow does not manage sessions itself. The identity provider issues HS256
tokens signed with a shared secret; the API verifies them and maps the
subject to a user profile.

Token Claims:
- sub (Subject): identity provider user id (user_profiles.user_id, UUID string)
- iat (Issued At): Unix timestamp
- exp (Expiration): Unix timestamp
- email: optional, informational only

Organization and role are NOT trusted from the token; they are read from the
user profile on every request so role changes take effect immediately.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

import jwt

from ..config import get_settings


def create_access_token(
    user_id: UUID,
    email: Optional[str] = None,
    expires_in_minutes: Optional[int] = None,
) -> str:
    """Mint a token the way the identity provider does.

    Used by development scripts and tests; production tokens come from the
    identity provider.
    """
    settings = get_settings()
    expiry_minutes = expires_in_minutes if expires_in_minutes is not None else settings.JWT_EXPIRY_MINUTES

    now = datetime.now(timezone.utc)
    expiration = now + timedelta(minutes=expiry_minutes)

    payload = {
        'sub': str(user_id),
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
    return jwt.decode(
        token,
        settings.JWT_SECRET,
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["sub", "exp"]},
    )


def get_subject(payload: Dict[str, Any]) -> UUID:
    """Extract the identity provider user id from a decoded payload.

    Raises:
        ValueError: If the subject claim is missing or not a UUID
    """
    subject = payload.get("sub")
    if not subject:
        raise ValueError("missing subject claim")
    return UUID(str(subject))
