"""
JWT token utilities for authentication.

Tokens carry the user's email (`sub`), id and role so that most requests can
be authorized without reloading the user.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from backend.app.core.config import settings


def build_token_payload(user) -> Dict[str, Any]:
    """Claims identifying a user: sub (email), user_id and role."""
    return {
        "sub": user.email,
        "user_id": user.id,
        "role": user.role.value,
    }


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT access token.

    Args:
        data: Claims to encode (see build_token_payload)
        expires_delta: Optional custom lifetime, defaults to the configured one

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)

    to_encode = dict(data)
    to_encode.update({
        "iat": now,
        "exp": now + lifetime,
        "jti": uuid.uuid4().hex,
    })
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate a JWT access token.

    Returns the claims if the signature and expiry are valid, None otherwise.
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
