"""
FastAPI dependencies.

Authentication (JWT bearer tokens) and construction of the per-request parcel
store, access policy and lifecycle manager.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.core.exceptions import AuthenticationError, TokenRevokedError
from backend.app.core.jwt import decode_access_token
from backend.app.core.token_revocation import is_token_revoked, are_user_tokens_revoked
from backend.app.db.session import get_db
from backend.app.domain.parcels.access_policy import AccessPolicy, Actor
from backend.app.domain.parcels.lifecycle import ParcelLifecycleManager
from backend.app.services.parcel_store import ParcelStore, UserDirectory

# HTTP Bearer security scheme; missing credentials are reported as 401 below
security = HTTPBearer(auto_error=False)


async def get_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authenticated")
    return credentials.credentials


async def get_current_user(
    token: str = Depends(get_token),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    FastAPI dependency for JWT authentication.

    Checks, in order:
    1. Token signature and expiry
    2. Token not individually revoked (logout)
    3. User's tokens not revoked wholesale (account deactivated)
    4. User still exists and is active

    Returns:
        Decoded token payload (sub, user_id, role)

    Raises:
        AuthenticationError / TokenRevokedError: 401 on any failure
    """
    payload = decode_access_token(token)
    if payload is None:
        raise AuthenticationError("Could not validate credentials")

    user_id = payload.get("user_id")
    if not user_id or not payload.get("role"):
        raise AuthenticationError("Invalid token payload")

    if await is_token_revoked(token):
        raise TokenRevokedError()

    if await are_user_tokens_revoked(user_id):
        raise TokenRevokedError("User access has been revoked")

    user = await UserDirectory(db).get(user_id)
    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("Account is deactivated")

    # Role changes take effect without waiting for a new token
    payload["role"] = user.role.value
    return payload


async def get_current_actor(current_user: dict = Depends(get_current_user)) -> Actor:
    return Actor.from_token(current_user)


def get_parcel_store(db: AsyncSession = Depends(get_db)) -> ParcelStore:
    return ParcelStore(db)


def get_user_directory(db: AsyncSession = Depends(get_db)) -> UserDirectory:
    return UserDirectory(db)


def get_access_policy(store: ParcelStore = Depends(get_parcel_store)) -> AccessPolicy:
    return AccessPolicy(store)


def get_lifecycle_manager(
    store: ParcelStore = Depends(get_parcel_store),
    users: UserDirectory = Depends(get_user_directory)
) -> ParcelLifecycleManager:
    return ParcelLifecycleManager(store, users)
