"""
Authentication API endpoints.

Register, login, logout, profile and password management.
"""

from datetime import datetime, timezone
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.models.enums import UserRole
from backend.app.schemas.auth import (
    UserRegister, UserLogin, TokenResponse, UserResponse, ProfileUpdate, PasswordChange
)
from backend.app.schemas.common import MessageResponse
from backend.app.core.exceptions import AuthenticationError, DuplicateEmailError, ResourceNotFoundError
from backend.app.core.security import get_password_hash, verify_password
from backend.app.core.jwt import create_access_token, build_token_payload
from backend.app.core.dependencies import get_current_user, get_token, get_user_directory
from backend.app.core.token_revocation import revoke_token
from backend.app.services.audit import log_auth_event, AuditAction
from backend.app.services.parcel_store import UserDirectory

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _client_ip(request: Request):
    return request.client.host if request.client else None


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    request: Request,
    users: UserDirectory = Depends(get_user_directory),
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new parcel owner.

    Admin accounts cannot be created through the API.
    """
    if await users.get_by_email(user_data.email):
        raise DuplicateEmailError(user_data.email)

    new_user = await users.save(User(
        email=user_data.email,
        name=user_data.name,
        phone=user_data.phone,
        hashed_password=get_password_hash(user_data.password),
        role=UserRole.OWNER,
        is_active=True
    ))

    await log_auth_event(
        db=db,
        action=AuditAction.USER_REGISTERED,
        user_id=new_user.id,
        email=new_user.email,
        ip_address=_client_ip(request)
    )

    return TokenResponse(
        access_token=create_access_token(build_token_payload(new_user)),
        user=UserResponse.model_validate(new_user)
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    request: Request,
    users: UserDirectory = Depends(get_user_directory),
    db: AsyncSession = Depends(get_db)
):
    """
    Login with email and password and return a JWT token.

    Failed attempts are written to the audit log.
    """
    user = await users.get_by_email(credentials.email)

    if not user or not verify_password(credentials.password, user.hashed_password):
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=user.id if user else None,
            email=credentials.email,
            ip_address=_client_ip(request),
            metadata={"reason": "Invalid password" if user else "User not found"}
        )
        raise AuthenticationError("Invalid credentials")

    if not user.is_active:
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=user.id,
            email=user.email,
            ip_address=_client_ip(request),
            metadata={"reason": "Account is deactivated"}
        )
        raise AuthenticationError("Account is deactivated")

    user.last_login_at = datetime.now(timezone.utc)
    user = await users.save(user)

    await log_auth_event(
        db=db,
        action=AuditAction.LOGIN_SUCCESS,
        user_id=user.id,
        email=user.email,
        ip_address=_client_ip(request)
    )

    return TokenResponse(
        access_token=create_access_token(build_token_payload(user)),
        user=UserResponse.model_validate(user)
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    token: str = Depends(get_token),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Revoke the token used for this request."""
    await revoke_token(token, current_user["user_id"])
    await log_auth_event(
        db=db,
        action=AuditAction.LOGOUT,
        user_id=current_user["user_id"],
        email=current_user.get("sub")
    )
    return MessageResponse(message="Logged out successfully")


async def _load_current(current_user: dict, users: UserDirectory) -> User:
    user = await users.get(current_user["user_id"])
    if not user:
        raise ResourceNotFoundError("User", current_user["user_id"])
    return user


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    users: UserDirectory = Depends(get_user_directory)
):
    """Get the authenticated user's profile."""
    return UserResponse.model_validate(await _load_current(current_user, users))


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    profile: ProfileUpdate,
    current_user: dict = Depends(get_current_user),
    users: UserDirectory = Depends(get_user_directory)
):
    """Update name and/or phone of the authenticated user."""
    user = await _load_current(current_user, users)

    for field, value in profile.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(user, field, value)

    user = await users.save(user)
    return UserResponse.model_validate(user)


@router.put("/password", response_model=MessageResponse)
async def change_password(
    passwords: PasswordChange,
    current_user: dict = Depends(get_current_user),
    users: UserDirectory = Depends(get_user_directory),
    db: AsyncSession = Depends(get_db)
):
    """Change the authenticated user's password."""
    user = await _load_current(current_user, users)

    if not verify_password(passwords.current_password, user.hashed_password):
        raise AuthenticationError("Current password is incorrect")

    user.hashed_password = get_password_hash(passwords.new_password)
    await users.save(user)

    await log_auth_event(
        db=db,
        action=AuditAction.PASSWORD_CHANGED,
        user_id=user.id,
        email=user.email
    )
    return MessageResponse(message="Password changed successfully")
