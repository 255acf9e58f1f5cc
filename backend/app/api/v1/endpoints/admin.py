"""
Admin API Endpoints.

User management for administrators, with audit logging.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.schemas.admin import UserListResponse, UserListItem, UserStatusRequest, AdminActionResponse
from backend.app.core.dependencies import get_user_directory
from backend.app.core.exceptions import InsufficientPermissionsError, ResourceNotFoundError
from backend.app.core.guards import require_admin
from backend.app.core.token_revocation import revoke_all_user_tokens, clear_user_token_revocation
from backend.app.services.audit import log_event, AuditAction
from backend.app.services.parcel_store import UserDirectory

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/users", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    admin: dict = Depends(require_admin),
    users: UserDirectory = Depends(get_user_directory)
):
    """
    List active users (admin-only).

    Used when assigning a new parcel to an owner.
    """
    items, page_info = await users.list_active(page=page, page_size=page_size)

    return UserListResponse(
        users=[UserListItem.model_validate(user) for user in items],
        total=page_info.total_items,
        page=page,
        page_size=page_size
    )


async def _set_active(
    user_id: int,
    active: bool,
    request: Optional[UserStatusRequest],
    admin: dict,
    users: UserDirectory,
    db: AsyncSession
) -> AdminActionResponse:
    target_user = await users.get(user_id)
    if not target_user:
        raise ResourceNotFoundError("User", user_id)

    if target_user.id == admin["user_id"]:
        raise InsufficientPermissionsError("Admins cannot change their own account status")

    target_user.is_active = active
    await users.save(target_user)

    if active:
        await clear_user_token_revocation(user_id)
        action = AuditAction.USER_ACTIVATED
    else:
        await revoke_all_user_tokens(user_id)
        action = AuditAction.USER_DEACTIVATED

    audit_log = await log_event(
        db=db,
        action=action,
        actor_id=admin["user_id"],
        actor_email=admin.get("sub"),
        target_type="user",
        target_id=user_id,
        metadata={"reason": request.reason if request else None, "email": target_user.email}
    )

    return AdminActionResponse(
        success=True,
        message=f"User {target_user.email} {'activated' if active else 'deactivated'}",
        user_id=user_id,
        action=action,
        audit_log_id=audit_log.id
    )


@router.post("/users/{user_id}/deactivate", response_model=AdminActionResponse)
async def deactivate_user(
    user_id: int,
    request: Optional[UserStatusRequest] = None,
    admin: dict = Depends(require_admin),
    users: UserDirectory = Depends(get_user_directory),
    db: AsyncSession = Depends(get_db)
):
    """
    Deactivate a user and revoke all of their tokens (admin-only).

    Their parcels stay in place; they just can no longer sign in.
    """
    return await _set_active(user_id, False, request, admin, users, db)


@router.post("/users/{user_id}/activate", response_model=AdminActionResponse)
async def activate_user(
    user_id: int,
    request: Optional[UserStatusRequest] = None,
    admin: dict = Depends(require_admin),
    users: UserDirectory = Depends(get_user_directory),
    db: AsyncSession = Depends(get_db)
):
    """Reactivate a previously deactivated user (admin-only)."""
    return await _set_active(user_id, True, request, admin, users, db)
