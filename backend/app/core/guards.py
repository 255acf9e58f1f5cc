"""
Security guards for role-based access control.

Parcel-level ownership checks live in domain.parcels.access_policy; these
guards only gate whole endpoints by role.
"""

from typing import List, Optional
from fastapi import Depends
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import InsufficientPermissionsError
from backend.app.models.enums import UserRole


def require_role(allowed_roles: List[UserRole], message: Optional[str] = None):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.get("/admin/users")
        async def list_users(current_user: dict = Depends(require_role([UserRole.ADMIN]))):
            ...

    Raises:
        InsufficientPermissionsError (403) if the user's role is not allowed
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        try:
            user_role = UserRole(current_user.get("role"))
        except ValueError:
            raise InsufficientPermissionsError("Invalid role in token")

        if user_role not in allowed_roles:
            raise InsufficientPermissionsError(
                message or f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )

        return current_user

    return role_checker


# Admin-only endpoints: parcel creation and user management
require_admin = require_role([UserRole.ADMIN], "Access denied. Admin privileges required.")
