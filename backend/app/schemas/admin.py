"""
Admin API Schema Definitions.
"""

from pydantic import Field
from typing import Optional, List
from backend.app.models.enums import UserRole
from backend.app.schemas.common import CamelModel


class UserListItem(CamelModel):
    """Schema for user in list response."""
    id: int
    name: str
    email: str
    role: UserRole
    is_active: bool


class UserListResponse(CamelModel):
    users: List[UserListItem]
    total: int
    page: int
    page_size: int


class UserStatusRequest(CamelModel):
    """Schema for activating or deactivating a user."""
    reason: Optional[str] = Field(None, max_length=255, description="Reason (for audit log)")


class AdminActionResponse(CamelModel):
    success: bool
    message: str
    user_id: int
    action: str
    audit_log_id: int
