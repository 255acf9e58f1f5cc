"""
Access policy for parcels.

Owners see and update only their own parcels; admins see and update every
parcel and are the only ones who may create parcels. Reads of invisible
parcels fail as "not found" so callers cannot probe for existence.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.models.enums import UserRole
from backend.app.models.parcel_enums import ParcelStatus


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, as seen by the policy."""
    id: int
    role: UserRole
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def from_token(cls, payload: Dict[str, Any]) -> "Actor":
        return cls(id=payload["user_id"], role=UserRole(payload["role"]), email=payload.get("sub"))

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(id=user.id, role=user.role, email=user.email)


class AccessPolicy:
    """
    Gatekeeper between callers and the parcel store.

    Usage:
        policy = AccessPolicy(store)
        parcel = await policy.get_visible(actor, "TRK001234567")
    """

    def __init__(self, store):
        self.store = store

    @staticmethod
    def can_read(actor: Actor, parcel) -> bool:
        return actor.is_admin or parcel.owner_id == actor.id

    @staticmethod
    def can_write(actor: Actor, parcel) -> bool:
        """Appending a status follows the read rule: owner or admin."""
        return AccessPolicy.can_read(actor, parcel)

    @staticmethod
    def can_create(actor: Actor) -> bool:
        return actor.is_admin

    @staticmethod
    def owner_scope(actor: Actor) -> Optional[int]:
        """Owner id to filter listings by, or None for admins (no filter)."""
        return None if actor.is_admin else actor.id

    async def list_visible(
        self,
        actor: Actor,
        status: Optional[ParcelStatus] = None,
        page: int = 1,
        page_size: int = 10
    ):
        return await self.store.find_by_owner(self.owner_scope(actor), status=status, page=page, page_size=page_size)

    async def get_visible(self, actor: Actor, tracking_number: str):
        parcel = await self.store.find_by_tracking_number(tracking_number)
        if parcel is None or not self.can_read(actor, parcel):
            raise ResourceNotFoundError("Parcel", tracking_number.strip().upper())
        return parcel

    async def get_writable(self, actor: Actor, parcel_id: int):
        parcel = await self.store.find_by_id(parcel_id)
        if parcel is None or not self.can_write(actor, parcel):
            raise ResourceNotFoundError("Parcel", parcel_id)
        return parcel
