"""
Persistence boundary for parcels and users.

ParcelStore and UserDirectory wrap one AsyncSession each; they are built per
request by the dependencies in core.dependencies and handed to the lifecycle
manager and access policy.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import DuplicateTrackingNumberError, DuplicateEmailError, PersistenceError
from backend.app.domain.parcels.tracking import PageInfo
from backend.app.models.parcel import Parcel
from backend.app.models.parcel_enums import ParcelStatus
from backend.app.models.user import User

logger = logging.getLogger("parcel_tracker.store")


@dataclass(frozen=True)
class ParcelPage:
    """One page of parcels plus pagination metadata."""
    items: List[Parcel]
    page_info: PageInfo

    @property
    def total(self) -> int:
        return self.page_info.total_items


class _Repository:
    """Shared session handling; driver errors surface as PersistenceError."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _execute(self, statement, operation: str):
        try:
            return await self.db.execute(statement)
        except SQLAlchemyError as exc:
            logger.error("%s %s failed: %s", type(self).__name__, operation, exc)
            raise PersistenceError(operation=operation) from exc


class ParcelStore(_Repository):
    """SQLAlchemy-backed parcel repository."""

    async def find_by_tracking_number(self, tracking_number: str) -> Optional[Parcel]:
        result = await self._execute(
            select(Parcel).where(
                Parcel.tracking_number == tracking_number.strip().upper(),
                Parcel.is_active == True
            ),
            "find_by_tracking_number"
        )
        return result.scalar_one_or_none()

    async def find_by_id(self, parcel_id: int) -> Optional[Parcel]:
        result = await self._execute(
            select(Parcel).where(Parcel.id == parcel_id, Parcel.is_active == True),
            "find_by_id"
        )
        return result.scalar_one_or_none()

    async def exists_by_tracking_number(self, tracking_number: str) -> bool:
        # Inactive parcels still hold their tracking number.
        result = await self._execute(
            select(func.count(Parcel.id)).where(Parcel.tracking_number == tracking_number.strip().upper()),
            "exists_by_tracking_number"
        )
        return result.scalar() > 0

    async def find_by_owner(
        self,
        owner_id: Optional[int],
        status: Optional[ParcelStatus] = None,
        page: int = 1,
        page_size: int = 10
    ) -> ParcelPage:
        """
        List active parcels, most recently updated first.

        owner_id=None lists every owner's parcels (admin scope).
        """
        filters = [Parcel.is_active == True]
        if owner_id is not None:
            filters.append(Parcel.owner_id == owner_id)
        if status is not None:
            filters.append(Parcel.status == status)

        count_result = await self._execute(select(func.count(Parcel.id)).where(*filters), "count_parcels")
        page_info = PageInfo.from_counts(count_result.scalar(), page, page_size)

        query = (
            select(Parcel)
            .where(*filters)
            .order_by(Parcel.updated_at.desc(), Parcel.id.desc())
            .offset(page_info.offset)
            .limit(page_size)
        )
        result = await self._execute(query, "find_by_owner")
        return ParcelPage(items=list(result.scalars().all()), page_info=page_info)

    async def save(self, parcel: Parcel) -> Parcel:
        """Insert or update a parcel together with its history."""
        self.db.add(parcel)
        # rollback expires loaded instances
        tracking_number = parcel.tracking_number
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            if "tracking_number" in str(exc.orig).lower():
                raise DuplicateTrackingNumberError(tracking_number) from exc
            logger.error("Integrity error saving parcel %s: %s", tracking_number, exc.orig)
            raise PersistenceError("Parcel could not be saved", operation="save") from exc
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error("Failed to save parcel %s: %s", tracking_number, exc)
            raise PersistenceError(operation="save") from exc

        await self.db.refresh(parcel)
        return parcel


class UserDirectory(_Repository):
    """Lookup and persistence for users."""

    async def get(self, user_id: int) -> Optional[User]:
        result = await self._execute(select(User).where(User.id == user_id), "get_user")
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self._execute(select(User).where(User.email == email.strip().lower()), "get_user_by_email")
        return result.scalar_one_or_none()

    async def exists(self, user_id: int) -> bool:
        return await self.get(user_id) is not None

    async def list_active(self, page: int = 1, page_size: int = 50):
        filters = [User.is_active == True]
        total = (await self._execute(select(func.count(User.id)).where(*filters), "count_users")).scalar()
        page_info = PageInfo.from_counts(total, page, page_size)
        result = await self._execute(
            select(User).where(*filters).order_by(User.created_at.desc(), User.id.desc())
            .offset(page_info.offset).limit(page_size),
            "list_users"
        )
        return list(result.scalars().all()), page_info

    async def save(self, user: User) -> User:
        self.db.add(user)
        email = user.email
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            if "email" in str(exc.orig).lower():
                raise DuplicateEmailError(email) from exc
            logger.error("Integrity error saving user %s: %s", email, exc.orig)
            raise PersistenceError("User could not be saved", operation="save_user") from exc
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error("Failed to save user %s: %s", email, exc)
            raise PersistenceError(operation="save_user") from exc

        await self.db.refresh(user)
        return user
