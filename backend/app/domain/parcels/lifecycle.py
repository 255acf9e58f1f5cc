"""
Parcel Lifecycle Manager.

Owns the history invariants:
- a parcel is created with exactly one history entry;
- history only grows, by appending entries stamped with the server clock;
- parcel.status is re-derived from the history after every mutation.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from backend.app.core.exceptions import (
    DuplicateTrackingNumberError,
    InsufficientPermissionsError,
    ResourceNotFoundError,
    ValidationError,
)
from backend.app.domain.parcels.access_policy import AccessPolicy, Actor
from backend.app.domain.parcels.tracking import HistoryRecord, Location, derive_status, current_location, format_tracking_number
from backend.app.domain.parcels.validation import validate_new_parcel, validate_status_update
from backend.app.models.parcel import Parcel, ParcelHistoryEntry
from backend.app.models.parcel_enums import ParcelStatus

logger = logging.getLogger("parcel_tracker.lifecycle")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ParcelLifecycleManager:
    """
    Creates parcels and appends status observations.

    Args:
        store: ParcelStore used for uniqueness checks and persistence
        users: UserDirectory used to resolve parcel owners
        clock: callable returning the timestamp for new history entries
    """

    def __init__(self, store, users, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.users = users
        self.clock = clock

    async def create(
        self,
        tracking_number: str,
        owner_id: int,
        initial_status: ParcelStatus,
        initial_location: Location
    ) -> Parcel:
        tracking_number, initial_status, initial_location = validate_new_parcel(
            tracking_number, initial_status, initial_location
        )

        if await self.store.exists_by_tracking_number(tracking_number):
            logger.warning("Rejected duplicate tracking number %s", tracking_number)
            raise DuplicateTrackingNumberError(tracking_number)

        parcel = Parcel(tracking_number=tracking_number, owner_id=owner_id, is_active=True, history=[])
        self._append_entry(parcel, initial_status, initial_location)

        parcel = await self.store.save(parcel)
        logger.info("Created parcel %s for owner %s with status %s", tracking_number, owner_id, parcel.status.value)
        return parcel

    async def create_for(
        self,
        actor: Actor,
        tracking_number: str,
        initial_status: ParcelStatus,
        initial_location: Location,
        owner_id: Optional[int] = None
    ) -> Parcel:
        """
        Create a parcel on behalf of an admin.

        The parcel is assigned to `owner_id` when given (which must be an
        existing user), otherwise to the admin themself.
        """
        if not AccessPolicy.can_create(actor):
            raise InsufficientPermissionsError("Only administrators can create parcels")

        if owner_id is None:
            owner_id = actor.id
        elif not await self.users.exists(owner_id):
            raise ResourceNotFoundError("User", owner_id)

        return await self.create(tracking_number, owner_id, initial_status, initial_location)

    async def append_status(self, parcel: Parcel, status: ParcelStatus, location: Location) -> Parcel:
        """Append a history entry stamped now. Any status may follow any other."""
        status, location = validate_status_update(status, location)
        previous = parcel.status

        self._append_entry(parcel, status, location)
        parcel.updated_at = self.clock()

        parcel = await self.store.save(parcel)
        logger.info(
            "Parcel %s status %s -> %s at %s",
            parcel.tracking_number, previous.value, parcel.status.value, location.description
        )
        return parcel

    async def import_history(self, tracking_number: str, owner_id: int, records: Sequence[HistoryRecord]) -> Parcel:
        """
        Recreate a parcel from previously recorded observations.

        Records are appended in the given order and keep their own timestamps,
        which may lie in the past.
        """
        if not records:
            raise ValidationError([{"field": "history", "message": "History cannot be empty"}])

        clock = self.clock
        try:
            first, *rest = records
            self.clock = lambda: first.timestamp
            parcel = await self.create(tracking_number, owner_id, first.status, first.location)
            for record in rest:
                self.clock = lambda record=record: record.timestamp
                parcel = await self.append_status(parcel, record.status, record.location)
        finally:
            self.clock = clock
        return parcel

    def current_location(self, parcel: Parcel) -> Optional[Location]:
        return current_location(parcel.history)

    def formatted_tracking_number(self, parcel: Parcel) -> str:
        return format_tracking_number(parcel.tracking_number)

    def _append_entry(self, parcel: Parcel, status: ParcelStatus, location: Location) -> None:
        parcel.history.append(
            ParcelHistoryEntry(
                sequence=len(parcel.history),
                description=location.description,
                latitude=location.latitude,
                longitude=location.longitude,
                status=status,
                timestamp=self.clock(),
            )
        )
        parcel.status = derive_status(parcel.history)
