"""
Parcel database models.

A parcel owns an ordered, append-only list of history entries. The parcel's
status column mirrors the status of its latest entry; the lifecycle manager
keeps the two in sync explicitly (see domain.parcels.lifecycle).
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Enum, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.parcel_enums import ParcelStatus
from backend.app.domain.parcels.tracking import Location


def _status_enum() -> Enum:
    return Enum(ParcelStatus, values_callable=lambda e: [m.value for m in e], name="parcel_status")


class ParcelHistoryEntry(Base):
    """
    One timestamped status observation at a location.

    `sequence` is the 0-based append position within the parcel; it defines
    history order. `timestamp` is informational and may be backdated.
    """
    __tablename__ = "parcel_history"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    parcel_id = Column(Integer, ForeignKey("parcels.id", ondelete="CASCADE"), nullable=False, index=True)
    sequence = Column(Integer, nullable=False)

    description = Column(String(255), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)

    status = Column(_status_enum(), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)

    parcel = relationship("Parcel", back_populates="history")

    @property
    def location(self) -> Location:
        return Location(description=self.description, latitude=self.latitude, longitude=self.longitude)

    def __repr__(self):
        return f"<ParcelHistoryEntry(parcel_id={self.parcel_id}, seq={self.sequence}, status='{self.status.value}')>"


class Parcel(Base):
    """
    Parcel model.

    Created by an admin with exactly one history entry and assigned to an
    owner. Never hard-deleted; `is_active` hides a parcel from every read path.
    """
    __tablename__ = "parcels"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    tracking_number = Column(String(20), unique=True, nullable=False, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    status = Column(_status_enum(), nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, index=True)

    history = relationship(
        ParcelHistoryEntry,
        back_populates="parcel",
        order_by=[ParcelHistoryEntry.sequence, ParcelHistoryEntry.id],
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Parcel(id={self.id}, tracking='{self.tracking_number}', owner_id={self.owner_id}, status='{self.status.value}')>"
