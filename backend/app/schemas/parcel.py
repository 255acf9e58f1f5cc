"""
Parcel Pydantic schemas.

Defines request and response models for parcel tracking. Field rules are
delegated to domain.parcels.validation so the API and the lifecycle manager
apply the same checks.
"""

from pydantic import Field, field_validator
from datetime import datetime
from typing import Optional, List
from backend.app.domain.parcels import validation
from backend.app.domain.parcels.tracking import (
    Location, PageInfo, current_location, derive_status, format_tracking_number
)
from backend.app.models.parcel_enums import ParcelStatus
from backend.app.schemas.common import CamelModel


class LocationInput(CamelModel):
    """A location as submitted by clients."""
    location: str = Field(..., description="Human-readable place name")
    latitude: float = Field(..., description="Latitude in [-90, 90]")
    longitude: float = Field(..., description="Longitude in [-180, 180]")

    @field_validator("location")
    @classmethod
    def _check_location(cls, value):
        return validation.validate_location_description(value)

    @field_validator("latitude")
    @classmethod
    def _check_latitude(cls, value):
        return validation.validate_latitude(value)

    @field_validator("longitude")
    @classmethod
    def _check_longitude(cls, value):
        return validation.validate_longitude(value)

    def to_location(self) -> Location:
        return Location(description=self.location, latitude=self.latitude, longitude=self.longitude)


class ParcelCreate(CamelModel):
    """Schema for registering a new parcel (admin only)."""
    tracking_number: str = Field(..., description="5-20 letters and digits, stored uppercase")
    status: ParcelStatus = Field(..., description="Initial status")
    initial_history: LocationInput = Field(..., description="Where the parcel was first observed")
    user_id: Optional[int] = Field(None, description="Owner; defaults to the creating admin")

    @field_validator("tracking_number")
    @classmethod
    def _normalize_tracking_number(cls, value):
        return validation.normalize_tracking_number(value)


class StatusUpdate(LocationInput):
    """Schema for appending a status observation."""
    status: ParcelStatus


class HistoryEntryResponse(CamelModel):
    id: int
    location: str
    latitude: float
    longitude: float
    status: ParcelStatus
    timestamp: datetime


class CurrentLocationResponse(CamelModel):
    location: str
    latitude: float
    longitude: float
    timestamp: datetime


class ParcelResponse(CamelModel):
    """Schema for parcel response."""
    id: int
    tracking_number: str
    formatted_tracking_number: str
    owner_id: int
    status: ParcelStatus
    is_active: bool
    history: List[HistoryEntryResponse]
    current_location: Optional[CurrentLocationResponse]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_parcel(cls, parcel) -> "ParcelResponse":
        history = [
            HistoryEntryResponse(
                id=entry.id,
                location=entry.description,
                latitude=entry.latitude,
                longitude=entry.longitude,
                status=entry.status,
                timestamp=entry.timestamp,
            )
            for entry in parcel.history
        ]
        location = current_location(parcel.history)
        return cls(
            id=parcel.id,
            tracking_number=parcel.tracking_number,
            formatted_tracking_number=format_tracking_number(parcel.tracking_number),
            owner_id=parcel.owner_id,
            status=derive_status(parcel.history) or parcel.status,
            is_active=parcel.is_active,
            history=history,
            current_location=CurrentLocationResponse(
                location=location.description,
                latitude=location.latitude,
                longitude=location.longitude,
                timestamp=parcel.history[-1].timestamp,
            ) if location else None,
            created_at=parcel.created_at,
            updated_at=parcel.updated_at,
        )


class PaginationResponse(CamelModel):
    current_page: int
    total_pages: int
    total_parcels: int
    has_next: bool
    has_prev: bool

    @classmethod
    def from_page_info(cls, info: PageInfo) -> "PaginationResponse":
        return cls(
            current_page=info.current_page,
            total_pages=info.total_pages,
            total_parcels=info.total_items,
            has_next=info.has_next,
            has_prev=info.has_prev,
        )


class ParcelListResponse(CamelModel):
    """Schema for paginated parcel list."""
    parcels: List[ParcelResponse]
    pagination: PaginationResponse
