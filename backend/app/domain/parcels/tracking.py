"""
Parcel tracking value objects and derivations.

Pure functions over a parcel's history: they take any ordered sequence of
entries exposing `.status`, `.location` and `.timestamp` (ORM rows or
HistoryRecord values) and never touch storage.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from backend.app.models.parcel_enums import ParcelStatus

TRACKING_GROUP_SIZE = 4


@dataclass(frozen=True)
class Location:
    """A geocoordinate with a human-readable label."""
    description: str
    latitude: float
    longitude: float


@dataclass(frozen=True)
class HistoryRecord:
    """One status observation, detached from storage."""
    location: Location
    status: ParcelStatus
    timestamp: datetime


def derive_status(history: Sequence) -> Optional[ParcelStatus]:
    """Return the status of the latest history entry (None for an empty history)."""
    if not history:
        return None
    return history[-1].status


def current_location(history: Sequence) -> Optional[Location]:
    """Return where the parcel was last observed."""
    if not history:
        return None
    return history[-1].location


def format_tracking_number(tracking_number: str, delimiter: str = "-") -> str:
    """
    Group a tracking number into 4-character blocks.

    >>> format_tracking_number("TRK0012345")
    'TRK0-0123-45'
    """
    groups = [
        tracking_number[i:i + TRACKING_GROUP_SIZE]
        for i in range(0, len(tracking_number), TRACKING_GROUP_SIZE)
    ]
    return delimiter.join(groups)


@dataclass(frozen=True)
class PageInfo:
    """Pagination metadata for a listing."""
    current_page: int
    page_size: int
    total_items: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def from_counts(cls, total_items: int, page: int, page_size: int) -> "PageInfo":
        total_pages = math.ceil(total_items / page_size) if page_size > 0 else 0
        return cls(
            current_page=page,
            page_size=page_size,
            total_items=total_items,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )

    @property
    def offset(self) -> int:
        return (self.current_page - 1) * self.page_size
