"""
Field validation for parcel input, independent of the storage layer.

The single-field validators raise ValueError (so pydantic request schemas can
call them directly); validate_* helpers collect every field error into one
domain ValidationError for the lifecycle manager.
"""

import re
from typing import Any, Dict, List, Optional

from backend.app.core.exceptions import ValidationError
from backend.app.domain.parcels.tracking import Location
from backend.app.models.parcel_enums import ParcelStatus

TRACKING_NUMBER_MIN_LENGTH = 5
TRACKING_NUMBER_MAX_LENGTH = 20
LOCATION_MAX_LENGTH = 255

_TRACKING_NUMBER_RE = re.compile(r"^[A-Z0-9]+$")


def normalize_tracking_number(value: Any) -> str:
    """Trim and uppercase a tracking number, then check its format."""
    if not isinstance(value, str):
        raise ValueError("Tracking number must be a string")

    normalized = value.strip().upper()
    if not TRACKING_NUMBER_MIN_LENGTH <= len(normalized) <= TRACKING_NUMBER_MAX_LENGTH:
        raise ValueError(
            f"Tracking number must be between {TRACKING_NUMBER_MIN_LENGTH} "
            f"and {TRACKING_NUMBER_MAX_LENGTH} characters"
        )
    if not _TRACKING_NUMBER_RE.match(normalized):
        raise ValueError("Tracking number must contain only letters and numbers")
    return normalized


def validate_status(value: Any) -> ParcelStatus:
    try:
        return ParcelStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in ParcelStatus)
        raise ValueError(f"Status must be one of: {allowed}") from None


def validate_location_description(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError("Location is required")
    value = value.strip()
    if len(value) > LOCATION_MAX_LENGTH:
        raise ValueError(f"Location cannot exceed {LOCATION_MAX_LENGTH} characters")
    return value


def validate_latitude(value: Any) -> float:
    return _coordinate(value, -90.0, 90.0, "Latitude")


def validate_longitude(value: Any) -> float:
    return _coordinate(value, -180.0, 180.0, "Longitude")


def _coordinate(value: Any, low: float, high: float, label: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"{label} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{label} must be a number") from None
    if number != number or not low <= number <= high:
        raise ValueError(f"{label} must be between {low:g} and {high:g}")
    return number


def _collect(errors: List[Dict[str, str]], field: str, validator, value):
    try:
        return validator(value)
    except ValueError as exc:
        errors.append({"field": field, "message": str(exc)})
        return None


def _build_location(errors, description, latitude, longitude, prefix) -> Optional[Location]:
    desc = _collect(errors, f"{prefix}location", validate_location_description, description)
    lat = _collect(errors, f"{prefix}latitude", validate_latitude, latitude)
    lng = _collect(errors, f"{prefix}longitude", validate_longitude, longitude)
    if desc is None or lat is None or lng is None:
        return None
    return Location(description=desc, latitude=lat, longitude=lng)


def _coerce_location(errors, location: Any, prefix: str) -> Optional[Location]:
    if isinstance(location, Location):
        return _build_location(errors, location.description, location.latitude, location.longitude, prefix)
    if location is None:
        errors.append({"field": f"{prefix}location", "message": "Location is required"})
        return None
    return _build_location(
        errors,
        getattr(location, "description", None),
        getattr(location, "latitude", None),
        getattr(location, "longitude", None),
        prefix,
    )


def validate_new_parcel(tracking_number: Any, status: Any, location: Any):
    """Validate creation input; returns (tracking_number, status, location)."""
    errors: List[Dict[str, str]] = []
    normalized = _collect(errors, "trackingNumber", normalize_tracking_number, tracking_number)
    parcel_status = _collect(errors, "status", validate_status, status)
    loc = _coerce_location(errors, location, "initialHistory.")
    if errors:
        raise ValidationError(errors)
    return normalized, parcel_status, loc


def validate_status_update(status: Any, location: Any):
    """Validate a history append; returns (status, location)."""
    errors: List[Dict[str, str]] = []
    parcel_status = _collect(errors, "status", validate_status, status)
    loc = _coerce_location(errors, location, "")
    if errors:
        raise ValidationError(errors)
    return parcel_status, loc
