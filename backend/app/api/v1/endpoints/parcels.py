"""
Parcel Tracking API Endpoints.

Admins register parcels; owners and admins read them and append status
updates. Parcels the caller may not see are reported as 404.
"""

from typing import Optional
from fastapi import APIRouter, Depends, status, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.core.config import settings
from backend.app.core.dependencies import (
    get_current_user, get_current_actor, get_access_policy, get_lifecycle_manager
)
from backend.app.core.guards import require_admin
from backend.app.db.session import get_db
from backend.app.domain.parcels.access_policy import AccessPolicy, Actor
from backend.app.domain.parcels.lifecycle import ParcelLifecycleManager
from backend.app.models.parcel_enums import ParcelStatus
from backend.app.schemas.parcel import (
    ParcelCreate, StatusUpdate, ParcelResponse, ParcelListResponse, PaginationResponse
)
from backend.app.services.audit import log_parcel_event, AuditAction

router = APIRouter(prefix="/parcels", tags=["Parcels"])


@router.post("", response_model=ParcelResponse, status_code=status.HTTP_201_CREATED)
async def create_parcel(
    parcel_data: ParcelCreate,
    admin: dict = Depends(require_admin),
    manager: ParcelLifecycleManager = Depends(get_lifecycle_manager),
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new parcel (admin only).

    - 409 if the tracking number is already taken (case-insensitive)
    - 404 if `userId` does not resolve to an existing user
    """
    parcel = await manager.create_for(
        Actor.from_token(admin),
        parcel_data.tracking_number,
        parcel_data.status,
        parcel_data.initial_history.to_location(),
        owner_id=parcel_data.user_id
    )
    response = ParcelResponse.from_parcel(parcel)

    await log_parcel_event(
        db=db,
        action=AuditAction.PARCEL_CREATED,
        actor=admin,
        parcel=parcel,
        metadata={"owner_id": parcel.owner_id}
    )
    return response


@router.get("", response_model=ParcelListResponse)
async def list_parcels(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, description="Items per page"),
    status_filter: Optional[ParcelStatus] = Query(None, alias="status", description="Only parcels in this status"),
    actor: Actor = Depends(get_current_actor),
    policy: AccessPolicy = Depends(get_access_policy)
):
    """
    List parcels visible to the caller, most recently updated first.

    Admins see every parcel; owners see their own.
    """
    result = await policy.list_visible(actor, status=status_filter, page=page, page_size=limit)

    return ParcelListResponse(
        parcels=[ParcelResponse.from_parcel(p) for p in result.items],
        pagination=PaginationResponse.from_page_info(result.page_info)
    )


@router.get("/{tracking_number}", response_model=ParcelResponse)
async def get_parcel(
    tracking_number: str = Path(..., min_length=5, max_length=20, description="Tracking number (any case)"),
    actor: Actor = Depends(get_current_actor),
    policy: AccessPolicy = Depends(get_access_policy)
):
    """Get a parcel and its full history by tracking number."""
    parcel = await policy.get_visible(actor, tracking_number)
    return ParcelResponse.from_parcel(parcel)


@router.put("/{parcel_id}/status", response_model=ParcelResponse)
async def append_parcel_status(
    update: StatusUpdate,
    parcel_id: int = Path(..., ge=1, description="Parcel ID"),
    current_user: dict = Depends(get_current_user),
    policy: AccessPolicy = Depends(get_access_policy),
    manager: ParcelLifecycleManager = Depends(get_lifecycle_manager),
    db: AsyncSession = Depends(get_db)
):
    """
    Append a status observation to a parcel's history (owner or admin).

    The entry is timestamped by the server; the parcel's status becomes the
    submitted status.
    """
    actor = Actor.from_token(current_user)
    parcel = await policy.get_writable(actor, parcel_id)
    previous_status = parcel.status

    parcel = await manager.append_status(parcel, update.status, update.to_location())
    response = ParcelResponse.from_parcel(parcel)

    await log_parcel_event(
        db=db,
        action=AuditAction.PARCEL_STATUS_APPENDED,
        actor=current_user,
        parcel=parcel,
        metadata={
            "previous_status": previous_status.value,
            "location": update.location,
            "history_length": len(response.history)
        }
    )
    return response
