"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import auth, admin, parcels

router = APIRouter()

router.include_router(auth.router)
router.include_router(admin.router)
router.include_router(parcels.router)
