# pyright: reportMissingTypeStubs=false
"""
Clinic API modules.

This package contains the clinic-scoped endpoints organized by domain:
invitations, the staff directory, notification checks and the live change
stream.
"""

from fastapi import APIRouter

from api.clinic.invitations import router as invitations_router
from api.clinic.notifications import router as notifications_router
from api.clinic.staff import router as staff_router
from api.clinic.stream import router as stream_router

router = APIRouter()
router.include_router(invitations_router)
router.include_router(notifications_router)
router.include_router(staff_router)
router.include_router(stream_router)

__all__ = [
    'router',
    'invitations_router',
    'notifications_router',
    'staff_router',
    'stream_router',
]
