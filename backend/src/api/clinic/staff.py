# pyright: reportMissingTypeStubs=false
"""
Staff Directory API endpoints.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from api.responses import StaffListResponse, StaffMemberResponse
from auth.dependencies import get_change_feed
from auth.permissions import can_perform_action, require_action
from core.database import get_db
from models import UserProfile
from services.change_feed import ChangeFeed
from services.staff_service import (
    InvalidStaffChangeError,
    StaffNotFoundError,
    StaffPermissionError,
    StaffService,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class StaffRoleUpdateRequest(BaseModel):
    role: str


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, StaffPermissionError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if isinstance(e, StaffNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/staff", summary="List clinic staff")
async def list_staff(
    current_profile: UserProfile = Depends(require_action("view")),
    db: Session = Depends(get_db)
) -> StaffListResponse:
    """
    Get all staff of the current user's clinic.

    Owners and managers also see removed members; other roles only see
    active ones.
    """
    include_removed = can_perform_action(current_profile.role, "edit")
    members = StaffService.list_staff(db, current_profile.clinic_id, include_removed=include_removed)
    return StaffListResponse(staff=[StaffMemberResponse.model_validate(m) for m in members])


@router.put("/staff/{uid}/role", summary="Change a staff member's role")
async def update_staff_role(
    uid: str,
    request: StaffRoleUpdateRequest,
    current_profile: UserProfile = Depends(require_action("edit")),
    db: Session = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed)
) -> StaffMemberResponse:
    try:
        member = StaffService.update_role(db, current_profile, uid, request.role, feed=feed)
    except (StaffPermissionError, StaffNotFoundError, InvalidStaffChangeError) as e:
        raise _http_error(e)
    return StaffMemberResponse.model_validate(member)


@router.delete("/staff/{uid}", summary="Remove a staff member")
async def remove_staff(
    uid: str,
    current_profile: UserProfile = Depends(require_action("remove")),
    db: Session = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed)
) -> StaffMemberResponse:
    """Remove a member from the clinic. Only the owner can remove staff."""
    try:
        member = StaffService.remove_staff(db, current_profile, uid, feed=feed)
    except (StaffPermissionError, StaffNotFoundError, InvalidStaffChangeError) as e:
        raise _http_error(e)
    return StaffMemberResponse.model_validate(member)
