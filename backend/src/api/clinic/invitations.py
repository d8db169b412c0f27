# pyright: reportMissingTypeStubs=false
"""
Invitation Management API endpoints.
"""

import logging
from urllib.parse import quote

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from api.responses import InvitationListResponse, InvitationResponse
from auth.dependencies import get_change_feed
from auth.permissions import require_action
from core.config import FRONTEND_URL
from core.database import get_db
from models import Invitation, UserProfile
from services.change_feed import ChangeFeed
from services.invitation_service import (
    InvalidInvitationError,
    InvitationConflictError,
    InvitationNotFoundError,
    InvitationPermissionError,
    InvitationService,
)
from services.notification_service import NotificationDispatcher, build_notification_dispatcher

logger = logging.getLogger(__name__)

router = APIRouter()


class InvitationCreateRequest(BaseModel):
    """Request model for inviting a staff member."""
    email: str
    role: str  # e.g. "doctor", "nurse", "manager"


def build_signup_url(email: str) -> str:
    """Signup link sent to the invitee; the email is prefilled on the form."""
    return f"{FRONTEND_URL}/signup?email={quote(email)}"


def _invitation_notice(invitation: Invitation) -> dict:
    return {
        "email": invitation.email,
        "clinic_name": invitation.clinic_name,
        "role": invitation.role,
        "inviter_name": invitation.inviter_name,
        "signup_url": build_signup_url(invitation.email),
        "expires_at": invitation.expires_at.isoformat(),
    }


@router.get("/invitations", summary="List pending invitations")
async def list_invitations(
    current_profile: UserProfile = Depends(require_action("view")),
    db: Session = Depends(get_db)
) -> InvitationListResponse:
    """Get the pending, unexpired invitations of the current user's clinic."""
    invitations = InvitationService.list_pending_invitations(db, current_profile.clinic_id)
    return InvitationListResponse(
        invitations=[InvitationResponse.model_validate(i) for i in invitations]
    )


@router.post("/invitations", summary="Invite a staff member", status_code=status.HTTP_201_CREATED)
async def create_invitation(
    request: InvitationCreateRequest,
    background_tasks: BackgroundTasks,
    current_profile: UserProfile = Depends(require_action("invite")),
    db: Session = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed),
    dispatcher: NotificationDispatcher = Depends(build_notification_dispatcher)
) -> InvitationResponse:
    """
    Invite an email address to join the clinic.

    The invitee joins automatically when they sign up with the same email.
    A notification with the signup link is sent in the background.
    """
    try:
        invitation = InvitationService.create_invitation(
            db, current_profile, request.email, request.role, feed=feed
        )
    except InvitationPermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except InvalidInvitationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except InvitationConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except InvitationNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    background_tasks.add_task(dispatcher.send_invitation, _invitation_notice(invitation))
    return InvitationResponse.model_validate(invitation)


@router.delete("/invitations/{invitation_id}", summary="Cancel a pending invitation")
async def cancel_invitation(
    invitation_id: str,
    current_profile: UserProfile = Depends(require_action("invite")),
    db: Session = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed)
) -> InvitationResponse:
    """Cancel an invitation so it can no longer be used to join the clinic."""
    try:
        invitation = InvitationService.cancel_invitation(db, current_profile, invitation_id, feed=feed)
    except InvitationPermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except InvitationNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvitationConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return InvitationResponse.model_validate(invitation)
