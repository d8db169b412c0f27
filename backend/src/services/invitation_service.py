"""
Invitation service: the directory of pending staff invitations.

Owners and managers invite collaborators by email; the provisioning workflow
looks invitations up by email at signup and consumes them. Lookup and
consumption both match on the lowercased email and only on invitations that
are still pending and unexpired.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import INVITATION_EXPIRY_DAYS
from core.constants import (
    INVITABLE_ROLES,
    INVITATION_STATUS_CANCELLED,
    INVITATION_STATUS_PENDING,
    ROLE_PERMISSIONS,
    STAFF_STATUS_ACTIVE,
)
from models import Clinic, Invitation, UserProfile
from services.change_feed import ChangeFeed, clinic_topic
from auth.permissions import can_perform_action
from utils.datetime_utils import utc_now
from utils.email_utils import is_valid_email, normalize_email

logger = logging.getLogger(__name__)


class InvitationError(Exception):
    """Base class for invitation management errors."""
    pass


class InvalidInvitationError(InvitationError):
    """Raised when the invited email or role is not acceptable."""
    pass


class InvitationPermissionError(InvitationError):
    """Raised when the acting user may not manage the clinic's invitations."""
    pass


class InvitationConflictError(InvitationError):
    """Raised when the invitation would duplicate a member or pending invitation."""
    pass


class InvitationNotFoundError(InvitationError):
    """Raised when an invitation does not exist in the acting user's clinic."""
    pass


def _invitation_event(event_type: str, invitation: Invitation) -> dict:
    return {
        "type": event_type,
        "invitation_id": invitation.id,
        "clinic_id": invitation.clinic_id,
        "email": invitation.email,
        "role": invitation.role,
    }


class InvitationService:
    """
    Service class for invitation operations.

    Methods take the request's session explicitly; the ones that change state
    commit their own transaction and then publish on the change feed.
    """

    @staticmethod
    def find_pending_invitation(
        db: Session,
        email: str,
        now: Optional[datetime] = None
    ) -> Optional[Invitation]:
        """
        Find the invitation a signup with this email should consume.

        Matching is case-insensitive and limited to pending, unexpired
        invitations. When several clinics invited the same address the oldest
        invitation wins, with the id as a final tie-break.

        Args:
            db: Database session
            email: Signup email (any casing)
            now: Reference time for expiry, defaults to the current UTC time

        Returns:
            The invitation to consume, or None
        """
        normalized = normalize_email(email)
        if not normalized:
            return None

        return db.query(Invitation).filter(
            Invitation.email == normalized,
            Invitation.status == INVITATION_STATUS_PENDING,
            Invitation.expires_at > (now or utc_now()),
        ).order_by(
            Invitation.created_at.asc(),
            Invitation.id.asc(),
        ).first()

    @staticmethod
    def consume_invitation(db: Session, invitation_id: str, now: Optional[datetime] = None) -> bool:
        """
        Delete an invitation if, and only if, it is still pending.

        The condition is evaluated by the database inside the caller's
        transaction, so of two transactions racing for the same invitation
        only one sees a deleted row. Does not commit.

        Returns:
            True if this call removed the invitation
        """
        result = db.execute(
            delete(Invitation).where(
                Invitation.id == invitation_id,
                Invitation.status == INVITATION_STATUS_PENDING,
                Invitation.expires_at > (now or utc_now()),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1  # type: ignore[attr-defined]

    @staticmethod
    def create_invitation(
        db: Session,
        inviter: UserProfile,
        email: str,
        role: str,
        expires_in_days: Optional[int] = None,
        feed: Optional[ChangeFeed] = None
    ) -> Invitation:
        """
        Invite an email address to join the inviter's clinic.

        Args:
            db: Database session
            inviter: Profile of the owner or manager sending the invitation
            email: Address to invite (stored lowercased)
            role: Staff role offered; owner cannot be offered
            expires_in_days: Validity window, defaults to INVITATION_EXPIRY_DAYS
            feed: Change feed to notify after commit

        Returns:
            Created Invitation

        Raises:
            InvitationPermissionError: Inviter is not an active owner/manager
            InvalidInvitationError: Email or role is invalid
            InvitationConflictError: Email is already a member or already invited
        """
        if not inviter.is_active or not can_perform_action(inviter.role, "invite"):
            raise InvitationPermissionError("Only clinic owners and managers can invite staff")

        normalized = normalize_email(email)
        if not is_valid_email(normalized):
            raise InvalidInvitationError("Please enter a valid email address.")
        if role not in INVITABLE_ROLES:
            raise InvalidInvitationError(f"Invalid role: {role}")

        existing_member = db.query(UserProfile).filter(
            UserProfile.clinic_id == inviter.clinic_id,
            UserProfile.email == normalized,
            UserProfile.status == STAFF_STATUS_ACTIVE,
        ).first()
        if existing_member:
            raise InvitationConflictError(f"{normalized} is already a member of this clinic")

        now = utc_now()
        existing_invitation = db.query(Invitation).filter(
            Invitation.clinic_id == inviter.clinic_id,
            Invitation.email == normalized,
            Invitation.status == INVITATION_STATUS_PENDING,
            Invitation.expires_at > now,
        ).first()
        if existing_invitation:
            raise InvitationConflictError(f"{normalized} already has a pending invitation")

        clinic = db.get(Clinic, inviter.clinic_id)
        if clinic is None:
            raise InvitationNotFoundError(f"Clinic {inviter.clinic_id} not found")

        days = expires_in_days if expires_in_days is not None else INVITATION_EXPIRY_DAYS
        invitation = Invitation(
            id=str(uuid.uuid4()),
            email=normalized,
            clinic_id=clinic.id,
            clinic_name=clinic.name,
            role=role,
            permissions=list(ROLE_PERMISSIONS.get(role, [])),
            invited_by=inviter.uid,
            inviter_name=inviter.name or inviter.email,
            status=INVITATION_STATUS_PENDING,
            created_at=now,
            expires_at=now + timedelta(days=days),
        )

        try:
            db.add(invitation)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Failed to create invitation for {normalized}: {e}")
            raise

        logger.info(f"Invitation {invitation.id} created for {normalized} as {role} in clinic {clinic.id}")
        if feed is not None:
            feed.publish(clinic_topic(clinic.id), _invitation_event("invitation.created", invitation))
        return invitation

    @staticmethod
    def cancel_invitation(
        db: Session,
        actor: UserProfile,
        invitation_id: str,
        feed: Optional[ChangeFeed] = None
    ) -> Invitation:
        """
        Cancel a pending invitation (pending -> cancelled, terminal).

        Raises:
            InvitationPermissionError: Actor is not an active owner/manager
            InvitationNotFoundError: Invitation is not in the actor's clinic
            InvitationConflictError: Invitation is no longer pending
        """
        if not actor.is_active or not can_perform_action(actor.role, "invite"):
            raise InvitationPermissionError("Only clinic owners and managers can cancel invitations")

        invitation = db.get(Invitation, invitation_id)
        if invitation is None or invitation.clinic_id != actor.clinic_id:
            raise InvitationNotFoundError(f"Invitation {invitation_id} not found")
        if invitation.status != INVITATION_STATUS_PENDING:
            raise InvitationConflictError(f"Invitation {invitation_id} is already {invitation.status}")

        invitation.status = INVITATION_STATUS_CANCELLED
        invitation.cancelled_at = utc_now()
        invitation.cancelled_by = actor.uid
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Failed to cancel invitation {invitation_id}: {e}")
            raise

        logger.info(f"Invitation {invitation_id} cancelled by {actor.uid}")
        if feed is not None:
            feed.publish(clinic_topic(invitation.clinic_id), _invitation_event("invitation.cancelled", invitation))
        return invitation

    @staticmethod
    def list_pending_invitations(db: Session, clinic_id: str) -> List[Invitation]:
        """List a clinic's pending, unexpired invitations, oldest first."""
        return db.query(Invitation).filter(
            Invitation.clinic_id == clinic_id,
            Invitation.status == INVITATION_STATUS_PENDING,
            Invitation.expires_at > utc_now(),
        ).order_by(Invitation.created_at.asc(), Invitation.id.asc()).all()
