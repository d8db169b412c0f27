"""
Staff directory service.

Lists a clinic's staff profiles and applies the owner/manager rules for
changing roles and removing members. Removal is a soft delete: the profile
stays (so the uid keeps its single profile) with status ``removed``.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auth.permissions import can_perform_action
from core.constants import INVITABLE_ROLES, ROLE_OWNER, STAFF_STATUS_ACTIVE, STAFF_STATUS_REMOVED
from models import UserProfile
from services.change_feed import ChangeFeed, clinic_topic
from utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class StaffError(Exception):
    """Base class for staff management errors."""
    pass


class StaffPermissionError(StaffError):
    pass


class StaffNotFoundError(StaffError):
    pass


class InvalidStaffChangeError(StaffError):
    """Raised for changes the owner rules forbid, e.g. removing the owner."""
    pass


class StaffService:
    """Service class for staff directory operations."""

    @staticmethod
    def list_staff(db: Session, clinic_id: str, include_removed: bool = False) -> List[UserProfile]:
        """List a clinic's staff, oldest first."""
        query = db.query(UserProfile).filter(UserProfile.clinic_id == clinic_id)
        if not include_removed:
            query = query.filter(UserProfile.status == STAFF_STATUS_ACTIVE)
        return query.order_by(UserProfile.created_at.asc(), UserProfile.uid.asc()).all()

    @staticmethod
    def _get_member(db: Session, actor: UserProfile, uid: str, action: str) -> UserProfile:
        if not actor.is_active or not can_perform_action(actor.role, action):
            raise StaffPermissionError(f"Role {actor.role} cannot {action} staff")

        member = db.get(UserProfile, uid)
        if member is None or member.clinic_id != actor.clinic_id:
            raise StaffNotFoundError(f"Staff member {uid} not found")
        if member.role == ROLE_OWNER:
            raise InvalidStaffChangeError("The clinic owner cannot be changed or removed")
        return member

    @staticmethod
    def update_role(
        db: Session,
        actor: UserProfile,
        uid: str,
        role: str,
        feed: Optional[ChangeFeed] = None
    ) -> UserProfile:
        """
        Change a staff member's role.

        Raises:
            StaffPermissionError: Actor may not edit staff
            StaffNotFoundError: Member is not in the actor's clinic
            InvalidStaffChangeError: Target is the owner or role is not assignable
        """
        if role not in INVITABLE_ROLES:
            raise InvalidStaffChangeError(f"Invalid role: {role}")

        member = StaffService._get_member(db, actor, uid, "edit")
        previous_role = member.role
        member.role = role
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Failed to update role for {uid}: {e}")
            raise

        logger.info(f"Staff {uid} role changed {previous_role} -> {role} by {actor.uid}")
        if feed is not None:
            feed.publish(clinic_topic(member.clinic_id), {
                "type": "staff.updated",
                "uid": uid,
                "clinic_id": member.clinic_id,
                "role": role,
            })
        return member

    @staticmethod
    def remove_staff(
        db: Session,
        actor: UserProfile,
        uid: str,
        feed: Optional[ChangeFeed] = None
    ) -> UserProfile:
        """Soft-remove a staff member (owner only)."""
        member = StaffService._get_member(db, actor, uid, "remove")
        if member.status == STAFF_STATUS_REMOVED:
            return member

        member.status = STAFF_STATUS_REMOVED
        member.removed_at = utc_now()
        member.removed_by = actor.uid
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Failed to remove staff {uid}: {e}")
            raise

        logger.info(f"Staff {uid} removed from clinic {member.clinic_id} by {actor.uid}")
        if feed is not None:
            feed.publish(clinic_topic(member.clinic_id), {
                "type": "staff.removed",
                "uid": uid,
                "clinic_id": member.clinic_id,
            })
        return member
