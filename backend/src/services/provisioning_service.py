"""
Tenant provisioning for new signups.

Turns a freshly issued credential plus the clinic name typed at signup into a
staff profile linked to a clinic:

- if the signup email has a pending invitation, the account joins the
  inviting clinic with the invited role and the invitation is deleted;
- otherwise a new clinic is created and the account becomes its owner.

Either way every write happens in a single transaction. The invitation is
removed with a conditional delete inside that transaction, so two signups
racing for one invitation cannot both claim it.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.constants import CLINIC_STATUS_TRIAL, ROLE_OWNER, STAFF_STATUS_ACTIVE
from models import Clinic, ClinicSettings, Invitation, UserProfile
from services.change_feed import ChangeFeed, clinic_topic
from services.invitation_service import InvitationService
from utils.datetime_utils import utc_now
from utils.email_utils import normalize_email

logger = logging.getLogger(__name__)


class ProvisioningError(Exception):
    """Base class for errors raised by the provisioning workflow."""

    user_message = "Setup failed, please try again."


class InvalidInputError(ProvisioningError, ValueError):
    """Raised when a required signup field is missing or blank. Nothing is written."""

    user_message = "Please fill in all required fields."


class TenantProvisionError(ProvisioningError):
    """Raised when the provisioning transaction could not be committed. Nothing is written."""
    pass


class InvitationRaceLostError(ProvisioningError):
    """Raised when a concurrent signup consumed the targeted invitation first."""

    user_message = "This invitation has already been used. Please sign in or ask for a new invitation."

    def __init__(self, invitation_id: str) -> None:
        super().__init__(f"Invitation {invitation_id} was consumed by a concurrent signup")
        self.invitation_id = invitation_id


@dataclass(frozen=True)
class ProvisionResult:
    """Outcome of provisioning one account."""
    clinic_id: str
    role: str
    invitation_id: Optional[str] = None
    created_clinic: bool = False
    already_provisioned: bool = False


class TenantProvisioner:
    """
    Links a new auth identity to a clinic at signup.

    Attributes:
        race_fallback_to_owner: When a concurrent signup wins the invitation,
            provision this account as owner of a new clinic instead of failing
        feed: Change feed notified after a successful commit
    """

    def __init__(self, race_fallback_to_owner: bool = False, feed: Optional[ChangeFeed] = None) -> None:
        self.race_fallback_to_owner = race_fallback_to_owner
        self.feed = feed

    def provision(
        self,
        db: Session,
        email: str,
        new_auth_uid: str,
        supplied_clinic_name: Optional[str] = None,
        name: Optional[str] = None
    ) -> ProvisionResult:
        """
        Provision the profile (and, without an invitation, the clinic) for a new account.

        Args:
            db: Database session; must not have uncommitted work of its own
            email: Email the credential was issued for
            new_auth_uid: Identity returned by the credential issuer
            supplied_clinic_name: Clinic name for the no-invitation path, ignored otherwise
            name: Optional display name for the staff profile

        Returns:
            ProvisionResult with the clinic id and role the account ended up with

        Raises:
            InvalidInputError: Blank email/uid, or blank clinic name without an invitation
            InvitationRaceLostError: Invitation consumed concurrently (unless falling back)
            TenantProvisionError: The transaction failed; no partial state is left
        """
        normalized_email = normalize_email(email)
        if not normalized_email:
            raise InvalidInputError("Email is required")
        if not new_auth_uid or not new_auth_uid.strip():
            raise InvalidInputError("Account identifier is required")

        try:
            existing = db.get(UserProfile, new_auth_uid)
            invitation = None if existing else InvitationService.find_pending_invitation(db, normalized_email)
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Lookup failed while provisioning {new_auth_uid}: {e}")
            raise TenantProvisionError("Could not look up the account") from e

        if existing is not None:
            # Retried signup: the first attempt already committed
            logger.info(f"Account {new_auth_uid} already provisioned in clinic {existing.clinic_id}")
            return ProvisionResult(
                clinic_id=existing.clinic_id,
                role=existing.role,
                already_provisioned=True,
            )

        if invitation is not None:
            try:
                return self._join_invited_clinic(db, invitation, normalized_email, new_auth_uid, name)
            except InvitationRaceLostError:
                if not self.race_fallback_to_owner:
                    raise
                logger.warning(
                    f"Invitation race lost for {normalized_email}; provisioning {new_auth_uid} as owner instead"
                )

        return self._create_owned_clinic(db, normalized_email, new_auth_uid, supplied_clinic_name, name)

    def _join_invited_clinic(
        self,
        db: Session,
        invitation: Invitation,
        email: str,
        uid: str,
        name: Optional[str]
    ) -> ProvisionResult:
        # Copy before the delete; the ORM object is detached once it succeeds
        invitation_id = invitation.id
        clinic_id = invitation.clinic_id
        role = invitation.role

        try:
            if not InvitationService.consume_invitation(db, invitation_id):
                db.rollback()
                logger.warning(f"Invitation {invitation_id} for {email} was already consumed")
                raise InvitationRaceLostError(invitation_id)
            if invitation in db:
                db.expunge(invitation)

            db.add(UserProfile(
                uid=uid,
                email=email,
                clinic_id=clinic_id,
                role=role,
                name=name,
                status=STAFF_STATUS_ACTIVE,
            ))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Provisioning {uid} into clinic {clinic_id} failed: {e}")
            raise TenantProvisionError("Setup failed, please try again") from e

        logger.info(f"Account {uid} joined clinic {clinic_id} as {role} via invitation {invitation_id}")
        self._publish(clinic_id, {
            "type": "invitation.consumed",
            "invitation_id": invitation_id,
            "clinic_id": clinic_id,
            "email": email,
            "role": role,
        })
        self._publish(clinic_id, {
            "type": "staff.joined",
            "uid": uid,
            "clinic_id": clinic_id,
            "email": email,
            "role": role,
        })
        return ProvisionResult(clinic_id=clinic_id, role=role, invitation_id=invitation_id)

    def _create_owned_clinic(
        self,
        db: Session,
        email: str,
        uid: str,
        clinic_name: Optional[str],
        name: Optional[str]
    ) -> ProvisionResult:
        clinic_name = (clinic_name or "").strip()
        if not clinic_name:
            raise InvalidInputError("Clinic name is required")

        clinic_id = str(uuid.uuid4())
        try:
            db.add(Clinic(
                id=clinic_id,
                name=clinic_name,
                owner_id=uid,
                status=CLINIC_STATUS_TRIAL,
                settings=ClinicSettings().model_dump(),
                created_at=utc_now(),
            ))
            # Flush the clinic first so the profile's foreign key resolves
            db.flush()
            db.add(UserProfile(
                uid=uid,
                email=email,
                clinic_id=clinic_id,
                role=ROLE_OWNER,
                name=name,
                status=STAFF_STATUS_ACTIVE,
            ))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Creating clinic '{clinic_name}' for {uid} failed: {e}")
            raise TenantProvisionError("Setup failed, please try again") from e

        logger.info(f"Account {uid} created clinic {clinic_id} ('{clinic_name}') as owner")
        self._publish(clinic_id, {
            "type": "staff.joined",
            "uid": uid,
            "clinic_id": clinic_id,
            "email": email,
            "role": ROLE_OWNER,
        })
        return ProvisionResult(clinic_id=clinic_id, role=ROLE_OWNER, created_clinic=True)

    def _publish(self, clinic_id: str, event: dict) -> None:
        if self.feed is not None:
            self.feed.publish(clinic_topic(clinic_id), event)
