# pyright: reportMissingTypeStubs=false
"""
Signup API endpoints.

Creates the email/password credential and then provisions the account: it
joins the inviting clinic when the email has a pending invitation, otherwise
it becomes the owner of a new clinic named in the request.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from api.responses import SignupResponse
from auth.dependencies import get_jwt_service, get_tenant_provisioner
from core.database import get_db
from services.credential_service import (
    CredentialError,
    CredentialService,
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
)
from services.invitation_service import InvitationService
from services.jwt_service import JWTService, TokenPayload
from services.notification_service import NotificationDispatcher, build_notification_dispatcher
from services.provisioning_service import (
    InvalidInputError,
    InvitationRaceLostError,
    ProvisionResult,
    TenantProvisioner,
    TenantProvisionError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class SignupRequest(BaseModel):
    """Request model for signup."""
    email: str
    password: str
    clinic_name: Optional[str] = None  # Required only when there is no pending invitation
    name: Optional[str] = None


def _announce_signup(
    background_tasks: BackgroundTasks,
    dispatcher: NotificationDispatcher,
    email: str,
    result: ProvisionResult
) -> None:
    if result.already_provisioned:
        return
    if result.created_clinic:
        alert_type, message = "clinic_onboarding", f"New clinic {result.clinic_id} registered by {email}"
    else:
        alert_type, message = "user_registration", f"{email} joined clinic {result.clinic_id} as {result.role}"
    background_tasks.add_task(dispatcher.send_system_alert, alert_type, message)


@router.post("", summary="Sign up and provision a clinic account")
async def signup(
    request: SignupRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    provisioner: TenantProvisioner = Depends(get_tenant_provisioner),
    jwt_service: JWTService = Depends(get_jwt_service),
    dispatcher: NotificationDispatcher = Depends(build_notification_dispatcher)
) -> SignupResponse:
    """
    Register an account and link it to a clinic.

    A retried signup (same email and password) resumes provisioning for the
    existing credential instead of failing, so a request that died after the
    credential was created can simply be repeated.
    """
    clinic_name = (request.clinic_name or "").strip()
    if not clinic_name and InvitationService.find_pending_invitation(db, request.email) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Clinic name is required when registering a new clinic."
        )

    try:
        credential = CredentialService.create_credential(db, request.email, request.password)
    except EmailAlreadyRegisteredError as e:
        try:
            credential = CredentialService.authenticate(db, request.email, request.password)
        except InvalidCredentialsError:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=e.user_message
            )
        logger.info(f"Resuming signup for existing credential {credential.uid}")
    except CredentialError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.user_message
        )

    try:
        result = provisioner.provision(db, credential.email, credential.uid, clinic_name, request.name)
    except InvalidInputError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except InvitationRaceLostError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=e.user_message
        )
    except TenantProvisionError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.user_message
        )

    _announce_signup(background_tasks, dispatcher, credential.email, result)

    access_token = jwt_service.create_access_token(TokenPayload(
        sub=credential.uid,
        email=credential.email,
        clinic_id=result.clinic_id,
        role=result.role,
    ))
    return SignupResponse(
        uid=credential.uid,
        email=credential.email,
        clinic_id=result.clinic_id,
        role=result.role,
        created_clinic=result.created_clinic,
        joined_via_invitation=result.invitation_id is not None,
        already_provisioned=result.already_provisioned,
        access_token=access_token,
        expires_in=jwt_service.expires_in_seconds,
    )
