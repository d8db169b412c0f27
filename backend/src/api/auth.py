# pyright: reportMissingTypeStubs=false
"""
Authentication API endpoints.

Exchanges an email/password pair for a bearer token scoped to the account's
clinic.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from api.responses import LoginResponse
from auth.dependencies import get_jwt_service
from core.database import get_db
from models import UserProfile
from services.credential_service import CredentialService, InvalidCredentialsError
from services.jwt_service import JWTService, TokenPayload

logger = logging.getLogger(__name__)

router = APIRouter()


class LoginRequest(BaseModel):
    email: str
    password: str


@router.post("/login", summary="Log in with email and password")
async def login(
    request: LoginRequest,
    db: Session = Depends(get_db),
    jwt_service: JWTService = Depends(get_jwt_service)
) -> LoginResponse:
    """Authenticate and return an access token for the account's clinic."""
    try:
        credential = CredentialService.authenticate(db, request.email, request.password)
    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.user_message
        )

    profile = db.get(UserProfile, credential.uid)
    if profile is None:
        # Credential issued but provisioning never committed
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Account setup is incomplete. Please sign up again to finish setting up your clinic."
        )
    if not profile.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This account has been disabled. Please contact your clinic owner."
        )

    access_token = jwt_service.create_access_token(TokenPayload(
        sub=profile.uid,
        email=profile.email,
        clinic_id=profile.clinic_id,
        role=profile.role,
    ))
    logger.info(f"User {profile.uid} logged in to clinic {profile.clinic_id}")
    return LoginResponse(
        uid=profile.uid,
        email=profile.email,
        clinic_id=profile.clinic_id,
        role=profile.role,
        access_token=access_token,
        expires_in=jwt_service.expires_in_seconds,
    )
