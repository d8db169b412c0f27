# pyright: reportMissingTypeStubs=false
"""
Authentication and service dependencies for FastAPI.

Provides dependency injection for the authenticated staff profile and for
the per-request service objects (JWT, provisioning, notifications, change
feed), so tests can swap any of them through ``app.dependency_overrides``.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from core import config
from core.database import get_db
from models import UserProfile
from services.change_feed import ChangeFeed
from services.jwt_service import JWTService, TokenPayload
from services.provisioning_service import TenantProvisioner

logger = logging.getLogger(__name__)


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_jwt_service() -> JWTService:
    """Build the JWT service from configuration."""
    return JWTService(
        secret_key=config.JWT_SECRET_KEY,
        access_token_expire_minutes=config.JWT_ACCESS_TOKEN_EXPIRE_MINUTES,
    )


def get_change_feed(request: Request) -> ChangeFeed:
    """Return the application's change feed."""
    return request.app.state.change_feed


def get_tenant_provisioner(feed: ChangeFeed = Depends(get_change_feed)) -> TenantProvisioner:
    """Build the provisioner with the configured race policy."""
    return TenantProvisioner(
        race_fallback_to_owner=config.PROVISION_RACE_FALLBACK_TO_OWNER,
        feed=feed,
    )


def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    jwt_service: JWTService = Depends(get_jwt_service)
) -> Optional[TokenPayload]:
    """Extract and validate JWT token payload."""
    if not credentials:
        return None
    return jwt_service.verify_token(credentials.credentials)


def resolve_profile(db: Session, payload: Optional[TokenPayload]) -> UserProfile:
    """
    Load the staff profile a token belongs to.

    Raises:
        HTTPException: 401 without a valid token or profile, 403 when the
            member was removed or the token's clinic no longer matches
    """
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication credentials not provided"
        )

    profile = db.get(UserProfile, payload.sub)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    if not profile.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This account has been disabled. Please contact your clinic owner."
        )

    if profile.clinic_id != payload.clinic_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Clinic access denied"
        )

    return profile


def get_current_profile(
    payload: Optional[TokenPayload] = Depends(get_token_payload),
    db: Session = Depends(get_db)
) -> UserProfile:
    """Get the authenticated staff profile from the bearer token."""
    return resolve_profile(db, payload)
