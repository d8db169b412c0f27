"""
Shared response models for API endpoints.

This module contains Pydantic response models that are shared across
multiple API endpoints to ensure consistency and reduce duplication.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class TokenResponse(BaseModel):
    """Bearer token issued after signup or login."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class SignupResponse(TokenResponse):
    """Response model for a completed signup."""
    uid: str
    email: str
    clinic_id: str
    role: str
    created_clinic: bool
    joined_via_invitation: bool
    already_provisioned: bool = False


class LoginResponse(TokenResponse):
    """Response model for login."""
    uid: str
    email: str
    clinic_id: str
    role: str


class InvitationResponse(BaseModel):
    """Response model for an invitation."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    clinic_id: str
    clinic_name: str
    role: str
    permissions: List[str]
    status: str
    invited_by: Optional[str] = None
    inviter_name: Optional[str] = None
    created_at: datetime
    expires_at: datetime


class InvitationListResponse(BaseModel):
    """Response model for listing pending invitations."""
    invitations: List[InvitationResponse]


class StaffMemberResponse(BaseModel):
    """Response model for a staff member."""
    model_config = ConfigDict(from_attributes=True)

    uid: str
    email: str
    name: Optional[str] = None
    clinic_id: str
    role: str
    status: str
    created_at: datetime


class StaffListResponse(BaseModel):
    """Response model for listing staff."""
    staff: List[StaffMemberResponse]


class NotificationTestResponse(BaseModel):
    """Response model for a notification channel check."""
    delivered: bool
