"""
Services package for shared business logic.

This package contains service classes that encapsulate business logic
shared across the signup, auth and clinic API endpoints.
"""

from .credential_service import CredentialService
from .invitation_service import InvitationService
from .provisioning_service import TenantProvisioner
from .staff_service import StaffService

__all__ = [
    "CredentialService",
    "InvitationService",
    "TenantProvisioner",
    "StaffService",
]
