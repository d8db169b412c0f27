# Package initialization
# Import all models to ensure relationships are properly established
from .clinic import Clinic, ClinicSettings
from .user_profile import UserProfile
from .invitation import Invitation
from .credential import Credential

__all__ = [
    "Clinic",
    "ClinicSettings",
    "UserProfile",
    "Invitation",
    "Credential",
]
