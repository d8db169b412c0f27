"""
Utility modules for the ClinicQ backend.

This package contains shared helpers used across the application,
including datetime and email normalization utilities.
"""

from utils.datetime_utils import ensure_utc, utc_now
from utils.email_utils import is_valid_email, normalize_email

__all__ = ['ensure_utc', 'utc_now', 'is_valid_email', 'normalize_email']
