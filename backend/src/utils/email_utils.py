"""Helpers for handling email addresses used as lookup keys."""

import re
from typing import Optional

# Shape check only: local@domain.tld
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(email: Optional[str]) -> str:
    """Strip and lowercase an email so it can be compared case-insensitively."""
    return (email or "").strip().lower()


def is_valid_email(email: str) -> bool:
    """Check that an email looks like local@domain.tld."""
    return bool(_EMAIL_PATTERN.match(email))
