"""
Credential model for email/password identities.

Credentials belong to the credential issuer. Their uid is the auth identity
that a UserProfile is keyed by; a credential without a profile is an account
whose signup did not finish provisioning.
"""

from datetime import datetime
from sqlalchemy import String, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from core.constants import MAX_STRING_LENGTH
from core.database import Base


class Credential(Base):
    """Email/password identity issued at signup."""

    __tablename__ = "credentials"

    uid: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH), unique=True)
    password_hash: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH))
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<Credential(uid='{self.uid}', email='{self.email}')>"
