"""
Staff profile linking an auth identity to exactly one clinic.

The primary key is the auth identity (uid), so at most one profile can exist
per signed-up account. Role and clinic are fixed at signup by whether an
invitation existed for the account's email.
"""

from typing import Optional
from datetime import datetime
from sqlalchemy import String, TIMESTAMP, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import MAX_STRING_LENGTH, STAFF_STATUS_ACTIVE
from core.database import Base


class UserProfile(Base):
    """Clinic staff member (owner, manager, doctor, nurse, admin, cashier)."""

    __tablename__ = "user_profiles"

    uid: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH))
    clinic_id: Mapped[str] = mapped_column(ForeignKey("clinics.id"), nullable=False)
    role: Mapped[str] = mapped_column(String(32))
    name: Mapped[Optional[str]] = mapped_column(String(MAX_STRING_LENGTH), nullable=True)
    status: Mapped[str] = mapped_column(String(32), default=STAFF_STATUS_ACTIVE)

    # Metadata
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    removed_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    removed_by: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    # Relationships
    clinic = relationship("Clinic", back_populates="staff")

    __table_args__ = (
        Index('idx_user_profiles_clinic_status', 'clinic_id', 'status'),
        Index('idx_user_profiles_email', 'email'),
    )

    @property
    def is_active(self) -> bool:
        return self.status == STAFF_STATUS_ACTIVE

    def __repr__(self) -> str:
        return f"<UserProfile(uid='{self.uid}', clinic_id='{self.clinic_id}', role='{self.role}')>"
