"""
Invitation model for email-based staff onboarding.

An invitation offers one email address a role in one clinic. It is consumed
by deleting the row when that email signs up, so a consumed invitation can
never be matched again. Cancellation is a status change kept for the audit
trail.
"""

from typing import Optional
from datetime import datetime
from sqlalchemy import String, TIMESTAMP, JSON, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import INVITATION_STATUS_PENDING, MAX_STRING_LENGTH, UUID_LENGTH
from core.database import Base


class Invitation(Base):
    """Pending offer for an email to join a clinic with a role."""

    __tablename__ = "invitations"

    id: Mapped[str] = mapped_column(String(UUID_LENGTH), primary_key=True)
    email: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH))  # Always stored lowercased
    clinic_id: Mapped[str] = mapped_column(ForeignKey("clinics.id", ondelete="CASCADE"))
    clinic_name: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH))
    role: Mapped[str] = mapped_column(String(32))
    permissions: Mapped[list[str]] = mapped_column(JSON, default=list)
    invited_by: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    inviter_name: Mapped[Optional[str]] = mapped_column(String(MAX_STRING_LENGTH), nullable=True)
    status: Mapped[str] = mapped_column(String(32), default=INVITATION_STATUS_PENDING)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    cancelled_by: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    # Relationships
    clinic = relationship("Clinic", back_populates="invitations")

    __table_args__ = (
        Index('idx_invitations_email_status', 'email', 'status'),
        Index('idx_invitations_clinic_status', 'clinic_id', 'status'),
    )

    def __repr__(self) -> str:
        return f"<Invitation(id='{self.id}', email='{self.email}', clinic_id='{self.clinic_id}', status='{self.status}')>"
