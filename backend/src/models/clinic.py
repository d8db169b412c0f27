"""
Clinic model representing a tenant of the platform.

A clinic is the top-level entity that owns its staff profiles, pending
invitations, patients and billing. It is created once, when its owner signs
up without an invitation, and is never deleted by the signup workflow.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field
from sqlalchemy import JSON, CheckConstraint, String, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import CLINIC_STATUS_TRIAL, CLINIC_STATUSES, MAX_STRING_LENGTH, UUID_LENGTH
from core.database import Base


# Settings schema validation models
class StandardFees(BaseModel):
    """Default prices (IDR) offered at the cashier."""
    consultation: int = Field(default=100000, ge=0)
    examination: int = Field(default=75000, ge=0)
    basic_lab: int = Field(default=150000, ge=0)
    advanced_lab: int = Field(default=200000, ge=0)


class ClinicSettings(BaseModel):
    """Schema for clinic settings stored in the JSON column."""
    clinic_address: str = ""
    clinic_phone: str = ""
    clinic_logo: Optional[str] = None
    show_admin_fee: bool = False
    admin_fee_markup: int = Field(default=0, ge=0)
    currency: str = "IDR"
    standard_fees: StandardFees = Field(default_factory=StandardFees)


class Clinic(Base):
    """Tenant record owning staff, invitations and billing."""

    __tablename__ = "clinics"

    id: Mapped[str] = mapped_column(String(UUID_LENGTH), primary_key=True)
    name: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH))
    owner_id: Mapped[str] = mapped_column(String(128), index=True)
    status: Mapped[str] = mapped_column(String(32), default=CLINIC_STATUS_TRIAL)

    settings: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    """
    JSON column containing clinic settings with validated schema.

    Structure matches the ClinicSettings Pydantic model.
    """

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    # Relationships
    staff = relationship("UserProfile", back_populates="clinic")
    invitations = relationship("Invitation", back_populates="clinic", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint(
            "status IN (" + ", ".join(f"'{s}'" for s in CLINIC_STATUSES) + ")",
            name="check_clinic_status",
        ),
    )

    def get_validated_settings(self) -> ClinicSettings:
        """Get settings with schema validation."""
        return ClinicSettings.model_validate(self.settings or {})

    def __repr__(self) -> str:
        return f"<Clinic(id='{self.id}', name='{self.name}', status='{self.status}')>"
