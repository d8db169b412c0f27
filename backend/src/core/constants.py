"""Application constants and configuration values."""

from core.config import FRONTEND_URL

# Database field lengths
MAX_STRING_LENGTH = 255
UUID_LENGTH = 36

# Database connection settings
DB_POOL_RECYCLE_SECONDS = 300  # 5 minutes

# CORS origins for development and production
_CORS_ORIGINS_RAW = [
    "http://localhost:3000",      # React dev server
    FRONTEND_URL,
]

# Filter out None values and empty strings to avoid CORS errors
CORS_ORIGINS = [origin for origin in _CORS_ORIGINS_RAW if origin and origin.strip()]

# Staff roles
ROLE_OWNER = "owner"
ROLE_MANAGER = "manager"
ROLE_DOCTOR = "doctor"
ROLE_NURSE = "nurse"
ROLE_ADMIN = "admin"
ROLE_CASHIER = "cashier"

# Owner is only ever assigned by provisioning a new clinic
INVITABLE_ROLES = (ROLE_MANAGER, ROLE_DOCTOR, ROLE_NURSE, ROLE_ADMIN, ROLE_CASHIER)

ROLE_PERMISSIONS: dict[str, list[str]] = {
    ROLE_OWNER: ["all"],
    ROLE_MANAGER: ["staff_manage", "patient_manage", "appointment_manage", "payment_view", "reports_view"],
    ROLE_DOCTOR: ["patient_manage", "appointment_manage", "prescription_manage"],
    ROLE_NURSE: ["patient_view", "appointment_manage", "vitals_manage"],
    ROLE_ADMIN: ["patient_manage", "appointment_manage", "billing_view"],
    ROLE_CASHIER: ["payment_manage", "patient_view"],
}

# Invitation lifecycle (consumption deletes the row, so there is no "accepted")
INVITATION_STATUS_PENDING = "pending"
INVITATION_STATUS_CANCELLED = "cancelled"

# Clinic lifecycle
CLINIC_STATUS_TRIAL = "trial"
CLINIC_STATUS_ACTIVE = "active"
CLINIC_STATUS_PENDING_PAYMENT = "pending_payment"
CLINIC_STATUS_SUSPENDED = "suspended"
CLINIC_STATUSES = (
    CLINIC_STATUS_TRIAL,
    CLINIC_STATUS_ACTIVE,
    CLINIC_STATUS_PENDING_PAYMENT,
    CLINIC_STATUS_SUSPENDED,
)

# Staff membership status
STAFF_STATUS_ACTIVE = "active"
STAFF_STATUS_REMOVED = "removed"

# Credentials
MIN_PASSWORD_LENGTH = 6

# Notifications
NOTIFICATION_SOURCE = "CLINICQ_APP"

ALERT_SEVERITY = {
    "payment_failed": "high",
    "system_down": "critical",
    "subscription_expired": "high",
    "database_error": "critical",
    "user_registration": "low",
    "clinic_onboarding": "medium",
}
DEFAULT_ALERT_SEVERITY = "medium"
