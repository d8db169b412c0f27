"""
Application configuration using python-dotenv.

This module loads environment variables from .env file into os.environ
for use throughout the application. Values are read once at import time and
exposed as module constants; service clients receive them through their
constructors instead of reading globals themselves.
"""

import os
import pathlib
from dotenv import load_dotenv


# Determine if we're running in a test environment
# Don't load .env file during testing to ensure predictable test behavior
is_testing = os.getenv("PYTEST_VERSION") is not None or any("pytest" in str(frame) for frame in __import__('inspect').stack(0))

# Load .env file into os.environ (only outside of testing)
if not is_testing:
    # Try multiple possible locations for .env file
    possible_paths = [
        pathlib.Path(__file__).parent.parent.parent / ".env",  # backend/.env (when run from backend/src)
        pathlib.Path(__file__).parent.parent.parent.parent / ".env",  # .env at repository root
        pathlib.Path.cwd() / ".env",  # .env in current directory
    ]

    for env_path in possible_paths:
        if env_path.exists():
            load_dotenv(env_path)
            break


def _env_flag(name: str, default: str = "false") -> bool:
    """Read a boolean flag from the environment ("true"/"1"/"yes")."""
    return os.getenv(name, default).strip().lower() in ("true", "1", "yes")


# Configuration constants with defaults
# These match the environment variables defined in .env.example
def get_database_url():
    """Get the database URL from environment."""
    return os.getenv(
        "DATABASE_URL",
        "postgresql://localhost/clinicq_dev"
    )

DATABASE_URL = get_database_url()
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Authentication
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
JWT_ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# Invitations and provisioning
INVITATION_EXPIRY_DAYS = int(os.getenv("INVITATION_EXPIRY_DAYS", "7"))
# When a concurrent signup already consumed the targeted invitation, either fail
# (default) or provision the loser as owner of a new clinic.
PROVISION_RACE_FALLBACK_TO_OWNER = _env_flag("PROVISION_RACE_FALLBACK_TO_OWNER")

# Notification webhooks (one per notification type, typically n8n workflows)
N8N_INVITATION_WEBHOOK = os.getenv("N8N_INVITATION_WEBHOOK", "")
N8N_TRANSACTION_WEBHOOK = os.getenv("N8N_TRANSACTION_WEBHOOK", "")
N8N_DAILY_REVENUE_WEBHOOK = os.getenv("N8N_DAILY_REVENUE_WEBHOOK", "")
N8N_SUBSCRIPTION_WEBHOOK = os.getenv("N8N_SUBSCRIPTION_WEBHOOK", "")
N8N_SYSTEM_ALERT_WEBHOOK = os.getenv("N8N_SYSTEM_ALERT_WEBHOOK", "")
N8N_TEST_WEBHOOK = os.getenv("N8N_TEST_WEBHOOK", "")
NOTIFICATION_TIMEOUT_SECONDS = float(os.getenv("NOTIFICATION_TIMEOUT_SECONDS", "10"))

# Direct-message fallback (Telegram Bot API)
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "")
TELEGRAM_ADMIN_CHAT_ID = os.getenv("TELEGRAM_ADMIN_CHAT_ID", "")
TELEGRAM_API_URL = os.getenv("TELEGRAM_API_URL", "https://api.telegram.org")
