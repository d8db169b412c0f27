"""
Credential issuer for email/password accounts.

Creates and verifies the identity a staff profile is keyed by. Passwords are
hashed with bcrypt after a SHA-256 pre-hash, which keeps inputs within
bcrypt's 72-byte limit.
"""

import hashlib
import logging
import uuid

import bcrypt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.constants import MIN_PASSWORD_LENGTH
from models import Credential
from utils.datetime_utils import utc_now
from utils.email_utils import is_valid_email, normalize_email

logger = logging.getLogger(__name__)


class CredentialError(Exception):
    """Base class for credential errors; ``user_message`` is safe to show."""

    user_message = "An unexpected error occurred. Please try again."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.user_message)


class InvalidEmailError(CredentialError):
    user_message = "Please enter a valid email address."


class WeakPasswordError(CredentialError):
    user_message = f"The password is too weak. It must be at least {MIN_PASSWORD_LENGTH} characters long."


class EmailAlreadyRegisteredError(CredentialError):
    user_message = "This email address is already registered. Please try signing in instead."


class InvalidCredentialsError(CredentialError):
    user_message = "Invalid email or password. Please check your credentials and try again."


def _prehash(password: str) -> bytes:
    return hashlib.sha256(password.encode("utf-8")).digest()


class CredentialService:
    """Service for issuing and verifying email/password credentials."""

    @staticmethod
    def hash_password(password: str) -> str:
        return bcrypt.hashpw(_prehash(password), bcrypt.gensalt()).decode("utf-8")

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        """Verify a password against its stored hash."""
        try:
            return bcrypt.checkpw(_prehash(password), password_hash.encode("utf-8"))
        except ValueError:
            # Malformed hash in storage
            return False

    @staticmethod
    def get_by_email(db: Session, email: str) -> Credential | None:
        return db.query(Credential).filter(Credential.email == normalize_email(email)).first()

    @staticmethod
    def create_credential(db: Session, email: str, password: str) -> Credential:
        """
        Issue a new credential and commit it.

        Args:
            db: Database session
            email: Account email (stored lowercased)
            password: Plain-text password

        Returns:
            Created Credential with its freshly allocated uid

        Raises:
            InvalidEmailError: Email is malformed
            WeakPasswordError: Password shorter than MIN_PASSWORD_LENGTH
            EmailAlreadyRegisteredError: A credential for this email exists
        """
        normalized = normalize_email(email)
        if not is_valid_email(normalized):
            raise InvalidEmailError()
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise WeakPasswordError()

        if CredentialService.get_by_email(db, normalized) is not None:
            raise EmailAlreadyRegisteredError()

        credential = Credential(
            uid=str(uuid.uuid4()),
            email=normalized,
            password_hash=CredentialService.hash_password(password),
            created_at=utc_now(),
        )
        try:
            db.add(credential)
            db.commit()
        except IntegrityError:
            # Lost a race against another signup for the same email
            db.rollback()
            raise EmailAlreadyRegisteredError()

        logger.info(f"Issued credential {credential.uid} for {normalized}")
        return credential

    @staticmethod
    def authenticate(db: Session, email: str, password: str) -> Credential:
        """
        Verify an email/password pair.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
        """
        credential = CredentialService.get_by_email(db, email)
        if credential is None or not CredentialService.verify_password(password, credential.password_hash):
            raise InvalidCredentialsError()
        return credential
