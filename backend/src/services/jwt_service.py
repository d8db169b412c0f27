"""
JWT Service for access token management.

Issues and validates the bearer tokens used by the clinic API after signup
or login.
"""

import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional
from pydantic import BaseModel

from core.config import JWT_SECRET_KEY, JWT_ACCESS_TOKEN_EXPIRE_MINUTES


class TokenPayload(BaseModel):
    """Payload structure for JWT tokens."""
    sub: str  # Auth identity (uid)
    email: str
    clinic_id: str
    role: str
    iat: Optional[int] = None  # Set by JWT service
    exp: Optional[int] = None  # Set by JWT service


class JWTService:
    """Service for JWT token operations."""

    ALGORITHM = "HS256"

    def __init__(
        self,
        secret_key: str = JWT_SECRET_KEY,
        access_token_expire_minutes: int = JWT_ACCESS_TOKEN_EXPIRE_MINUTES
    ) -> None:
        self.secret_key = secret_key
        self.access_token_expire_minutes = access_token_expire_minutes

    def create_access_token(self, payload: TokenPayload) -> str:
        """Create a JWT access token."""
        to_encode = payload.model_dump(exclude={"iat", "exp"})
        now = datetime.now(timezone.utc)
        to_encode.update({
            "iat": now,
            "exp": now + timedelta(minutes=self.access_token_expire_minutes),
        })
        return jwt.encode(to_encode, self.secret_key, algorithm=self.ALGORITHM)

    def verify_token(self, token: str) -> Optional[TokenPayload]:
        """Verify and decode a JWT token. Returns None if invalid or expired."""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.ALGORITHM])
            return TokenPayload(**payload)
        except jwt.ExpiredSignatureError:
            return None
        except jwt.InvalidTokenError:
            return None

    @property
    def expires_in_seconds(self) -> int:
        return self.access_token_expire_minutes * 60
