"""
Test configuration and shared fixtures for the ClinicQ test suite.

Tests run against a file-backed SQLite database migrated with Alembic once
per session (set TEST_DATABASE_URL to use PostgreSQL instead). A file is used
rather than an in-memory database so the concurrency tests can open several
connections to the same data. Every table is emptied after each test.
"""

import os
import tempfile
import uuid
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Dict, Generator, Optional, Tuple

import pytest

_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="clinicq-tests-"))
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", f"sqlite:///{_TEST_DB_DIR / 'clinicq_test.db'}")

# Must be set before core.config is imported anywhere
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient
from sqlalchemy import text
from sqlalchemy.orm import Session

from core.constants import INVITATION_STATUS_PENDING, ROLE_OWNER, ROLE_PERMISSIONS, STAFF_STATUS_ACTIVE
from core.database import Base, SessionLocal, engine, get_db
from main import app
from models import Clinic, ClinicSettings, Invitation, UserProfile
from services.change_feed import ChangeFeed
from services.jwt_service import JWTService, TokenPayload
from services.notification_service import NotificationDispatcher, build_notification_dispatcher
from utils.datetime_utils import utc_now

BACKEND_DIR = Path(__file__).resolve().parent.parent


@pytest.fixture(scope="session")
def db_engine():
    """Engine bound to the test database (the application's own engine)."""
    yield engine
    engine.dispose()


@pytest.fixture(scope="session", autouse=True)
def setup_test_database(db_engine):
    """
    Setup test database schema using Alembic migrations.

    Runs once at the start of the session, from an empty database up to head,
    so the migrations themselves are exercised.
    """
    alembic_cfg = Config(str(BACKEND_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", TEST_DATABASE_URL)
    # Keep pytest's log capture intact
    alembic_cfg.attributes["configure_logger"] = False

    with db_engine.begin() as conn:
        conn.execute(text("DROP TABLE IF EXISTS alembic_version"))
    Base.metadata.drop_all(bind=db_engine)

    command.upgrade(alembic_cfg, "head")

    yield

    Base.metadata.drop_all(bind=db_engine)
    with db_engine.begin() as conn:
        conn.execute(text("DROP TABLE IF EXISTS alembic_version"))


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """
    Provide a database session for a test.

    Code under test commits for real, so isolation comes from deleting every
    row once the test finishes.
    """
    session = SessionLocal()

    yield session

    session.rollback()
    session.close()
    with db_engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def session_factory(db_session):
    """Session factory for tests that need one session per thread."""
    return SessionLocal


@pytest.fixture
def change_feed() -> ChangeFeed:
    return ChangeFeed()


@pytest.fixture
def jwt_service() -> JWTService:
    return JWTService(secret_key="test-secret-key", access_token_expire_minutes=60)


def create_clinic_with_owner(
    db: Session,
    name: str = "Klinik Sehat",
    owner_uid: Optional[str] = None,
    owner_email: Optional[str] = None,
    owner_name: Optional[str] = "Dr. Owner"
) -> Tuple[Clinic, UserProfile]:
    """Create a clinic and its owner profile, committed."""
    owner_uid = owner_uid or f"owner-{uuid.uuid4().hex[:8]}"
    owner_email = owner_email or f"{owner_uid}@clinic.test"
    clinic = Clinic(
        id=str(uuid.uuid4()),
        name=name,
        owner_id=owner_uid,
        settings=ClinicSettings().model_dump(),
    )
    db.add(clinic)
    db.flush()
    owner = UserProfile(
        uid=owner_uid,
        email=owner_email,
        clinic_id=clinic.id,
        role=ROLE_OWNER,
        name=owner_name,
        status=STAFF_STATUS_ACTIVE,
    )
    db.add(owner)
    db.commit()
    return clinic, owner


def create_staff_member(
    db: Session,
    clinic: Clinic,
    role: str,
    uid: Optional[str] = None,
    email: Optional[str] = None,
    status: str = STAFF_STATUS_ACTIVE
) -> UserProfile:
    """Add a staff profile to a clinic, committed."""
    uid = uid or f"{role}-{uuid.uuid4().hex[:8]}"
    member = UserProfile(
        uid=uid,
        email=email or f"{uid}@clinic.test",
        clinic_id=clinic.id,
        role=role,
        name=f"{role.title()} {uid[-4:]}",
        status=status,
    )
    db.add(member)
    db.commit()
    return member


def create_pending_invitation(
    db: Session,
    clinic: Clinic,
    email: str,
    role: str = "doctor",
    created_at: Optional[datetime] = None,
    expires_at: Optional[datetime] = None,
    invitation_id: Optional[str] = None,
    status: str = INVITATION_STATUS_PENDING
) -> Invitation:
    """Insert an invitation directly, bypassing permission checks."""
    created_at = created_at or utc_now()
    invitation = Invitation(
        id=invitation_id or str(uuid.uuid4()),
        email=email,
        clinic_id=clinic.id,
        clinic_name=clinic.name,
        role=role,
        permissions=list(ROLE_PERMISSIONS.get(role, [])),
        invited_by=clinic.owner_id,
        inviter_name="Dr. Owner",
        status=status,
        created_at=created_at,
        expires_at=expires_at or created_at + timedelta(days=7),
    )
    db.add(invitation)
    db.commit()
    return invitation


@pytest.fixture
def clinic_factory(db_session) -> Callable[..., Tuple[Clinic, UserProfile]]:
    return lambda **kwargs: create_clinic_with_owner(db_session, **kwargs)


@pytest.fixture
def staff_factory(db_session) -> Callable[..., UserProfile]:
    return lambda clinic, role, **kwargs: create_staff_member(db_session, clinic, role, **kwargs)


@pytest.fixture
def invitation_factory(db_session) -> Callable[..., Invitation]:
    return lambda clinic, email, **kwargs: create_pending_invitation(db_session, clinic, email, **kwargs)


@pytest.fixture
def client(db_session) -> Generator[TestClient, None, None]:
    """
    Test client sharing the test's session.

    Notifications go to a dispatcher with no webhooks and no fallback, so no
    request leaves the process.
    """
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[build_notification_dispatcher] = lambda: NotificationDispatcher(webhooks={})
    app.state.change_feed = ChangeFeed()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[[UserProfile], Dict[str, str]]:
    """Build a bearer header for a profile using the application's JWT settings."""
    from auth.dependencies import get_jwt_service

    def _headers(profile: UserProfile) -> Dict[str, str]:
        token = get_jwt_service().create_access_token(TokenPayload(
            sub=profile.uid,
            email=profile.email,
            clinic_id=profile.clinic_id,
            role=profile.role,
        ))
        return {"Authorization": f"Bearer {token}"}

    return _headers
