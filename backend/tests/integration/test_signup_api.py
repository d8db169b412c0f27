"""
Integration tests for the signup endpoint.

Exercises the full flow: credential issue, tenant provisioning, token issue
and the background onboarding alert.
"""

from unittest.mock import AsyncMock, Mock, patch

import pytest

from core.constants import ROLE_OWNER
from models import Clinic, Credential, Invitation, UserProfile
from main import app
from services.jwt_service import JWTService
from services.notification_service import build_notification_dispatcher
from services.provisioning_service import InvitationRaceLostError, TenantProvisioner, TenantProvisionError


@pytest.fixture
def dispatcher(client):
    """Record the alerts scheduled by signup."""
    mock_dispatcher = Mock()
    mock_dispatcher.send_system_alert = AsyncMock(return_value=None)
    app.dependency_overrides[build_notification_dispatcher] = lambda: mock_dispatcher
    return mock_dispatcher


class TestSignupNewClinic:
    def test_creates_clinic_and_returns_token(self, client, db_session, dispatcher):
        response = client.post("/api/signup", json={
            "email": "Owner@Klinik.id",
            "password": "secret123",
            "clinic_name": "Klinik Sehat",
            "name": "Dr. Sari",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "owner@klinik.id"
        assert data["role"] == ROLE_OWNER
        assert data["created_clinic"] is True
        assert data["joined_via_invitation"] is False
        assert data["token_type"] == "bearer"

        clinic = db_session.get(Clinic, data["clinic_id"])
        assert clinic.name == "Klinik Sehat"
        assert clinic.owner_id == data["uid"]
        assert db_session.get(UserProfile, data["uid"]).name == "Dr. Sari"

        payload = JWTService().verify_token(data["access_token"])
        assert payload.clinic_id == data["clinic_id"]
        assert payload.role == ROLE_OWNER

        dispatcher.send_system_alert.assert_called_once()
        assert dispatcher.send_system_alert.call_args[0][0] == "clinic_onboarding"

    def test_missing_clinic_name_without_invitation(self, client, db_session, dispatcher):
        response = client.post("/api/signup", json={"email": "a@x.com", "password": "secret123"})

        assert response.status_code == 400
        assert "Clinic name is required" in response.json()["detail"]
        # Rejected before any credential is issued
        assert db_session.query(Credential).count() == 0
        dispatcher.send_system_alert.assert_not_called()

    @pytest.mark.parametrize("email,password,message", [
        ("not-an-email", "secret123", "valid email"),
        ("a@x.com", "123", "too weak"),
    ])
    def test_invalid_credentials_input(self, client, email, password, message):
        response = client.post("/api/signup", json={
            "email": email,
            "password": password,
            "clinic_name": "Klinik",
        })

        assert response.status_code == 400
        assert message in response.json()["detail"]


class TestSignupWithInvitation:
    def test_joins_inviting_clinic(self, client, db_session, clinic_factory, invitation_factory, dispatcher):
        clinic, _ = clinic_factory(name="Klinik Sehat")
        invitation = invitation_factory(clinic, "nurse@klinik.id", role="nurse")

        response = client.post("/api/signup", json={"email": "Nurse@Klinik.id", "password": "secret123"})

        assert response.status_code == 200
        data = response.json()
        assert data["clinic_id"] == clinic.id
        assert data["role"] == "nurse"
        assert data["created_clinic"] is False
        assert data["joined_via_invitation"] is True
        assert db_session.get(Invitation, invitation.id) is None
        assert db_session.query(Clinic).count() == 1
        assert dispatcher.send_system_alert.call_args[0][0] == "user_registration"


class TestSignupRetry:
    def test_duplicate_email_wrong_password_is_conflict(self, client, dispatcher):
        body = {"email": "a@x.com", "password": "secret123", "clinic_name": "Klinik"}
        assert client.post("/api/signup", json=body).status_code == 200

        response = client.post("/api/signup", json={**body, "password": "another-pass"})

        assert response.status_code == 409
        assert "already registered" in response.json()["detail"]

    def test_double_submit_returns_same_account(self, client, db_session, dispatcher):
        body = {"email": "a@x.com", "password": "secret123", "clinic_name": "Klinik"}
        first = client.post("/api/signup", json=body).json()

        response = client.post("/api/signup", json=body)

        assert response.status_code == 200
        second = response.json()
        assert second["uid"] == first["uid"]
        assert second["clinic_id"] == first["clinic_id"]
        assert second["already_provisioned"] is True
        assert db_session.query(Clinic).count() == 1
        # Only the first signup announces a new clinic
        dispatcher.send_system_alert.assert_called_once()

    def test_retry_after_failed_provisioning(self, client, db_session, dispatcher):
        body = {"email": "a@x.com", "password": "secret123", "clinic_name": "Klinik"}

        with patch.object(TenantProvisioner, "provision", side_effect=TenantProvisionError("boom")):
            assert client.post("/api/signup", json=body).status_code == 503
        # The credential survived the failed provisioning
        assert db_session.query(Credential).count() == 1

        response = client.post("/api/signup", json=body)

        assert response.status_code == 200
        assert response.json()["created_clinic"] is True
        assert db_session.query(Credential).count() == 1
        assert db_session.query(Clinic).count() == 1


class TestSignupFailures:
    def test_provision_failure_is_503(self, client, db_session, dispatcher):
        with patch.object(TenantProvisioner, "provision", side_effect=TenantProvisionError("boom")):
            response = client.post("/api/signup", json={
                "email": "a@x.com", "password": "secret123", "clinic_name": "Klinik",
            })

        assert response.status_code == 503
        assert response.json()["detail"] == "Setup failed, please try again."
        assert db_session.query(Clinic).count() == 0

    def test_race_lost_is_409(self, client, dispatcher):
        with patch.object(TenantProvisioner, "provision", side_effect=InvitationRaceLostError("inv-1")):
            response = client.post("/api/signup", json={
                "email": "a@x.com", "password": "secret123", "clinic_name": "Klinik",
            })

        assert response.status_code == 409
        assert "already been used" in response.json()["detail"]
