"""
Integration tests for the live clinic change stream (websocket).
"""

import time

import pytest
from starlette.websockets import WebSocketDisconnect

from auth.dependencies import get_jwt_service
from core.database import engine
from main import app
from services.change_feed import clinic_topic
from services.jwt_service import TokenPayload


def _token(profile):
    return get_jwt_service().create_access_token(TokenPayload(
        sub=profile.uid,
        email=profile.email,
        clinic_id=profile.clinic_id,
        role=profile.role,
    ))


class TestClinicStream:
    def test_rejects_missing_token(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/api/clinic/stream"):
                pass
        assert exc_info.value.code == 1008

    def test_rejects_removed_member(self, client, clinic_factory, staff_factory):
        clinic, _ = clinic_factory()
        nurse = staff_factory(clinic, "nurse", status="removed")

        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect(f"/api/clinic/stream?token={_token(nurse)}"):
                pass
        assert exc_info.value.code == 1008

    def test_receives_invitation_events(self, client, clinic_factory, auth_headers):
        clinic, owner = clinic_factory()

        with client.websocket_connect(f"/api/clinic/stream?token={_token(owner)}") as websocket:
            response = client.post(
                "/api/clinic/invitations",
                json={"email": "n@x.com", "role": "nurse"},
                headers=auth_headers(owner),
            )
            assert response.status_code == 201

            event = websocket.receive_json()

        assert event["type"] == "invitation.created"
        assert event["clinic_id"] == clinic.id
        assert event["email"] == "n@x.com"

    def test_receives_signup_join_events(self, client, clinic_factory, invitation_factory):
        clinic, owner = clinic_factory()
        invitation_factory(clinic, "doc@x.com", role="doctor")

        with client.websocket_connect(f"/api/clinic/stream?token={_token(owner)}") as websocket:
            response = client.post("/api/signup", json={"email": "doc@x.com", "password": "secret123"})
            assert response.status_code == 200

            consumed = websocket.receive_json()
            joined = websocket.receive_json()

        assert consumed["type"] == "invitation.consumed"
        assert joined["type"] == "staff.joined"
        assert joined["uid"] == response.json()["uid"]

    def test_unsubscribes_on_disconnect(self, client, clinic_factory):
        clinic, owner = clinic_factory()
        topic = clinic_topic(clinic.id)

        with client.websocket_connect(f"/api/clinic/stream?token={_token(owner)}"):
            assert app.state.change_feed.subscriber_count(topic) == 1

        # The handler's cleanup runs on the app's loop after the client closes
        for _ in range(50):
            if app.state.change_feed.subscriber_count(topic) == 0:
                break
            time.sleep(0.02)
        assert app.state.change_feed.subscriber_count(topic) == 0

    def test_open_stream_holds_no_database_connection(self, client, clinic_factory):
        clinic, owner = clinic_factory()
        before = engine.pool.checkedout()

        with client.websocket_connect(f"/api/clinic/stream?token={_token(owner)}"):
            assert app.state.change_feed.subscriber_count(clinic_topic(clinic.id)) == 1
            assert engine.pool.checkedout() == before
