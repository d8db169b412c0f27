"""
Integration tests for the notification check endpoint.
"""

from unittest.mock import AsyncMock, Mock

import pytest

from main import app
from services.notification_service import NotificationDispatcher, build_notification_dispatcher


@pytest.fixture
def dispatcher(client):
    mock_dispatcher = Mock(spec=NotificationDispatcher)
    mock_dispatcher.test_connection = AsyncMock(return_value={"ok": True})
    app.dependency_overrides[build_notification_dispatcher] = lambda: mock_dispatcher
    return mock_dispatcher


class TestNotificationCheck:
    def test_owner_sends_test_notification(self, client, dispatcher, clinic_factory, auth_headers):
        _, owner = clinic_factory()

        response = client.post("/api/clinic/notifications/test", headers=auth_headers(owner))

        assert response.status_code == 200
        assert response.json() == {"delivered": True}
        dispatcher.test_connection.assert_awaited_once()

    def test_reports_undelivered(self, client, dispatcher, clinic_factory, auth_headers):
        _, owner = clinic_factory()
        dispatcher.test_connection.return_value = None

        response = client.post("/api/clinic/notifications/test", headers=auth_headers(owner))

        assert response.status_code == 200
        assert response.json() == {"delivered": False}

    def test_unconfigured_channels_are_not_delivered(self, client, clinic_factory, auth_headers):
        _, owner = clinic_factory()

        response = client.post("/api/clinic/notifications/test", headers=auth_headers(owner))

        assert response.json() == {"delivered": False}

    @pytest.mark.parametrize("role", ["manager", "doctor"])
    def test_only_owner_may_send(self, client, dispatcher, clinic_factory, staff_factory, auth_headers, role):
        clinic, _ = clinic_factory()
        member = staff_factory(clinic, role)

        response = client.post("/api/clinic/notifications/test", headers=auth_headers(member))

        assert response.status_code == 403
        dispatcher.test_connection.assert_not_called()

    def test_requires_authentication(self, client):
        response = client.post("/api/clinic/notifications/test")
        assert response.status_code == 401
