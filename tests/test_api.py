"""Tests for the calendar HTTP routes."""

from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs, urlparse

import httplib2
import pytest
from authlib.common.errors import AuthlibBaseError
from fastapi.testclient import TestClient
from googleapiclient.errors import HttpError

from calendar_bridge.api import create_app
from calendar_bridge.config import CalendarDefaults, OAuthConfig
from calendar_bridge.google import CALENDAR_SCOPES, AuthorizedClient, GoogleOAuth, TokenPair


@pytest.fixture
def oauth_config():
    return OAuthConfig(
        client_id="test-client-id.apps.googleusercontent.com",
        client_secret="test-client-secret",
        redirect_uri="http://localhost:3000/google-calendar/auth/callback",
    )


@pytest.fixture
def mock_session():
    with patch("calendar_bridge.google.oauth.OAuth2Session") as session_cls:
        yield session_cls.return_value


@pytest.fixture
def service():
    service = MagicMock()
    with patch.object(AuthorizedClient, "build_service", return_value=service):
        yield service


@pytest.fixture
def auth(oauth_config, mock_session):
    return GoogleOAuth(oauth_config)


@pytest.fixture
def api(auth, service):
    """Test client for an app with a configured, unauthorized manager."""
    return TestClient(create_app(auth=auth, defaults=CalendarDefaults()))


@pytest.fixture
def authorized_api(auth, api):
    auth.set_tokens(TokenPair("test-access-token"))
    return api


EVENT_BODY = {
    "summary": "Standup",
    "start": {"dateTime": "2025-01-01T09:00:00Z"},
    "end": {"dateTime": "2025-01-01T09:30:00Z"},
}


class TestAuthRoutes:
    """Test OAuth endpoints."""

    def test_auth_url(self, api):
        """Should return the consent URL."""
        response = api.get("/google-calendar/auth-url")
        assert response.status_code == 200
        params = parse_qs(urlparse(response.json()["authUrl"]).query)
        assert params["access_type"] == ["offline"]
        assert sorted(params["scope"][0].split()) == sorted(CALENDAR_SCOPES)

    def test_auth_url_unconfigured(self, service):
        """Should answer 503 when OAuth is not configured."""
        app = create_app(oauth_config=OAuthConfig(None, None, None), defaults=CalendarDefaults())
        response = TestClient(app).get("/google-calendar/auth-url")
        assert response.status_code == 503
        assert "not configured" in response.json()["detail"]

    def test_callback_exchanges_code(self, api, auth, mock_session):
        """Should exchange the code and report success."""
        mock_session.fetch_token.return_value = {"access_token": "abc", "expires_in": 3600}

        response = api.get("/google-calendar/auth/callback", params={"code": "code123"})

        assert response.status_code == 200
        assert response.json() == {"message": "Authentication successful"}
        assert auth.get_authorized_client().tokens.access_token == "abc"

    def test_callback_rejected_code(self, api, mock_session):
        """Should answer 400 with the upstream error."""
        mock_session.fetch_token.side_effect = AuthlibBaseError(
            error="invalid_grant", description="Bad Request"
        )

        response = api.get("/google-calendar/auth/callback", params={"code": "used"})

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_grant"

    def test_callback_requires_code(self, api):
        """Should reject a callback without a code."""
        assert api.get("/google-calendar/auth/callback").status_code == 422

    def test_set_tokens_and_status(self, api, auth):
        """Should store supplied tokens."""
        assert api.get("/google-calendar/auth/status").json() == {"status": "no_token"}

        response = api.post(
            "/google-calendar/auth/tokens",
            json={"access_token": "abc", "refresh_token": "def", "expires_at": 4102444800},
        )

        assert response.status_code == 200
        assert auth.get_authorized_client().tokens.refresh_token == "def"
        status = api.get("/google-calendar/auth/status").json()
        assert status["status"] == "valid"
        assert status["has_refresh_token"] is True


class TestCalendarRoutes:
    """Test calendar and event endpoints."""

    def test_requires_authorization(self, api, service):
        """Should answer 503 before tokens are set."""
        response = api.get("/google-calendar/calendars")
        assert response.status_code == 503
        assert service.method_calls == []

    def test_list_calendars(self, authorized_api, service):
        service.calendarList.return_value.list.return_value.execute.return_value = {
            "items": [{"id": "primary"}]
        }
        response = authorized_api.get("/google-calendar/calendars")
        assert response.status_code == 200
        assert response.json() == [{"id": "primary"}]

    def test_list_events_query(self, authorized_api, service):
        """Should forward query parameters."""
        events = service.events.return_value
        events.list.return_value.execute.return_value = {"items": []}

        response = authorized_api.get(
            "/google-calendar/events",
            params={"calendarId": "team@group", "timeMin": "2025-01-01T00:00:00Z", "maxResults": 5},
        )

        assert response.status_code == 200
        events.list.assert_called_once_with(
            calendarId="team@group",
            maxResults=5,
            singleEvents=True,
            orderBy="startTime",
            timeMin="2025-01-01T00:00:00Z",
        )

    def test_get_event_not_found(self, authorized_api, service):
        """Should pass the upstream status through."""
        service.events.return_value.get.return_value.execute.side_effect = HttpError(
            httplib2.Response({"status": 404}),
            b'{"error": {"code": 404, "message": "Not Found"}}',
        )

        response = authorized_api.get("/google-calendar/events/missing")

        assert response.status_code == 404
        assert response.json()["reason"] == "Not Found"

    def test_create_event(self, authorized_api, service):
        """Should create with a Meet link and no notifications by default."""
        events = service.events.return_value
        events.insert.return_value.execute.return_value = {"id": "evt123", "summary": "Standup"}

        response = authorized_api.post(
            "/google-calendar/events",
            json={**EVENT_BODY, "attendees": ["alice@acme.com"]},
        )

        assert response.status_code == 201
        assert response.json()["id"] == "evt123"
        kwargs = events.insert.call_args.kwargs
        assert kwargs["calendarId"] == "primary"
        assert kwargs["sendUpdates"] == "none"
        assert kwargs["conferenceDataVersion"] == 1
        assert kwargs["body"]["attendees"] == [{"email": "alice@acme.com"}]

    def test_create_event_without_meet(self, authorized_api, service):
        events = service.events.return_value
        events.insert.return_value.execute.return_value = {"id": "evt123"}

        response = authorized_api.post(
            "/google-calendar/events",
            params={"addGoogleMeet": "false", "sendNotifications": "true"},
            json=EVENT_BODY,
        )

        assert response.status_code == 201
        kwargs = events.insert.call_args.kwargs
        assert "conferenceDataVersion" not in kwargs
        assert kwargs["sendUpdates"] == "all"

    def test_create_event_invalid_body(self, authorized_api, service):
        """Should reject malformed date-times and emails."""
        bad_time = {**EVENT_BODY, "start": {"dateTime": "tomorrow"}}
        bad_email = {**EVENT_BODY, "attendees": ["not-an-email"]}

        assert authorized_api.post("/google-calendar/events", json=bad_time).status_code == 422
        assert authorized_api.post("/google-calendar/events", json=bad_email).status_code == 422
        service.events.return_value.insert.assert_not_called()

    def test_add_attendees(self, authorized_api, service):
        """Should append attendees and notify by default."""
        events = service.events.return_value
        events.get.return_value.execute.return_value = {
            "id": "evt1",
            "attendees": [{"email": "bob@acme.com"}],
        }
        events.update.return_value.execute.return_value = {"id": "evt1"}

        response = authorized_api.post(
            "/google-calendar/events/evt1/attendees",
            json={"attendees": ["alice@acme.com"]},
        )

        assert response.status_code == 200
        kwargs = events.update.call_args.kwargs
        assert kwargs["body"]["attendees"] == [
            {"email": "bob@acme.com"},
            {"email": "alice@acme.com"},
        ]
        assert kwargs["sendUpdates"] == "all"

    def test_add_google_meet(self, authorized_api, service):
        events = service.events.return_value
        events.get.return_value.execute.return_value = {"id": "evt1"}
        events.update.return_value.execute.return_value = {"id": "evt1", "hangoutLink": "x"}

        response = authorized_api.post(
            "/google-calendar/events/evt1/google-meet",
            params={"sendNotifications": "false"},
        )

        assert response.status_code == 200
        kwargs = events.update.call_args.kwargs
        assert kwargs["conferenceDataVersion"] == 1
        assert kwargs["sendUpdates"] == "none"

    def test_update_event(self, authorized_api, service):
        events = service.events.return_value
        events.update.return_value.execute.return_value = {"id": "evt1", "summary": "Standup"}

        response = authorized_api.put("/google-calendar/events/evt1", json=EVENT_BODY)

        assert response.status_code == 200
        events.update.assert_called_once_with(
            calendarId="primary",
            eventId="evt1",
            body=EVENT_BODY,
            sendUpdates="none",
        )

    def test_delete_event(self, authorized_api, service):
        service.events.return_value.delete.return_value.execute.return_value = ""

        response = authorized_api.delete(
            "/google-calendar/events/evt1", params={"calendarId": "team@group"}
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Event deleted successfully"}
        service.events.return_value.delete.assert_called_once_with(
            calendarId="team@group", eventId="evt1"
        )


class TestEndToEnd:
    """Authorization followed by event creation."""

    def test_authorize_then_create(self, api, mock_session, service):
        """Should authorize with a code and create on primary with a Meet link."""
        mock_session.fetch_token.return_value = {
            "access_token": "abc",
            "refresh_token": "def",
            "expires_in": 3600,
            "scope": " ".join(CALENDAR_SCOPES),
        }
        events = service.events.return_value
        events.insert.return_value.execute.return_value = {
            "id": "generated-id",
            "summary": "Standup",
            "hangoutLink": "https://meet.google.com/abc-defg-hij",
        }

        assert api.get("/google-calendar/auth-url").status_code == 200
        assert (
            api.get("/google-calendar/auth/callback", params={"code": "code123"}).status_code
            == 200
        )
        response = api.post("/google-calendar/events", json=EVENT_BODY)

        assert response.status_code == 201
        assert response.json()["id"] == "generated-id"
        events.insert.assert_called_once()
        kwargs = events.insert.call_args.kwargs
        assert kwargs["calendarId"] == "primary"
        assert kwargs["sendUpdates"] == "none"
        assert "createRequest" in kwargs["body"]["conferenceData"]

    def test_healthz(self, api):
        assert api.get("/healthz").json() == {"ok": True}
