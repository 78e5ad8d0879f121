import pytest
import requests
from django.core.management import call_command
from django.core.management.base import CommandError
from django.contrib.sessions.backends.db import SessionStore
from django.contrib.sessions.models import Session
from django.db import DatabaseError

from escorts.exceptions import UpstreamUnavailableError
from escorts.models import Escort
from escorts.services import activity
from escorts.services.escorts import EscortService
from escorts.services.primary_client import PrimaryApiClient

pytestmark = pytest.mark.django_db


def test_activity_counters_follow_api_calls(api_client, make_payload):
    api_client.session  # sets the session cookie
    created = api_client.post("/api/legacy/escort", make_payload(), format="json").json()["data"]
    api_client.get("/api/legacy/escort")
    api_client.get(f"/api/legacy/escort/{created['id']}")
    api_client.get("/api/legacy/escort/424242")
    stats = api_client.session[activity.SESSION_KEY]
    assert stats["api_submissions"] == 1
    assert stats["api_list_calls"] == 1
    assert stats["api_show_calls"] == 1
    assert stats["api_not_found_errors"] == 1
    assert stats["recent_submissions"][0]["submissionId"] == created["submissionId"]


def open_session():
    session = SessionStore()
    session.create()
    return session


def test_recent_submissions_are_bounded(rf, make_payload):
    request = rf.get("/")
    request.session = open_session()
    record = Escort(pk=1, submission_id="ESC_1_X")
    for _ in range(activity.RECENT_SUBMISSIONS_LIMIT + 5):
        activity.record_api_event("legacy", request=request, event="created", record=record)
    stats = request.session[activity.SESSION_KEY]
    assert stats["api_submissions"] == activity.RECENT_SUBMISSIONS_LIMIT + 5
    assert len(stats["recent_submissions"]) == activity.RECENT_SUBMISSIONS_LIMIT


def test_unknown_events_and_sessionless_requests_are_ignored(rf):
    request = rf.get("/")
    activity.record_api_event("primary", request=request, event="created")
    request.session = open_session()
    activity.record_api_event("primary", request=request, event="exploded")
    assert activity.SESSION_KEY not in request.session


def test_cookieless_calls_create_no_session_rows(api_client):
    for _ in range(5):
        api_client.get("/api/legacy/escort")
    assert Session.objects.count() == 0


def test_events_without_a_session_key_are_not_recorded(rf):
    request = rf.get("/")
    request.session = SessionStore()
    activity.record_api_event("legacy", request=request, event="listed")
    assert request.session.session_key is None
    assert activity.SESSION_KEY not in request.session


def test_session_stats_starts_tracking(api_client, monkeypatch):
    monkeypatch.setattr(PrimaryApiClient, "dashboard_stats", lambda self, headers=None: {"data": {}})
    first = api_client.get("/api/session-stats").json()
    assert first["data"]["sessionStats"]["api_list_calls"] == 0
    api_client.get("/api/legacy/escort")
    again = api_client.get("/api/session-stats").json()
    assert again["data"]["sessionStats"]["api_list_calls"] == 1
    assert Session.objects.count() == 1


def test_primary_process_keeps_no_session_counters():
    from igd import settings_primary

    assert settings_primary.ESCORT_SESSION_ACTIVITY is False


def test_combined_stats(api_client, monkeypatch, make_payload):
    api_client.session  # sets the session cookie
    api_client.post("/api/legacy/escort", make_payload(), format="json")
    seen = {}

    def fake_stats(self, headers=None):
        seen["headers"] = headers
        return {"status": "success", "data": {"totalEscorts": 7}}

    monkeypatch.setattr(PrimaryApiClient, "dashboard_stats", fake_stats)
    resp = api_client.get("/api/session-stats", HTTP_AUTHORIZATION="Token k3y")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "success"
    assert body["data"]["primaryApiStats"] == {"totalEscorts": 7}
    assert body["data"]["sessionStats"]["api_submissions"] == 1
    assert seen["headers"] == {"Authorization": "Token k3y"}


def test_combined_stats_partial_when_primary_down(api_client, monkeypatch):
    def down(self, headers=None):
        raise UpstreamUnavailableError()

    monkeypatch.setattr(PrimaryApiClient, "dashboard_stats", down)
    resp = api_client.get("/api/session-stats")
    assert resp.status_code == 502
    body = resp.json()
    assert body["status"] == "error"
    assert body["message"] == "Primary API stats unavailable, returning local stats only"
    assert body["data"]["primaryApiStats"] is None
    assert body["data"]["sessionStats"]["api_submissions"] == 0


def test_health_reports_database_failure(client, monkeypatch):
    from django.db import connections

    class BrokenCursor:
        def __enter__(self):
            raise DatabaseError("could not connect")

        def __exit__(self, *exc):
            return False

    monkeypatch.setattr(connections["default"], "cursor", lambda: BrokenCursor())
    resp = client.get("/api/health")
    assert resp.status_code == 503
    body = resp.json()
    assert body["status"] == "error"
    assert "could not connect" not in resp.content.decode()


def test_unknown_route_renders_envelope(client, settings):
    settings.DEBUG = False
    resp = client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.json() == {"status": "error", "message": "Resource not found"}


# ----------------------------------------------------------------- primary client

def test_probe_requires_2xx(monkeypatch):
    def answer(status):
        def get(self, url, timeout=None):
            resp = requests.Response()
            resp.status_code = status
            return resp
        return get

    client = PrimaryApiClient(base_url="http://primary.test")
    monkeypatch.setattr(requests.Session, "get", answer(204))
    assert client.is_available() is True
    monkeypatch.setattr(requests.Session, "get", answer(503))
    assert client.is_available() is False


def test_probe_timeout_is_unavailable(monkeypatch, settings):
    settings.PRIMARY_API_TIMEOUT = 0.5
    seen = {}

    def slow(self, url, timeout=None):
        seen["url"], seen["timeout"] = url, timeout
        raise requests.Timeout("read timed out")

    monkeypatch.setattr(requests.Session, "get", slow)
    assert PrimaryApiClient(base_url="http://primary.test/").is_available() is False
    assert seen == {"url": "http://primary.test/api/health", "timeout": 0.5}


# ----------------------------------------------------------------- commands

def test_populate_escorts_is_idempotent():
    call_command("populate_escorts")
    call_command("populate_escorts")
    assert Escort.objects.count() == 8
    assert Escort.objects.filter(escort_category="ambulance").count() == 3


def test_check_primary_api_reports_failures(monkeypatch):
    def down(self, *args, **kwargs):
        raise UpstreamUnavailableError()

    monkeypatch.setattr(PrimaryApiClient, "health", down)
    with pytest.raises(CommandError):
        call_command("check_primary_api", "--count=2", "--delay=0")


def test_check_primary_api_success(monkeypatch):
    monkeypatch.setattr(PrimaryApiClient, "health", lambda self: {"status": "success"})
    monkeypatch.setattr(PrimaryApiClient, "dashboard_stats", lambda self, headers=None: {"status": "success"})
    monkeypatch.setattr(PrimaryApiClient, "list_escorts", lambda self, params=None, headers=None: {"status": "success"})
    call_command("check_primary_api", "--count=1", "--token=abc")


def test_unexpected_error_renders_generic_envelope(api_client, monkeypatch):
    def boom(self):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(EscortService, "dashboard_stats", boom)
    resp = api_client.get("/api/legacy/dashboard/stats")
    assert resp.status_code == 500
    assert resp.json() == {"status": "error", "message": "Internal server error"}
