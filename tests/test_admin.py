import json

import httpx
import pytest
from helpers import auth_headers, create_business, me, register

from app.core.config import settings
from app.main import app
from app.models.appointment import Appointment
from app.models.business import Business
from app.models.onboarding import OnboardingSubmission
from app.models.platform_admin import PlatformAdmin
from app.routers.admin import get_sync_calendar_client
from app.services.calendar_service import CalendarError, GoogleCalendarClient
from app.services.platform_admin_service import seed_platform_admins


class FakeCalendarClient:
    def __init__(self, fail_for: set[str] | None = None):
        self.events: list[dict] = []
        self.fail_for = fail_for or set()

    def create_event(self, event):
        if event["summary"].endswith(tuple(self.fail_for)):
            raise CalendarError("Calendar API returned 500")
        self.events.append(event)
        return {"id": f"evt-{len(self.events)}"}


@pytest.fixture()
def admin_headers(test_context):
    client, session_local = test_context
    with session_local() as db:
        db.add(PlatformAdmin(email="ops@talkserve.example.com"))
        db.commit()
    token = register(client, email="Ops@TalkServe.example.com", full_name="Ops")
    return auth_headers(token)


def _seed_owner(session_local, *, user_id="owner-1", submission_id="sub-1"):
    with session_local() as db:
        db.add(
            OnboardingSubmission(
                id=submission_id,
                user_id=user_id,
                owner_name="Olivia Owner",
                owner_email="olivia@example.com",
                business_name="Harbor Inn",
                industry_type="hotel",
                type="hotel",
                status="pending",
            )
        )
        db.commit()


def _seed_appointments(session_local, rows):
    with session_local() as db:
        for row in rows:
            db.add(Appointment(**row))
        db.commit()


def test_admin_routes_require_platform_admin(test_context):
    client, _ = test_context
    token = register(client, email="someone@example.com", full_name="Someone")
    for path in ("/admin/owners", "/admin/appointments"):
        res = client.get(path, headers=auth_headers(token))
        assert res.status_code == 403
        assert res.json()["error"] == "Admin access required"

    assert client.get("/admin/owners").status_code == 401


def test_list_and_update_owners(test_context, admin_headers):
    client, session_local = test_context
    _seed_owner(session_local)

    res = client.get("/admin/owners", headers=admin_headers)
    assert res.status_code == 200
    body = res.json()
    assert body["total"] == 1
    owner = body["owners"][0]
    assert owner["uuid"] == "owner-1"
    assert owner["status"] == "pending"
    assert owner["customersCount"] == 0

    updated = client.put(
        "/admin/owners",
        json={"ownerId": "sub-1", "assignedNumber": "+1 555 0100", "status": "active", "totalMessages": 12},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    owner = updated.json()["owner"]
    assert owner["assignedNumber"] == "+1 555 0100"
    assert owner["status"] == "active"
    assert owner["totalMessages"] == 12
    assert updated.json()["message"] == "Owner updated successfully"

    missing_id = client.put("/admin/owners", json={"status": "active"}, headers=admin_headers)
    assert missing_id.status_code == 400
    assert missing_id.json()["error"] == "Owner ID is required"

    unknown = client.put("/admin/owners", json={"ownerId": "nope", "status": "active"}, headers=admin_headers)
    assert unknown.status_code == 404


def test_list_appointments(test_context, admin_headers):
    client, session_local = test_context
    _seed_appointments(
        session_local,
        [{"id": "apt-1", "appointment_date": "March 15", "appointment_time": "2:30 pm", "user_name": "Ann"}],
    )
    res = client.get("/admin/appointments", headers=admin_headers)
    assert res.status_code == 200
    body = res.json()
    assert body["total"] == 1
    assert body["appointments"][0]["appointmentDate"] == "March 15"
    assert body["appointments"][0]["calendarSynced"] is False


def test_sync_calendar_reports_each_item(test_context, admin_headers):
    client, session_local = test_context
    _seed_appointments(
        session_local,
        [
            {
                "id": "apt-ok",
                "appointment_date": "March 15",
                "appointment_time": "2:30 pm",
                "user_name": "Ann",
                "user_email": "ann@example.com",
            },
            {"id": "apt-bad-date", "appointment_date": "someday", "user_name": "Bob"},
            {
                "id": "apt-done",
                "appointment_date": "April 2",
                "calendar_synced": True,
                "calendar_event_id": "evt-old",
            },
            {"id": "apt-api-error", "appointment_date": "May 1", "user_name": "Broken"},
        ],
    )
    fake = FakeCalendarClient(fail_for={"Broken"})
    app.dependency_overrides[get_sync_calendar_client] = lambda: fake

    res = client.post(
        "/admin/appointments/sync-calendar",
        json={"appointmentIds": ["apt-ok", "apt-bad-date", "apt-done", "missing", "apt-api-error"]},
        headers=admin_headers,
    )
    assert res.status_code == 200
    body = res.json()
    results = {item["id"]: item for item in body["results"]}
    assert [item["id"] for item in body["results"]] == [
        "apt-ok",
        "apt-bad-date",
        "apt-done",
        "missing",
        "apt-api-error",
    ]
    assert results["apt-ok"] == {"id": "apt-ok", "success": True, "error": None, "eventId": "evt-1"}
    assert results["apt-bad-date"]["error"] == "Could not parse date/time"
    assert results["apt-done"]["success"] is True
    assert results["apt-done"]["eventId"] == "evt-old"
    assert results["missing"]["error"] == "Appointment not found"
    assert results["apt-api-error"]["success"] is False
    assert body["syncedCount"] == 2
    assert body["failedCount"] == 3
    assert body["message"] == "Synced 2 appointments, 3 failed"

    [event] = fake.events
    assert event["summary"] == "TalkServe Appointment: Ann"
    assert event["start"]["dateTime"].endswith("-03-15T14:30:00")
    assert event["end"]["dateTime"].endswith("-03-15T15:30:00")
    assert event["start"]["timeZone"] == settings.calendar_time_zone
    assert event["attendees"] == [{"email": "ann@example.com"}]
    assert "Service: N/A" in event["description"]

    with session_local() as db:
        synced = db.get(Appointment, "apt-ok")
        assert synced.calendar_synced is True
        assert synced.calendar_event_id == "evt-1"
        assert db.get(Appointment, "apt-api-error").calendar_synced is False

    again = client.post(
        "/admin/appointments/sync-calendar", json={"appointmentIds": ["apt-ok"]}, headers=admin_headers
    )
    assert again.json()["results"][0]["eventId"] == "evt-1"
    assert len(fake.events) == 1


def test_sync_calendar_needs_ids_and_configuration(test_context, admin_headers, monkeypatch):
    client, _ = test_context
    monkeypatch.setattr(settings, "calendar_connector_hostname", None)
    monkeypatch.setattr(settings, "calendar_connector_token", None)

    unconfigured = client.post(
        "/admin/appointments/sync-calendar", json={"appointmentIds": ["apt-1"]}, headers=admin_headers
    )
    assert unconfigured.status_code == 503
    assert unconfigured.json()["code"] == "service_unavailable"

    app.dependency_overrides[get_sync_calendar_client] = lambda: FakeCalendarClient()
    empty = client.post("/admin/appointments/sync-calendar", json={"appointmentIds": []}, headers=admin_headers)
    assert empty.status_code == 400
    assert empty.json()["error"] == "No appointments selected"


def test_sync_calendar_treats_transport_errors_per_item(test_context, admin_headers):
    client, session_local = test_context
    _seed_appointments(session_local, [{"id": "apt-1", "appointment_date": "June 3", "appointment_time": "10:00"}])

    class OfflineClient:
        def create_event(self, event):
            raise httpx.ConnectError("offline")

    app.dependency_overrides[get_sync_calendar_client] = lambda: OfflineClient()
    res = client.post("/admin/appointments/sync-calendar", json={"appointmentIds": ["apt-1"]}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["results"][0] == {"id": "apt-1", "success": False, "error": "offline", "eventId": None}


def test_sync_calendar_survives_unreadable_calendar_reply(test_context, admin_headers):
    client, session_local = test_context
    _seed_appointments(
        session_local,
        [
            {"id": "apt-1", "appointment_date": "June 3", "appointment_time": "10:00", "user_name": "Gateway"},
            {"id": "apt-2", "appointment_date": "June 4", "appointment_time": "11:00", "user_name": "Ann"},
        ],
    )

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "connectors.example.com":
            return httpx.Response(200, json={"items": [{"settings": {"access_token": "tok"}}]})
        if json.loads(request.content)["summary"].endswith("Gateway"):
            return httpx.Response(200, text="<html>gateway</html>")
        return httpx.Response(200, json={"id": "evt-2"})

    calendar = GoogleCalendarClient(
        connector_hostname="connectors.example.com",
        connector_token="repl-token",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )
    app.dependency_overrides[get_sync_calendar_client] = lambda: calendar

    res = client.post(
        "/admin/appointments/sync-calendar",
        json={"appointmentIds": ["apt-1", "apt-2"]},
        headers=admin_headers,
    )
    assert res.status_code == 200
    first, second = res.json()["results"]
    assert first["success"] is False
    assert first["error"] == "Calendar API returned an unreadable response"
    assert second == {"id": "apt-2", "success": True, "error": None, "eventId": "evt-2"}
    with session_local() as db:
        assert db.get(Appointment, "apt-1").calendar_synced is False
        assert db.get(Appointment, "apt-2").calendar_event_id == "evt-2"


def test_widget_script(test_context, admin_headers):
    client, _ = test_context
    res = client.get("/admin/widget-script", params={"businessId": 'biz"1'}, headers=admin_headers)
    assert res.status_code == 200
    body = res.json()
    assert body["businessId"] == 'biz"1'
    config = json.dumps({"businessId": 'biz"1'})
    assert f"window.AIVoiceWidgetConfig = {config};" in body["script"]
    assert settings.widget_script_url in body["script"]
    assert body["chatWidgetUrl"] == settings.chat_widget_url


def test_widget_status(test_context, admin_headers):
    client, session_local = test_context
    owner_token = register(client, email="owner@example.com", full_name="Olivia")
    owner_id = me(client, owner_token)["id"]

    empty = client.get("/admin/widget-status", params={"uuid": owner_id}, headers=admin_headers)
    assert empty.json() == {
        "success": True,
        "widgetActive": False,
        "businessName": "",
        "businessSettings": {},
    }

    missing = client.put(
        "/admin/widget-status", json={"uuid": owner_id, "widgetActive": True}, headers=admin_headers
    )
    assert missing.status_code == 404

    business_id = create_business(session_local, owner_id=owner_id, name="Harbor Inn")
    with session_local() as db:
        db.get(Business, business_id).context = {"greeting": "Hi"}
        db.commit()

    res = client.put(
        "/admin/widget-status",
        json={"uuid": owner_id, "widgetActive": True, "businessSettings": {"color": "teal"}},
        headers=admin_headers,
    )
    assert res.status_code == 200
    assert res.json()["widgetActive"] is True
    assert res.json()["businessSettings"] == {"greeting": "Hi", "color": "teal"}

    current = client.get("/admin/widget-status", params={"uuid": owner_id}, headers=admin_headers)
    assert current.json()["businessName"] == "Harbor Inn"
    assert current.json()["widgetActive"] is True


def test_seed_platform_admins_is_idempotent(test_context):
    client, session_local = test_context
    with session_local() as db:
        assert seed_platform_admins(db, ["Boss@TalkServe.example.com", " ", "ops@talkserve.example.com"]) == [
            "boss@talkserve.example.com",
            "ops@talkserve.example.com",
        ]
        assert seed_platform_admins(db, ["boss@talkserve.example.com"]) == []

    token = register(client, email="boss@talkserve.example.com", full_name="Boss")
    assert client.get("/admin/owners", headers=auth_headers(token)).status_code == 200
    assert me(client, token)["isPlatformAdmin"] is True
