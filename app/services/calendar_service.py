import logging
import re
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

import httpx
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.observability import log_event
from app.models.appointment import Appointment

GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"
CONNECTOR_PATH = "/api/v2/connection?include_secrets=true&connector_names=google-calendar"

_MONTHS = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
}
_DATE_RE = re.compile(r"(\w+)\s+(\d+)", re.IGNORECASE)
_TIME_RE = re.compile(r"(\d+):(\d+)\s*(am|pm)?", re.IGNORECASE)


class CalendarError(RuntimeError):
    pass


class CalendarNotConfiguredError(CalendarError):
    pass


class CalendarClient(Protocol):
    def create_event(self, event: dict[str, Any]) -> dict[str, Any]:
        ...


@dataclass
class _CachedToken:
    access_token: str
    expires_at: datetime | None


def _parse_expiry(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        if isinstance(value, (int, float)):
            # Connector timestamps come in milliseconds.
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except (ValueError, OverflowError, OSError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _json_object(response: httpx.Response, source: str) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError as exc:
        raise CalendarError(f"{source} returned an unreadable response") from exc
    if not isinstance(body, dict):
        raise CalendarError(f"{source} returned an unreadable response")
    return body


class GoogleCalendarClient:
    """Google Calendar v3 client authorised through the connector service.

    The access token is fetched on first use and reused until its
    ``expires_at`` passes. A token without an expiry is fetched again on every
    call.
    """

    def __init__(
        self,
        *,
        connector_hostname: str,
        connector_token: str,
        calendar_id: str = "primary",
        timeout_seconds: float = 20.0,
        http_client: httpx.Client | None = None,
    ):
        self.connector_hostname = connector_hostname
        self.connector_token = connector_token
        self.calendar_id = calendar_id
        self._http = http_client or httpx.Client(timeout=timeout_seconds)
        self._token: _CachedToken | None = None
        self._lock = threading.Lock()

    def _fetch_token(self) -> _CachedToken:
        response = self._http.get(
            f"https://{self.connector_hostname}{CONNECTOR_PATH}",
            headers={"Accept": "application/json", "X_REPLIT_TOKEN": self.connector_token},
        )
        response.raise_for_status()
        items = _json_object(response, "Calendar connector").get("items") or []
        connection_settings = (items[0] if items else {}).get("settings") or {}
        access_token = connection_settings.get("access_token") or (
            ((connection_settings.get("oauth") or {}).get("credentials") or {}).get("access_token")
        )
        if not access_token:
            raise CalendarError("Google Calendar not connected")
        return _CachedToken(
            access_token=access_token,
            expires_at=_parse_expiry(connection_settings.get("expires_at")),
        )

    def access_token(self) -> str:
        with self._lock:
            now = datetime.now(timezone.utc)
            cached = self._token
            if cached is None or cached.expires_at is None or cached.expires_at <= now:
                cached = self._fetch_token()
                self._token = cached
            return cached.access_token

    def create_event(self, event: dict[str, Any]) -> dict[str, Any]:
        response = self._http.post(
            f"{GOOGLE_CALENDAR_API}/calendars/{self.calendar_id}/events",
            headers={"Authorization": f"Bearer {self.access_token()}"},
            json=event,
        )
        if response.status_code >= 400:
            raise CalendarError(f"Calendar API returned {response.status_code}")
        return _json_object(response, "Calendar API")


_client: GoogleCalendarClient | None = None
_client_lock = threading.Lock()


def get_calendar_client() -> CalendarClient:
    """FastAPI dependency; raises CalendarNotConfiguredError without connector settings."""
    global _client
    if not settings.calendar_connector_hostname or not settings.calendar_connector_token:
        raise CalendarNotConfiguredError("Google Calendar connector is not configured")
    with _client_lock:
        if _client is None:
            _client = GoogleCalendarClient(
                connector_hostname=settings.calendar_connector_hostname,
                connector_token=settings.calendar_connector_token,
                calendar_id=settings.calendar_id,
                timeout_seconds=settings.calendar_http_timeout_seconds,
            )
        return _client


def parse_appointment_datetime(
    date_text: str | None,
    time_text: str | None,
    *,
    year: int | None = None,
) -> tuple[datetime, datetime] | None:
    """Parse free text like ("March 15", "2:30 pm") into a one-hour slot.

    The year is the current one; a missing or unreadable time means 09:00.
    Returns None when the date cannot be read.
    """
    date_match = _DATE_RE.search(date_text or "")
    if not date_match:
        return None
    month = _MONTHS.get(date_match.group(1).lower())
    if month is None:
        return None
    day = int(date_match.group(2))

    hours, minutes = 9, 0
    time_match = _TIME_RE.search(time_text or "")
    if time_match:
        hours = int(time_match.group(1))
        minutes = int(time_match.group(2))
        meridiem = (time_match.group(3) or "").lower()
        if meridiem == "pm" and hours != 12:
            hours += 12
        if meridiem == "am" and hours == 12:
            hours = 0

    try:
        start = datetime(year or datetime.now().year, month, day, hours, minutes)
    except ValueError:
        return None
    return start, start + timedelta(hours=1)


def build_event(appointment: Appointment, start: datetime, end: datetime) -> dict[str, Any]:
    description = "\n".join(
        [
            f"Service: {appointment.user_service or 'N/A'}",
            f"Phone: {appointment.user_phone or 'N/A'}",
            f"Email: {appointment.user_email or 'N/A'}",
            f"Industry: {appointment.user_industry or 'N/A'}",
            f"Confirmation Method: {appointment.confirmation_method or 'N/A'}",
        ]
    )
    return {
        "summary": f"TalkServe Appointment: {appointment.user_name or 'Customer'}",
        "description": description,
        "start": {"dateTime": start.isoformat(), "timeZone": settings.calendar_time_zone},
        "end": {"dateTime": end.isoformat(), "timeZone": settings.calendar_time_zone},
        "attendees": [{"email": appointment.user_email}] if appointment.user_email else [],
        "reminders": {
            "useDefault": False,
            "overrides": [
                {"method": "email", "minutes": 24 * 60},
                {"method": "popup", "minutes": 30},
            ],
        },
    }


def sync_appointments(
    db: Session,
    appointment_ids: list[str],
    client: CalendarClient,
) -> list[dict[str, Any]]:
    """Push appointments to the calendar one by one; a failure only affects its own item."""
    results: list[dict[str, Any]] = []
    for appointment_id in appointment_ids:
        appointment = db.get(Appointment, appointment_id)
        if appointment is None:
            results.append({"id": appointment_id, "success": False, "error": "Appointment not found"})
            continue
        if appointment.calendar_synced:
            results.append(
                {"id": appointment_id, "success": True, "event_id": appointment.calendar_event_id}
            )
            continue

        slot = parse_appointment_datetime(appointment.appointment_date, appointment.appointment_time)
        if slot is None:
            results.append(
                {"id": appointment_id, "success": False, "error": "Could not parse date/time"}
            )
            continue

        try:
            created = client.create_event(build_event(appointment, *slot))
        except (CalendarError, httpx.HTTPError) as exc:
            log_event(
                "calendar_sync_failed",
                level=logging.WARNING,
                appointment_id=appointment_id,
                error=str(exc),
            )
            results.append({"id": appointment_id, "success": False, "error": str(exc)})
            continue

        appointment.calendar_synced = True
        appointment.calendar_event_id = created.get("id")
        appointment.calendar_synced_at = datetime.now(timezone.utc)
        db.commit()
        results.append({"id": appointment_id, "success": True, "event_id": appointment.calendar_event_id})
    return results


def sync_message(synced: int, failed: int) -> str:
    message = f"Synced {synced} appointments"
    if failed:
        message += f", {failed} failed"
    return message
