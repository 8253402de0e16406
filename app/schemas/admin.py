from datetime import datetime
from typing import Any, Optional

from pydantic import ConfigDict, Field

from app.schemas.common import CamelModel, SuccessOut


class OwnerOut(CamelModel):
    id: str
    uuid: str
    owner_name: str
    owner_email: str
    owner_phone: str | None = None
    business_name: str
    industry_type: str
    type: str | None = None
    status: str
    submitted_at: datetime | None = None
    assigned_number: str | None = None
    customers_count: int = 0
    total_messages: int = 0


class OwnerListOut(SuccessOut):
    owners: list[OwnerOut]
    total: int


class OwnerUpdateIn(CamelModel):
    owner_id: Optional[str] = None
    assigned_number: Optional[str] = Field(default=None, max_length=40)
    status: Optional[str] = Field(default=None, max_length=20)
    customers_count: Optional[int] = Field(default=None, ge=0)
    total_messages: Optional[int] = Field(default=None, ge=0)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "ownerId": "sub-123",
                "assignedNumber": "+1 555 0100",
                "status": "active",
            }
        }
    )


class OwnerEnvelopeOut(SuccessOut):
    owner: OwnerOut
    message: str


class AppointmentOut(CamelModel):
    id: str
    appointment_date: str | None = None
    appointment_time: str | None = None
    confirmation_method: str | None = None
    created_at: datetime | None = None
    user_email: str | None = None
    user_industry: str | None = None
    user_name: str | None = None
    user_phone: str | None = None
    user_service: str | None = None
    calendar_synced: bool = False
    calendar_event_id: str | None = None
    calendar_synced_at: datetime | None = None


class AppointmentListOut(SuccessOut):
    appointments: list[AppointmentOut]
    total: int


class CalendarSyncIn(CamelModel):
    appointment_ids: list[str] = []


class CalendarSyncItemOut(CamelModel):
    id: str
    success: bool
    error: str | None = None
    event_id: str | None = None


class CalendarSyncOut(SuccessOut):
    results: list[CalendarSyncItemOut]
    synced_count: int
    failed_count: int
    message: str


class WidgetScriptOut(SuccessOut):
    business_id: str
    script: str
    chat_widget_url: str


class WidgetStatusOut(SuccessOut):
    widget_active: bool
    business_name: str
    business_settings: dict[str, Any]


class WidgetStatusUpdateIn(CamelModel):
    uuid: str
    widget_active: bool
    business_settings: Optional[dict[str, Any]] = None
