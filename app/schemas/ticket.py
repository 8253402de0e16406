from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import ConfigDict, Field, field_validator

from app.schemas.common import CamelModel, SuccessOut

TicketStatus = Literal["created", "assigned", "in-progress", "completed", "archived"]
TicketPriority = Literal["urgent", "normal", "low"]


def _required_text(value: str, name: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise ValueError(f"{name} is required")
    return cleaned


class TicketCreateIn(CamelModel):
    business_id: str
    guest_room: str = Field(max_length=40)
    request_text: str
    department: str = Field(max_length=60)
    priority: TicketPriority = "normal"

    @field_validator("business_id", "guest_room", "request_text", "department")
    @classmethod
    def validate_required(cls, value: str, info) -> str:
        return _required_text(value, info.field_name)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "businessId": "hotel-123",
                "guestRoom": "412",
                "requestText": "Two extra towels please",
                "department": "Housekeeping",
                "priority": "normal",
            }
        }
    )


class TicketUpdateIn(CamelModel):
    """Partial update; only keys present in the payload are applied."""

    business_id: str
    status: Optional[TicketStatus] = None
    assigned_to: Optional[str] = None
    priority: Optional[TicketPriority] = None
    notes: Optional[list[Any]] = None
    translations: Optional[dict[str, str]] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "businessId": "hotel-123",
                "status": "in-progress",
                "assignedTo": "user-42",
            }
        }
    )


class TicketOut(CamelModel):
    id: str
    business_id: str
    guest_room: str
    request_text: str
    department: str
    priority: str
    status: str
    assigned_to: str | None = None
    assigned_by: str | None = None
    assigned_by_name: str | None = None
    assigned_staff_name: str | None = None
    created_by: str
    notes: list[Any] = []
    translations: dict[str, str] = {}
    created_at: datetime
    updated_at: datetime


class TicketListOut(SuccessOut):
    tickets: list[TicketOut]


class TicketEnvelopeOut(SuccessOut):
    ticket: TicketOut


class TicketCreatedOut(TicketEnvelopeOut):
    ticket_id: str


class StaffMetricsOut(SuccessOut):
    completed_today: int
    avg_completion_time: int
    total_completed: int


class UserBusinessOut(CamelModel):
    id: str
    name: str
    type: str | None = None
    role: str
    department: str | None = None


class UserBusinessListOut(SuccessOut):
    businesses: list[UserBusinessOut]
