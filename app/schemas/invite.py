from datetime import datetime
from typing import Literal, Optional

from pydantic import ConfigDict, EmailStr, Field, field_validator, model_validator

from app.schemas.auth import validate_password_length
from app.schemas.common import CamelModel, SuccessOut
from app.schemas.team import MemberRole, TeamMemberOut

InviteState = Literal["pending", "used", "expired"]


class InviteCreateIn(CamelModel):
    business_id: str
    email: EmailStr
    role: MemberRole
    department: Optional[str] = Field(default=None, max_length=60)
    preferred_language: Optional[str] = Field(default=None, max_length=10)

    @field_validator("department", "preferred_language")
    @classmethod
    def normalize_optional(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None

    @model_validator(mode="after")
    def validate_department(self) -> "InviteCreateIn":
        if self.role in {"manager", "staff"} and not self.department:
            raise ValueError("department is required for manager and staff invites")
        if self.role == "admin":
            self.department = None
        return self

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "businessId": "hotel-123",
                "email": "new.staff@example.com",
                "role": "staff",
                "department": "Front Desk",
                "preferredLanguage": "es",
            }
        }
    )


class InviteOut(CamelModel):
    id: str
    code: str
    business_id: str
    email: str
    role: str
    department: str | None = None
    preferred_language: str | None = None
    invited_by_user_id: str
    expires_at: datetime
    used: bool
    used_at: datetime | None = None
    used_by: str | None = None
    created_at: datetime | None = None
    state: InviteState


class InviteCreatedOut(SuccessOut):
    invite: InviteOut
    invite_link: str
    email_status: str
    email_detail: str | None = None


class InviteListOut(SuccessOut):
    invites: list[InviteOut]


class InviteSummaryOut(CamelModel):
    email: str
    role: str
    department: str | None = None
    expires_at: datetime


class BusinessSummaryOut(CamelModel):
    id: str
    name: str
    type: str | None = None


class InviteValidationOut(SuccessOut):
    invite: InviteSummaryOut
    business: BusinessSummaryOut


class InviteAcceptIn(CamelModel):
    code: str
    business_id: str
    full_name: str = Field(max_length=100)
    password: str

    @field_validator("code", "business_id", "full_name")
    @classmethod
    def validate_required(cls, value: str, info) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError(f"{info.field_name} is required")
        return cleaned

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return validate_password_length(value)


class InviteAcceptedOut(SuccessOut):
    member: TeamMemberOut
    access_token: str
    token_type: str = "bearer"
