from datetime import datetime
from typing import Literal, Optional

from pydantic import ConfigDict, EmailStr, Field, field_validator, model_validator

from app.schemas.common import CamelModel, SuccessOut

MemberRole = Literal["admin", "manager", "staff"]
MemberStatus = Literal["active", "inactive"]


def _clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


class TeamMemberOut(CamelModel):
    user_id: str
    business_id: str
    email: str
    full_name: str | None = None
    phone: str | None = None
    role: str
    department: str | None = None
    status: str
    preferred_language: str | None = None
    invite_code: str | None = None
    password_reset_at: datetime | None = None
    created_at: datetime | None = None


class TeamMemberListOut(SuccessOut):
    members: list[TeamMemberOut]


class TeamMemberEnvelopeOut(SuccessOut):
    member: TeamMemberOut


class TeamMemberCreateIn(CamelModel):
    business_id: str
    email: EmailStr
    full_name: str = Field(max_length=100)
    role: MemberRole = "staff"
    department: Optional[str] = Field(default=None, max_length=60)
    phone: Optional[str] = Field(default=None, max_length=40)
    preferred_language: Optional[str] = Field(default=None, max_length=10)

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("fullName is required")
        return cleaned

    @field_validator("department", "phone", "preferred_language")
    @classmethod
    def normalize_optional(cls, value: Optional[str]) -> Optional[str]:
        return _clean_optional(value)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "businessId": "hotel-123",
                "email": "maria@example.com",
                "fullName": "Maria Lopez",
                "role": "staff",
                "department": "housekeeping",
                "preferredLanguage": "es",
            }
        }
    )


class TeamMemberCreatedOut(TeamMemberEnvelopeOut):
    temporary_password: str


class TeamMemberUpdateIn(CamelModel):
    role: Optional[MemberRole] = None
    department: Optional[str] = Field(default=None, max_length=60)
    status: Optional[MemberStatus] = None
    full_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=40)
    preferred_language: Optional[str] = Field(default=None, max_length=10)

    @field_validator("department", "full_name", "phone", "preferred_language")
    @classmethod
    def normalize_optional(cls, value: Optional[str]) -> Optional[str]:
        return _clean_optional(value)

    @model_validator(mode="after")
    def validate_any_field_present(self) -> "TeamMemberUpdateIn":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class PasswordResetOut(SuccessOut):
    user_id: str
    new_password: str
    password_reset_at: datetime
