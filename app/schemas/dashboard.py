from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import ConfigDict, Field, field_validator

from app.schemas.common import CamelModel, SuccessOut

AnalyticsPeriod = Literal["day", "week", "month"]


class OnboardingOut(CamelModel):
    id: str
    user_id: str
    business_id: str | None = None
    owner_name: str
    owner_email: str
    owner_phone: str | None = None
    business_name: str
    industry_type: str
    type: str | None = None
    website: str | None = None
    status: str
    assigned_number: str | None = None
    business_context_filename: str | None = None
    submitted_at: datetime | None = None
    updated_at: datetime | None = None


class OnboardingEnvelopeOut(SuccessOut):
    exists: bool = True
    document_id: str | None = None
    data: OnboardingOut | None = None


class BusinessContextIn(CamelModel):
    uid: str
    business_name: Optional[str] = Field(default=None, max_length=255)
    context: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "uid": "user-123",
                "businessName": "Seaside Hotel",
                "context": {"checkInTime": "3 PM", "parking": "Free valet"},
            }
        }
    )


class BusinessContextOut(SuccessOut):
    business_id: str | None = None
    business_name: str | None = None
    context: dict[str, Any] = Field(default_factory=dict)
    updated_at: datetime | None = None


class WidgetSettingsIn(CamelModel):
    uid: str
    settings: dict[str, Any] = Field(default_factory=dict)


class WidgetSettingsOut(SuccessOut):
    settings: dict[str, Any] = Field(default_factory=dict)
    updated_at: datetime | None = None


class ConversationMessageIn(CamelModel):
    direction: str = "incoming"
    message: str = ""
    created_at: Optional[str] = None


class SentimentIn(CamelModel):
    messages: list[ConversationMessageIn] = Field(default_factory=list)


class SentimentOut(SuccessOut):
    sentiment: str
    summary: str
    key_topics: list[str]
    customer_mood: str
    rating: int


class SummaryIn(CamelModel):
    customer: str = Field(max_length=60)
    customer_name: Optional[str] = Field(default=None, max_length=255)
    conversation_date: Optional[str] = None
    conversation_id: Optional[str] = Field(default=None, max_length=100)
    summary: Optional[str] = None
    customer_mood: Optional[str] = Field(default=None, max_length=100)
    sentiment: Optional[str] = Field(default=None, max_length=20)
    key_topics: Optional[list[str]] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    type: str = Field(default="Whatsapp agent", max_length=50)

    @field_validator("customer")
    @classmethod
    def validate_customer(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("customer is required")
        return cleaned

    @field_validator("conversation_date")
    @classmethod
    def validate_date(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        try:
            datetime.strptime(value, "%Y-%m-%d")
        except ValueError as exc:
            raise ValueError("conversationDate must be YYYY-MM-DD") from exc
        return value


class SummaryOut(CamelModel):
    id: str
    customer: str
    customer_name: str | None = None
    conversation_date: str
    conversation_id: str
    summary: str | None = None
    customer_mood: str | None = None
    sentiment: str | None = None
    key_topics: list[str] | None = None
    rating: int | None = None
    type: str
    created_at: datetime
    updated_at: datetime


class SummarySavedOut(SuccessOut):
    id: str
    created: bool
    summary: SummaryOut


class SummaryListOut(SuccessOut):
    summaries: list[SummaryOut]


class HourBucketOut(CamelModel):
    time: str
    count: int
    percentage: int


class AnalyticsDataOut(CamelModel):
    total_chats: int
    previous_total: int
    change: float
    peak_hour: str
    peak_day: str
    hourly_data: list[int]
    daily_data: list[int]
    weekly_data: list[int]
    mood_counts: dict[str, int]
    type_counts: dict[str, int]
    hourly_distribution: list[HourBucketOut]
    weekly_performance: list[int]


class AnalyticsOut(SuccessOut):
    period: AnalyticsPeriod
    data: AnalyticsDataOut
