import json
from typing import List, Union
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _parse_list(v: Union[str, List[str], None], *, name: str) -> List[str]:
    if v is None:
        return []
    if isinstance(v, str):
        if not v.strip():
            return []
        if v.startswith("["):
            parsed = json.loads(v)
            if not isinstance(parsed, list):
                raise ValueError(f"{name} JSON value must be a list")
            return [str(i).strip() for i in parsed if str(i).strip()]
        return [i.strip() for i in v.split(",") if i.strip()]
    if isinstance(v, list):
        return [str(i).strip() for i in v if str(i).strip()]
    raise ValueError(v)


class Settings(BaseSettings):
    app_name: str = "TalkServe Backend"
    env: str = "dev"
    secret_key: str
    access_token_expire_minutes: int = 60

    # DATABASE
    database_url: str
    db_pool_size: int = Field(default=10, ge=1, le=100)
    db_max_overflow: int = Field(default=20, ge=0, le=200)
    db_pool_timeout_seconds: int = Field(default=30, ge=1, le=300)
    db_pool_recycle_seconds: int = Field(default=1800, ge=30, le=86_400)

    # PLATFORM ADMINS (seed source for the platform_admins table)
    platform_admin_emails: List[str] = Field(default_factory=list)

    # AI
    ai_provider: str = "openai"
    ai_model: str = "gpt-4o-mini"
    ai_temperature: float = 0.2
    openai_api_key: str | None = None
    openai_base_url: str | None = None
    ticket_translation_enabled: bool = True
    ticket_translation_fallback_language: str = "es"

    # AUTH HARDENING
    auth_rate_limit_max_attempts: int = Field(default=5, ge=1)
    auth_rate_limit_window_seconds: int = Field(default=300, ge=1)
    auth_rate_limit_lock_seconds: int = Field(default=900, ge=1)

    # EMAIL
    email_service: str = "none"
    email_from: str = "noreply@talkserve.ai"
    resend_api_key: str | None = None
    sendgrid_api_key: str | None = None
    email_http_timeout_seconds: float = Field(default=15.0, gt=0)
    smtp_host: str | None = None
    smtp_port: int = Field(default=587, ge=1, le=65535)
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_reply_to_email: str | None = None
    smtp_use_starttls: bool = True
    smtp_use_ssl: bool = False

    # INVITES
    invite_web_base_url: str = "http://localhost:3000"
    invite_expiry_days: int = Field(default=7, ge=1, le=30)

    # CALENDAR
    calendar_connector_hostname: str | None = None
    calendar_connector_token: str | None = None
    calendar_id: str = "primary"
    calendar_time_zone: str = "America/New_York"
    calendar_http_timeout_seconds: float = Field(default=20.0, gt=0)

    # WIDGET
    widget_script_url: str = "https://talkserve.web.app/widget.js"
    chat_widget_url: str = "https://chat-ieskeqprjq-uc.a.run.app"

    # CORS
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    cors_origin_regex: str | None = None

    @field_validator("cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        return _parse_list(v, name="CORS_ORIGINS")

    @field_validator("platform_admin_emails", mode="before")
    @classmethod
    def assemble_platform_admin_emails(cls, v: Union[str, List[str]]) -> List[str]:
        return [email.lower() for email in _parse_list(v, name="PLATFORM_ADMIN_EMAILS")]

    @field_validator(
        "openai_api_key",
        "openai_base_url",
        "resend_api_key",
        "sendgrid_api_key",
        "smtp_host",
        "smtp_username",
        "smtp_password",
        "smtp_reply_to_email",
        "calendar_connector_hostname",
        "calendar_connector_token",
        mode="before",
    )
    @classmethod
    def normalize_optional_strings(cls, value: str | None) -> str | None:
        if value is None:
            return None
        cleaned = str(value).strip()
        return cleaned or None

    @field_validator("invite_web_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @model_validator(mode="after")
    def validate_production_safety(self) -> "Settings":
        env_value = self.env.lower().strip()
        if env_value not in {"prod", "production"}:
            return self

        weak_secrets = {
            "",
            "change_me",
            "change_me_please_to_a_long_random_string",
            "dev-secret-key-change-before-prod",
        }
        if self.secret_key.strip() in weak_secrets or len(self.secret_key.strip()) < 32:
            raise ValueError("SECRET_KEY must be a strong random value in production")

        if "*" in self.cors_origins:
            raise ValueError("CORS_ORIGINS cannot contain '*' in production")
        if self.cors_origin_regex:
            raise ValueError("CORS_ORIGIN_REGEX cannot be set in production")

        if self.smtp_use_ssl and self.smtp_use_starttls:
            raise ValueError("Set only one of SMTP_USE_SSL or SMTP_USE_STARTTLS in production")

        return self

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        enable_decoding=False,
    )


settings = Settings()
