from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, false, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Appointment(Base):
    """Written by the intake flow; this service only reads it and records calendar sync."""

    __tablename__ = "appointments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    # Free text as captured by the intake agent, e.g. "March 15" / "2:30 pm".
    appointment_date: Mapped[str | None] = mapped_column(String(100), nullable=True)
    appointment_time: Mapped[str | None] = mapped_column(String(100), nullable=True)
    confirmation_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    user_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_industry: Mapped[str | None] = mapped_column(String(100), nullable=True)
    user_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    user_service: Mapped[str | None] = mapped_column(String(255), nullable=True)
    calendar_synced: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    calendar_event_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    calendar_synced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
