from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base

# "assigned" and "archived" are accepted but no workflow produces them.
TICKET_STATUSES = ("created", "assigned", "in-progress", "completed", "archived")
TICKET_PRIORITIES = ("urgent", "normal", "low")


class Ticket(Base):
    __tablename__ = "tickets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    business_id: Mapped[str] = mapped_column(String(36), ForeignKey("businesses.id"), index=True)
    guest_room: Mapped[str] = mapped_column(String(40), nullable=False)
    request_text: Mapped[str] = mapped_column(Text, nullable=False)
    department: Mapped[str] = mapped_column(String(60), nullable=False)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, server_default="normal")
    status: Mapped[str] = mapped_column(String(20), nullable=False, server_default="created")
    assigned_to: Mapped[str | None] = mapped_column(String(36), nullable=True)
    assigned_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    assigned_by_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_by: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    notes: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)
    translations: Mapped[dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_tickets_business_assigned_to", "business_id", "assigned_to"),
        Index("ix_tickets_business_status_created_at", "business_id", "status", "created_at"),
    )
