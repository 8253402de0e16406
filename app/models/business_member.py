from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base

MEMBER_ROLES = ("admin", "manager", "staff")
DEPARTMENT_ROLES = {"manager", "staff"}
MEMBER_STATUSES = ("active", "inactive")


class BusinessMember(Base):
    __tablename__ = "business_members"

    business_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("businesses.id"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, server_default="staff")
    department: Mapped[str | None] = mapped_column(String(60), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, server_default="active")
    preferred_language: Mapped[str | None] = mapped_column(String(10), nullable=True)
    invite_code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    password_reset_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_business_members_user_id", "user_id"),
    )
