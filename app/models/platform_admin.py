from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class PlatformAdmin(Base):
    """Accounts allowed into the back-office, keyed by lower-cased email."""

    __tablename__ = "platform_admins"

    email: Mapped[str] = mapped_column(String(255), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
