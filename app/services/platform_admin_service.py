from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.platform_admin import PlatformAdmin


def is_platform_admin(db: Session, email: str) -> bool:
    return db.get(PlatformAdmin, email.strip().lower()) is not None


def seed_platform_admins(db: Session, emails: list[str]) -> list[str]:
    """Insert the missing admin emails; returns the ones that were added."""
    wanted = {email.strip().lower() for email in emails if email and email.strip()}
    existing = set(
        db.execute(select(PlatformAdmin.email).where(PlatformAdmin.email.in_(sorted(wanted)))).scalars()
    )
    added = sorted(wanted - existing)
    for email in added:
        db.add(PlatformAdmin(email=email))
    db.commit()
    return added
