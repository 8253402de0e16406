"""Seed the platform_admins table from PLATFORM_ADMIN_EMAILS.

Safe to run repeatedly: emails already present are left alone.

    PLATFORM_ADMIN_EMAILS=admin@talkserve.com,support@talkserve.ca python -m scripts.seed_platform_admins
"""

from app.core.config import settings
from app.core.observability import log_event, setup_observability
from app.db.session import SessionLocal
from app.services.platform_admin_service import seed_platform_admins


def main() -> None:
    setup_observability()
    db = SessionLocal()
    try:
        added = seed_platform_admins(db, settings.platform_admin_emails)
    finally:
        db.close()
    log_event(
        "platform_admins_seeded",
        requested=len(settings.platform_admin_emails),
        added=added,
    )


if __name__ == "__main__":
    main()
