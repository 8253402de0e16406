from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.business import Business
from app.models.business_member import BusinessMember


def resolve_membership(db: Session, business_id: str, user_id: str) -> BusinessMember | None:
    """Single primary-key read; unknown business and non-member look the same."""
    return db.get(BusinessMember, (business_id, user_id))


def get_business(db: Session, business_id: str) -> Business | None:
    return db.get(Business, business_id)


def member_display_name(member: BusinessMember | None) -> str | None:
    if member is None:
        return None
    return member.full_name or member.email


def member_name_map(db: Session, business_id: str) -> dict[str, str]:
    rows = db.execute(
        select(BusinessMember).where(BusinessMember.business_id == business_id)
    ).scalars()
    return {member.user_id: member_display_name(member) for member in rows}


def team_languages(db: Session, business_id: str) -> set[str]:
    rows = db.execute(
        select(BusinessMember.preferred_language).where(
            BusinessMember.business_id == business_id,
            BusinessMember.preferred_language.is_not(None),
        )
    ).scalars()
    return {language.strip().lower() for language in rows if language and language.strip()}
