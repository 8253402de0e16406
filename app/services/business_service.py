from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.id_utils import generate_shortuuid
from app.models.business import Business
from app.models.widget_settings import WidgetSettings


def owned_business(db: Session, owner_user_id: str) -> Business | None:
    return db.execute(
        select(Business)
        .where(Business.owner_user_id == owner_user_id)
        .order_by(Business.created_at.asc())
    ).scalars().first()


def save_business_context(
    db: Session,
    owner_user_id: str,
    *,
    business_name: str | None,
    context: dict[str, Any],
) -> Business:
    """Create or update the owner's business, merging context keys."""
    business = owned_business(db, owner_user_id)
    if business is None:
        business = Business(
            id=generate_shortuuid(),
            owner_user_id=owner_user_id,
            name=business_name or "My Business",
            context={},
        )
        db.add(business)
    elif business_name:
        business.name = business_name

    merged = dict(business.context or {})
    merged.update(context)
    merged["updatedAt"] = datetime.now(timezone.utc).isoformat()
    business.context = merged
    return business


def set_widget_status(
    db: Session,
    owner_user_id: str,
    *,
    widget_active: bool,
    business_settings: dict[str, Any] | None,
) -> Business | None:
    business = owned_business(db, owner_user_id)
    if business is None:
        return None
    business.widget_active = widget_active
    if business_settings is not None:
        merged = dict(business.context or {})
        merged.update(business_settings)
        business.context = merged
    return business


def save_widget_settings(db: Session, user_id: str, values: dict[str, Any]) -> WidgetSettings:
    row = db.get(WidgetSettings, user_id)
    if row is None:
        row = WidgetSettings(user_id=user_id, settings={})
        db.add(row)
    merged = dict(row.settings or {})
    merged.update(values)
    row.settings = merged
    row.updated_at = datetime.now(timezone.utc)
    return row
