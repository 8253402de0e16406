from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.id_utils import generate_shortuuid
from app.models.chat_experience import ChatExperience
from app.schemas.dashboard import SummaryIn


def save_summary(db: Session, payload: SummaryIn) -> tuple[ChatExperience, bool]:
    """Upsert on (customer, conversation date). Returns the row and whether it was created."""
    now = datetime.now(timezone.utc)
    conversation_date = payload.conversation_date or now.date().isoformat()

    row = db.execute(
        select(ChatExperience).where(
            ChatExperience.customer == payload.customer,
            ChatExperience.conversation_date == conversation_date,
        )
    ).scalars().first()
    created = row is None
    if created:
        row = ChatExperience(
            id=generate_shortuuid(),
            customer=payload.customer,
            conversation_date=conversation_date,
            created_at=now,
        )
        db.add(row)

    row.customer_name = payload.customer_name
    row.conversation_id = payload.conversation_id or f"{payload.customer}_{conversation_date}"
    row.summary = payload.summary
    row.customer_mood = payload.customer_mood
    row.sentiment = payload.sentiment
    row.key_topics = payload.key_topics
    row.rating = payload.rating
    row.type = payload.type
    row.updated_at = now
    return row, created


def list_summaries(db: Session, customer: str) -> list[ChatExperience]:
    return list(
        db.execute(
            select(ChatExperience)
            .where(ChatExperience.customer == customer)
            .order_by(ChatExperience.conversation_date.desc(), ChatExperience.updated_at.desc())
        ).scalars()
    )
