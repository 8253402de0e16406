from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from app.core.id_utils import generate_shortuuid
from app.models.business_member import BusinessMember
from app.models.ticket import Ticket
from app.schemas.ticket import TicketCreateIn, TicketUpdateIn
from app.services import ai_service
from app.services.membership_service import resolve_membership, team_languages


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_department(value: str | None) -> str:
    """'Front-Desk', 'front desk' and ' FRONTDESK ' all compare equal."""
    if not value:
        return ""
    return value.strip().lower().replace(" ", "").replace("-", "")


def _normalized_department_column() -> ColumnElement:
    return func.lower(func.replace(func.replace(Ticket.department, " ", ""), "-", ""))


def visibility_clauses(
    member: BusinessMember,
    *,
    department: str | None = None,
    status: str | None = None,
) -> list[ColumnElement]:
    """WHERE clauses for the tickets a member may list, given optional filters."""
    role = (member.role or "").lower()
    clauses: list[ColumnElement] = [Ticket.business_id == member.business_id]

    if role == "staff":
        clauses.append(Ticket.assigned_to == member.user_id)
    elif role == "manager":
        wanted = normalize_department(department or member.department)
        clauses.append(_normalized_department_column() == wanted)
    elif role == "admin":
        if department:
            clauses.append(_normalized_department_column() == normalize_department(department))
    else:
        clauses.append(Ticket.id.is_(None))

    if status and status.lower() != "all":
        clauses.append(Ticket.status == status)
    return clauses


def list_visible_tickets(
    db: Session,
    member: BusinessMember,
    *,
    department: str | None = None,
    status: str | None = None,
) -> list[Ticket]:
    return list(
        db.execute(
            select(Ticket)
            .where(*visibility_clauses(member, department=department, status=status))
            .order_by(Ticket.created_at.desc())
        ).scalars()
    )


def get_ticket(db: Session, business_id: str, ticket_id: str) -> Ticket | None:
    return db.execute(
        select(Ticket).where(Ticket.id == ticket_id, Ticket.business_id == business_id)
    ).scalar_one_or_none()


def create_ticket(db: Session, payload: TicketCreateIn, *, created_by: str) -> Ticket:
    now = utcnow()
    languages = ai_service.translation_targets(team_languages(db, payload.business_id))
    ticket = Ticket(
        id=generate_shortuuid(),
        business_id=payload.business_id,
        guest_room=payload.guest_room,
        request_text=payload.request_text,
        department=payload.department,
        priority=payload.priority,
        status="created",
        assigned_to=None,
        created_by=created_by,
        notes=[],
        translations=ai_service.translate_ticket_text(payload.request_text, languages),
        created_at=now,
        updated_at=now,
    )
    db.add(ticket)
    return ticket


def apply_update(db: Session, ticket: Ticket, payload: TicketUpdateIn, *, actor: BusinessMember) -> Ticket:
    """Apply the keys present in ``payload``; last write wins.

    Raises PermissionError for a forbidden status change and ValueError for an
    assignee outside the business.
    """
    fields = payload.model_fields_set

    if "status" in fields and payload.status is not None:
        if (actor.role or "").lower() == "staff" and payload.status == "created":
            raise PermissionError("Staff cannot create/reset tickets")
        ticket.status = payload.status

    if "assigned_to" in fields:
        if payload.assigned_to is not None and resolve_membership(
            db, ticket.business_id, payload.assigned_to
        ) is None:
            raise ValueError("Assignee is not a member of this business")
        ticket.assigned_to = payload.assigned_to
        ticket.assigned_by = actor.user_id
        ticket.assigned_by_name = actor.full_name or actor.email or "Manager"

    if "priority" in fields and payload.priority is not None:
        ticket.priority = payload.priority
    if "notes" in fields and payload.notes is not None:
        ticket.notes = list(payload.notes)
    if "translations" in fields and payload.translations is not None:
        ticket.translations = dict(payload.translations)

    ticket.updated_at = utcnow()
    return ticket


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def staff_metrics(db: Session, business_id: str, user_id: str) -> dict[str, int]:
    completed = list(
        db.execute(
            select(Ticket).where(
                Ticket.business_id == business_id,
                Ticket.assigned_to == user_id,
                Ticket.status == "completed",
            )
        ).scalars()
    )
    start_of_today = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
    completed_today = sum(1 for ticket in completed if _as_utc(ticket.updated_at) >= start_of_today)

    durations = [
        (_as_utc(ticket.updated_at) - _as_utc(ticket.created_at)).total_seconds() / 60
        for ticket in completed
    ]
    avg_minutes = round(sum(durations) / len(durations)) if durations else 0
    return {
        "completed_today": completed_today,
        "avg_completion_time": avg_minutes,
        "total_completed": len(completed),
    }
