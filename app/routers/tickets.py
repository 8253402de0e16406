from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.api_docs import error_responses
from app.core.deps import get_db
from app.core.permissions import require_member
from app.core.security_current import get_current_user_id
from app.models.business import Business
from app.models.business_member import BusinessMember
from app.models.ticket import Ticket
from app.schemas.ticket import (
    StaffMetricsOut,
    TicketCreatedOut,
    TicketCreateIn,
    TicketEnvelopeOut,
    TicketListOut,
    TicketOut,
    TicketUpdateIn,
    UserBusinessListOut,
    UserBusinessOut,
)
from app.services import ticket_service
from app.services.membership_service import member_name_map

router = APIRouter(prefix="/hotel", tags=["hotel-tickets"])


def _ticket_out(ticket: Ticket, names: dict[str, str]) -> TicketOut:
    out = TicketOut.model_validate(ticket)
    if ticket.assigned_to:
        out.assigned_staff_name = names.get(ticket.assigned_to)
    return out


@router.get(
    "/tickets",
    response_model=TicketListOut,
    summary="List tickets visible to the caller",
    description=(
        "Staff see tickets assigned to them. Managers see their department, or "
        "the `department` requested. Admins see every ticket unless a "
        "`department` is given. `status=all` disables the status filter."
    ),
    responses={**error_responses(401, 403, 422, 500)},
)
def list_tickets(
    business_id: str = Query(alias="businessId"),
    department: str | None = Query(default=None),
    status: str | None = Query(default=None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    member = require_member(db, business_id, user_id)
    tickets = ticket_service.list_visible_tickets(db, member, department=department, status=status)
    names = member_name_map(db, business_id)
    return TicketListOut(tickets=[_ticket_out(ticket, names) for ticket in tickets])


@router.post(
    "/tickets",
    response_model=TicketCreatedOut,
    status_code=201,
    summary="Create a ticket",
    responses={**error_responses(401, 403, 422, 500)},
)
def create_ticket(
    payload: TicketCreateIn,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    require_member(db, payload.business_id, user_id)
    ticket = ticket_service.create_ticket(db, payload, created_by=user_id)
    db.commit()
    db.refresh(ticket)
    return TicketCreatedOut(ticket_id=ticket.id, ticket=_ticket_out(ticket, {}))


@router.get(
    "/tickets/{ticket_id}",
    response_model=TicketEnvelopeOut,
    summary="Get one ticket",
    responses={**error_responses(401, 403, 404, 422, 500)},
)
def get_ticket(
    ticket_id: str,
    business_id: str = Query(alias="businessId"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    require_member(db, business_id, user_id)
    ticket = ticket_service.get_ticket(db, business_id, ticket_id)
    if ticket is None:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return TicketEnvelopeOut(ticket=_ticket_out(ticket, member_name_map(db, business_id)))


@router.put(
    "/tickets/{ticket_id}",
    response_model=TicketEnvelopeOut,
    summary="Update a ticket",
    description=(
        "Applies only the fields present. Sending `assignedTo` (even null) "
        "records the caller as the assigner. Staff cannot move a ticket back to `created`."
    ),
    responses={**error_responses(400, 401, 403, 404, 422, 500)},
)
def update_ticket(
    ticket_id: str,
    payload: TicketUpdateIn,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    actor = require_member(db, payload.business_id, user_id)
    ticket = ticket_service.get_ticket(db, payload.business_id, ticket_id)
    if ticket is None:
        raise HTTPException(status_code=404, detail="Ticket not found")

    try:
        ticket_service.apply_update(db, ticket, payload, actor=actor)
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    db.commit()
    db.refresh(ticket)
    return TicketEnvelopeOut(ticket=_ticket_out(ticket, member_name_map(db, payload.business_id)))


@router.get(
    "/staff-metrics",
    response_model=StaffMetricsOut,
    summary="Completion metrics for the caller",
    responses={**error_responses(401, 403, 422, 500)},
)
def staff_metrics(
    business_id: str = Query(alias="businessId"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    require_member(db, business_id, user_id)
    return StaffMetricsOut(**ticket_service.staff_metrics(db, business_id, user_id))


@router.get(
    "/user-businesses",
    response_model=UserBusinessListOut,
    summary="Businesses the caller owns or belongs to",
    responses={**error_responses(401, 500)},
)
def user_businesses(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    items: dict[str, UserBusinessOut] = {}
    owned = db.execute(
        select(Business).where(Business.owner_user_id == user_id).order_by(Business.created_at.asc())
    ).scalars()
    for business in owned:
        items[business.id] = UserBusinessOut(
            id=business.id, name=business.name, type=business.type, role="admin"
        )

    memberships = db.execute(
        select(BusinessMember, Business)
        .join(Business, Business.id == BusinessMember.business_id)
        .where(BusinessMember.user_id == user_id)
        .order_by(BusinessMember.created_at.asc())
    ).all()
    for member, business in memberships:
        if business.id in items:
            continue
        items[business.id] = UserBusinessOut(
            id=business.id,
            name=business.name,
            type=business.type,
            role=member.role,
            department=member.department,
        )
    return UserBusinessListOut(businesses=list(items.values()))
