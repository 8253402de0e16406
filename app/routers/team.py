import secrets
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.api_docs import error_responses
from app.core.deps import get_db
from app.core.id_utils import generate_short_token, generate_shortuuid
from app.core.observability import log_event
from app.core.permissions import require_business_owner, require_owner_or_admin
from app.core.security import hash_password
from app.core.security_current import get_current_user_id
from app.models.business_member import DEPARTMENT_ROLES, BusinessMember
from app.models.user import User
from app.schemas.common import MessageOut
from app.schemas.team import (
    PasswordResetOut,
    TeamMemberCreatedOut,
    TeamMemberCreateIn,
    TeamMemberEnvelopeOut,
    TeamMemberListOut,
    TeamMemberOut,
    TeamMemberUpdateIn,
)
from app.services.membership_service import resolve_membership

router = APIRouter(prefix="/hotel/team", tags=["hotel-team"])


def _get_member_or_404(db: Session, business_id: str, member_id: str) -> BusinessMember:
    member = resolve_membership(db, business_id, member_id)
    if member is None:
        raise HTTPException(status_code=404, detail="Team member not found")
    return member


@router.get(
    "",
    response_model=TeamMemberListOut,
    summary="List team members",
    description="Only the business owner may list the team.",
    responses={**error_responses(401, 403, 404, 422, 500)},
)
def list_team_members(
    business_id: str = Query(alias="businessId"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    require_business_owner(db, business_id, user_id)
    members = db.execute(
        select(BusinessMember)
        .where(BusinessMember.business_id == business_id)
        .order_by(BusinessMember.created_at.asc())
    ).scalars()
    return TeamMemberListOut(members=[TeamMemberOut.model_validate(member) for member in members])


@router.post(
    "",
    response_model=TeamMemberCreatedOut,
    status_code=201,
    summary="Create a staff account directly",
    description=(
        "Creates the login and the membership in one step and returns a "
        "temporary password. It is shown once and never stored in clear text."
    ),
    responses={**error_responses(401, 403, 404, 409, 422, 500)},
)
def create_team_member(
    payload: TeamMemberCreateIn,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    require_owner_or_admin(db, payload.business_id, user_id)
    if payload.role in DEPARTMENT_ROLES and not payload.department:
        raise HTTPException(status_code=400, detail="department is required for manager and staff")

    email = str(payload.email).lower()
    exists = db.execute(
        select(User.id).where(func.lower(User.email) == email)
    ).scalar_one_or_none()
    if exists:
        raise HTTPException(status_code=409, detail="Email already registered")

    temporary_password = f"{generate_short_token(10)}!"
    user = User(
        id=generate_shortuuid(),
        email=email,
        full_name=payload.full_name,
        phone=payload.phone,
        hashed_password=hash_password(temporary_password),
    )
    db.add(user)
    db.flush()
    member = BusinessMember(
        business_id=payload.business_id,
        user_id=user.id,
        email=email,
        full_name=payload.full_name,
        phone=payload.phone,
        role=payload.role,
        department=payload.department if payload.role in DEPARTMENT_ROLES else None,
        status="active",
        preferred_language=payload.preferred_language,
    )
    db.add(member)
    db.commit()
    db.refresh(member)
    log_event("team_member_created", business_id=payload.business_id, member_id=user.id)
    return TeamMemberCreatedOut(
        member=TeamMemberOut.model_validate(member),
        temporary_password=temporary_password,
    )


@router.patch(
    "/{member_id}",
    response_model=TeamMemberEnvelopeOut,
    summary="Update a team member",
    responses={**error_responses(400, 401, 403, 404, 422, 500)},
)
def update_team_member(
    member_id: str,
    payload: TeamMemberUpdateIn,
    business_id: str = Query(alias="businessId"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    require_owner_or_admin(db, business_id, user_id)
    member = _get_member_or_404(db, business_id, member_id)

    for field in payload.model_fields_set:
        value = getattr(payload, field)
        if value is None and field in {"role", "status"}:
            continue
        setattr(member, field, value)
    if member.role not in DEPARTMENT_ROLES:
        member.department = None
    elif not member.department:
        db.rollback()
        raise HTTPException(status_code=400, detail="department is required for manager and staff")

    db.commit()
    db.refresh(member)
    return TeamMemberEnvelopeOut(member=TeamMemberOut.model_validate(member))


@router.delete(
    "/{member_id}",
    response_model=MessageOut,
    summary="Remove a team member",
    description="Deletes the membership. The login account itself is kept.",
    responses={**error_responses(401, 403, 404, 422, 500)},
)
def delete_team_member(
    member_id: str,
    business_id: str = Query(alias="businessId"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    require_owner_or_admin(db, business_id, user_id)
    member = _get_member_or_404(db, business_id, member_id)
    db.delete(member)
    db.commit()
    log_event("team_member_removed", business_id=business_id, member_id=member_id)
    return MessageOut(message="Team member removed")


@router.post(
    "/{member_id}/reset-password",
    response_model=PasswordResetOut,
    summary="Reset a team member's password",
    description="Sets a fresh 6-digit password and returns it once.",
    responses={**error_responses(401, 403, 404, 422, 500)},
)
def reset_member_password(
    member_id: str,
    business_id: str = Query(alias="businessId"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    require_owner_or_admin(db, business_id, user_id)
    member = _get_member_or_404(db, business_id, member_id)
    account = db.get(User, member.user_id)
    if account is None:
        raise HTTPException(status_code=404, detail="User account not found")

    new_password = f"{secrets.randbelow(900_000) + 100_000}"
    now = datetime.now(timezone.utc)
    account.hashed_password = hash_password(new_password)
    member.password_reset_at = now
    db.commit()
    log_event("team_member_password_reset", business_id=business_id, member_id=member_id)
    return PasswordResetOut(user_id=member.user_id, new_password=new_password, password_reset_at=now)
