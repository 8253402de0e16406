from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.api_docs import error_responses
from app.core.deps import get_db
from app.core.observability import log_event
from app.core.permissions import require_business_owner
from app.core.security import create_access_token
from app.core.security_current import get_current_user_id
from app.models.business import Business
from app.models.invite import Invite
from app.schemas.invite import (
    BusinessSummaryOut,
    InviteAcceptedOut,
    InviteAcceptIn,
    InviteCreatedOut,
    InviteCreateIn,
    InviteListOut,
    InviteOut,
    InviteSummaryOut,
    InviteValidationOut,
)
from app.schemas.team import TeamMemberOut
from app.services import invite_service
from app.services.email_service import InviteEmail, send_invite_email

router = APIRouter(prefix="/hotel/invites", tags=["hotel-invites"])


def _invite_out(invite: Invite) -> InviteOut:
    return InviteOut.model_validate(
        {
            "id": invite.id,
            "code": invite.code,
            "business_id": invite.business_id,
            "email": invite.email,
            "role": invite.role,
            "department": invite.department,
            "preferred_language": invite.preferred_language,
            "invited_by_user_id": invite.invited_by_user_id,
            "expires_at": invite.expires_at,
            "used": invite.used,
            "used_at": invite.used_at,
            "used_by": invite.used_by,
            "created_at": invite.created_at,
            "state": invite_service.invite_state(invite),
        }
    )


def _usable_invite_or_error(db: Session, code: str, business_id: str) -> Invite:
    try:
        return invite_service.get_usable_invite(db, code, business_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.post(
    "",
    response_model=InviteCreatedOut,
    status_code=201,
    summary="Invite someone to the team",
    description=(
        "Owner only. Issues a single-use code valid for 7 days and tries to email "
        "the invite link; the email outcome is reported in `emailStatus`."
    ),
    responses={**error_responses(401, 403, 404, 422, 500)},
)
def create_invite(
    payload: InviteCreateIn,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    business = require_business_owner(db, payload.business_id, user_id)
    invite = invite_service.create_invite(db, payload, invited_by=user_id)
    db.commit()
    db.refresh(invite)

    link = invite_service.build_invite_link(invite.code, invite.business_id)
    delivery = send_invite_email(
        InviteEmail(
            recipient_email=invite.email,
            business_name=business.name,
            role=invite.role,
            invite_link=link,
            expires_at=invite.expires_at,
        )
    )
    log_event(
        "invite_created",
        business_id=invite.business_id,
        invite_id=invite.id,
        role=invite.role,
        email_status=delivery.status,
    )
    return InviteCreatedOut(
        invite=_invite_out(invite),
        invite_link=link,
        email_status=delivery.status,
        email_detail=delivery.detail,
    )


@router.get(
    "",
    response_model=InviteListOut,
    summary="List invites for a business",
    responses={**error_responses(401, 403, 404, 422, 500)},
)
def list_invites(
    business_id: str = Query(alias="businessId"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    require_business_owner(db, business_id, user_id)
    invites = db.execute(
        select(Invite).where(Invite.business_id == business_id).order_by(Invite.created_at.desc())
    ).scalars()
    return InviteListOut(invites=[_invite_out(invite) for invite in invites])


@router.get(
    "/validate",
    response_model=InviteValidationOut,
    summary="Check an invite code before sign-up",
    responses={**error_responses(400, 404, 422, 500)},
)
def validate_invite(
    code: str = Query(min_length=1),
    business_id: str = Query(alias="businessId", min_length=1),
    db: Session = Depends(get_db),
):
    invite = _usable_invite_or_error(db, code, business_id)
    business = db.get(Business, invite.business_id)
    if business is None:
        raise HTTPException(status_code=404, detail="Business not found")
    return InviteValidationOut(
        invite=InviteSummaryOut(
            email=invite.email,
            role=invite.role,
            department=invite.department,
            expires_at=invite.expires_at,
        ),
        business=BusinessSummaryOut(id=business.id, name=business.name, type=business.type),
    )


@router.post(
    "/accept",
    response_model=InviteAcceptedOut,
    status_code=201,
    summary="Accept an invite and create the account",
    responses={**error_responses(400, 404, 409, 422, 500)},
)
def accept_invite(payload: InviteAcceptIn, db: Session = Depends(get_db)):
    try:
        accepted = invite_service.accept_invite(db, payload)
    except invite_service.EmailAlreadyRegisteredError as exc:
        raise HTTPException(status_code=409, detail="Email already registered") from exc
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    log_event(
        "invite_accepted",
        business_id=accepted.member.business_id,
        user_id=accepted.user.id,
    )
    return InviteAcceptedOut(
        member=TeamMemberOut.model_validate(accepted.member),
        access_token=create_access_token(accepted.user.id),
    )
