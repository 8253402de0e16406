from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.id_utils import generate_invite_code, generate_shortuuid
from app.core.observability import log_event
from app.core.security import hash_password
from app.models.business import Business
from app.models.business_member import DEPARTMENT_ROLES, BusinessMember
from app.models.invite import Invite
from app.models.user import User
from app.schemas.invite import InviteAcceptIn, InviteCreateIn


class InviteAlreadyUsedError(ValueError):
    def __init__(self, message: str = "Invite already used"):
        super().__init__(message)


class EmailAlreadyRegisteredError(Exception):
    pass


@dataclass
class AcceptedInvite:
    user: User
    member: BusinessMember


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_expired(invite: Invite, *, now: datetime | None = None) -> bool:
    now = now or datetime.now(timezone.utc)
    return _as_utc(invite.expires_at) <= now


def invite_state(invite: Invite) -> str:
    if invite.used:
        return "used"
    if is_expired(invite):
        return "expired"
    return "pending"


def build_invite_link(code: str, business_id: str) -> str:
    query = urlencode({"code": code, "businessId": business_id})
    return f"{settings.invite_web_base_url}/hotel/auth/accept-invite?{query}"


def create_invite(db: Session, payload: InviteCreateIn, *, invited_by: str) -> Invite:
    invite = Invite(
        id=generate_shortuuid(),
        code=generate_invite_code(),
        business_id=payload.business_id,
        invited_by_user_id=invited_by,
        email=str(payload.email).lower(),
        role=payload.role,
        department=payload.department if payload.role in DEPARTMENT_ROLES else None,
        preferred_language=payload.preferred_language,
        expires_at=datetime.now(timezone.utc) + timedelta(days=settings.invite_expiry_days),
        used=False,
    )
    db.add(invite)
    return invite


def get_usable_invite(db: Session, code: str, business_id: str) -> Invite:
    """Raises LookupError when unknown, ValueError when already used or expired."""
    invite = db.execute(
        select(Invite).where(Invite.code == code, Invite.business_id == business_id)
    ).scalar_one_or_none()
    if invite is None:
        raise LookupError("Invite not found")
    if invite.used:
        raise InviteAlreadyUsedError()
    if is_expired(invite):
        raise ValueError("Invite expired")
    return invite


def _claim_and_join(db: Session, invite: Invite, user: User, full_name: str) -> BusinessMember:
    now = datetime.now(timezone.utc)
    claimed = db.execute(
        update(Invite)
        .where(Invite.id == invite.id, Invite.used.is_(False))
        .values(used=True, used_at=now, used_by=user.id)
    )
    if claimed.rowcount != 1:
        raise InviteAlreadyUsedError()

    member = BusinessMember(
        business_id=invite.business_id,
        user_id=user.id,
        email=user.email,
        full_name=full_name,
        role=invite.role,
        department=invite.department if invite.role in DEPARTMENT_ROLES else None,
        status="active",
        preferred_language=invite.preferred_language,
        invite_code=invite.code,
    )
    db.add(member)
    db.flush()
    return member


def accept_invite(db: Session, payload: InviteAcceptIn) -> AcceptedInvite:
    """Redeem an invite.

    The account is created and committed first. Claiming the invite and
    writing the membership then happen in one transaction; if that fails the
    account is deleted again so no orphan login remains.
    """
    invite = get_usable_invite(db, payload.code, payload.business_id)
    business = db.get(Business, invite.business_id)
    if business is None:
        raise LookupError("Business not found")

    email = invite.email.lower()
    exists = db.execute(
        select(User.id).where(func.lower(User.email) == email)
    ).scalar_one_or_none()
    if exists:
        raise EmailAlreadyRegisteredError(email)

    user = User(
        id=generate_shortuuid(),
        email=email,
        full_name=payload.full_name,
        hashed_password=hash_password(payload.password),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise EmailAlreadyRegisteredError(email) from exc
    user_id = user.id

    try:
        member = _claim_and_join(db, invite, user, payload.full_name)
        db.commit()
    except Exception as exc:
        db.rollback()
        db.execute(delete(User).where(User.id == user_id))
        db.commit()
        log_event(
            "invite_accept_compensated",
            invite_id=invite.id,
            business_id=invite.business_id,
            user_id=user_id,
            error=type(exc).__name__,
        )
        if isinstance(exc, IntegrityError):
            raise InviteAlreadyUsedError() from exc
        raise

    db.refresh(member)
    return AcceptedInvite(user=user, member=member)
