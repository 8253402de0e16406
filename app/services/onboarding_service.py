from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.id_utils import generate_shortuuid
from app.models.business import Business
from app.models.business_member import BusinessMember
from app.models.onboarding import OnboardingSubmission
from app.models.user import User

MAX_CONTEXT_FILE_BYTES = 1_000_000


@dataclass
class UploadedContext:
    filename: str | None
    text: str


def decode_context_file(filename: str | None, raw: bytes) -> UploadedContext:
    if len(raw) > MAX_CONTEXT_FILE_BYTES:
        raise ValueError("businessContext file is too large")
    return UploadedContext(filename=filename, text=raw.decode("utf-8", errors="replace"))


def submission_for_user(db: Session, user_id: str) -> OnboardingSubmission | None:
    return db.execute(
        select(OnboardingSubmission)
        .where(OnboardingSubmission.user_id == user_id)
        .order_by(OnboardingSubmission.submitted_at.desc())
    ).scalars().first()


def create_submission(
    db: Session,
    user: User,
    fields: dict[str, Any],
    upload: UploadedContext | None = None,
) -> OnboardingSubmission:
    """Record the submission together with the owner's business and admin membership.

    Nothing is committed here; the caller commits the three rows together.
    """
    industry_type = fields["industry_type"]
    business = Business(
        id=generate_shortuuid(),
        owner_user_id=user.id,
        name=fields["business_name"],
        type=(fields.get("type") or industry_type).strip().lower(),
        context={},
    )
    db.add(business)
    db.flush()
    db.add(
        BusinessMember(
            business_id=business.id,
            user_id=user.id,
            email=user.email,
            full_name=fields.get("owner_name") or user.full_name,
            phone=fields.get("owner_phone"),
            role="admin",
            status="active",
        )
    )

    submission = OnboardingSubmission(
        id=generate_shortuuid(),
        user_id=user.id,
        business_id=business.id,
        owner_name=fields["owner_name"],
        owner_email=fields["owner_email"],
        owner_phone=fields.get("owner_phone"),
        business_name=fields["business_name"],
        industry_type=industry_type,
        type=fields.get("type"),
        website=fields.get("website"),
        status="pending",
    )
    if upload is not None:
        submission.business_context_filename = upload.filename
        submission.business_context_text = upload.text
    db.add(submission)
    return submission


def update_submission(
    db: Session,
    submission: OnboardingSubmission,
    fields: dict[str, Any],
    upload: UploadedContext | None = None,
) -> OnboardingSubmission:
    for key, value in fields.items():
        if value is not None:
            setattr(submission, key, value)
    if upload is not None:
        submission.business_context_filename = upload.filename
        submission.business_context_text = upload.text

    if submission.business_id:
        business = db.get(Business, submission.business_id)
        if business is not None and fields.get("business_name"):
            business.name = fields["business_name"]
    return submission
