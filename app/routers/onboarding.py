from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session

from app.core.api_docs import error_responses
from app.core.deps import get_db
from app.core.observability import log_event
from app.core.security_current import get_current_user
from app.models.onboarding import OnboardingSubmission
from app.models.user import User
from app.schemas.dashboard import OnboardingEnvelopeOut, OnboardingOut
from app.services import onboarding_service

router = APIRouter(prefix="/onboarding", tags=["onboarding"])


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def _read_upload(upload: UploadFile | None) -> onboarding_service.UploadedContext | None:
    if upload is None or not upload.filename:
        return None
    try:
        return onboarding_service.decode_context_file(upload.filename, upload.file.read())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _envelope(submission: OnboardingSubmission) -> OnboardingEnvelopeOut:
    return OnboardingEnvelopeOut(
        exists=True,
        document_id=submission.id,
        data=OnboardingOut.model_validate(submission),
    )


@router.get(
    "",
    response_model=OnboardingEnvelopeOut,
    summary="The caller's onboarding submission",
    responses={**error_responses(401, 500)},
)
def get_onboarding(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    submission = onboarding_service.submission_for_user(db, user.id)
    if submission is None:
        return OnboardingEnvelopeOut(exists=False)
    return _envelope(submission)


@router.post(
    "",
    response_model=OnboardingEnvelopeOut,
    status_code=201,
    summary="Submit onboarding",
    description=(
        "Creates the submission, the owner's business (typed by industry) and an "
        "admin membership for the owner in one transaction. An optional "
        "`businessContext` text file is stored with the submission."
    ),
    responses={**error_responses(400, 401, 409, 422, 500)},
)
def submit_onboarding(
    owner_name: str = Form(alias="ownerName", min_length=1, max_length=255),
    owner_email: str = Form(alias="ownerEmail", min_length=3, max_length=255),
    business_name: str = Form(alias="businessName", min_length=1, max_length=255),
    industry_type: str = Form(alias="industryType", min_length=1, max_length=50),
    owner_phone: str | None = Form(default=None, alias="ownerPhone", max_length=40),
    business_type: str | None = Form(default=None, alias="type", max_length=50),
    website: str | None = Form(default=None, max_length=255),
    business_context: UploadFile | None = File(default=None, alias="businessContext"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if onboarding_service.submission_for_user(db, user.id) is not None:
        raise HTTPException(status_code=409, detail="Onboarding already submitted")

    fields = {
        "owner_name": owner_name.strip(),
        "owner_email": owner_email.strip().lower(),
        "owner_phone": _clean(owner_phone),
        "business_name": business_name.strip(),
        "industry_type": industry_type.strip().lower(),
        "type": _clean(business_type),
        "website": _clean(website),
    }
    submission = onboarding_service.create_submission(
        db, user, fields, _read_upload(business_context)
    )
    db.commit()
    db.refresh(submission)
    log_event("onboarding_submitted", user_id=user.id, business_id=submission.business_id)
    return _envelope(submission)


@router.put(
    "",
    response_model=OnboardingEnvelopeOut,
    summary="Update an onboarding submission",
    responses={**error_responses(400, 401, 403, 404, 422, 500)},
)
def update_onboarding(
    document_id: str | None = Form(default=None, alias="documentId"),
    owner_name: str | None = Form(default=None, alias="ownerName", max_length=255),
    owner_email: str | None = Form(default=None, alias="ownerEmail", max_length=255),
    owner_phone: str | None = Form(default=None, alias="ownerPhone", max_length=40),
    business_name: str | None = Form(default=None, alias="businessName", max_length=255),
    website: str | None = Form(default=None, max_length=255),
    business_context: UploadFile | None = File(default=None, alias="businessContext"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not _clean(document_id):
        raise HTTPException(status_code=400, detail="Document ID is required for updates")
    submission = db.get(OnboardingSubmission, document_id.strip())
    if submission is None:
        raise HTTPException(status_code=404, detail="Document not found")
    if submission.user_id != user.id:
        raise HTTPException(status_code=403, detail="Unauthorized to update this document")

    fields = {
        "owner_name": _clean(owner_name),
        "owner_email": _clean(owner_email.lower()) if owner_email else None,
        "owner_phone": _clean(owner_phone),
        "business_name": _clean(business_name),
        "website": _clean(website),
    }
    onboarding_service.update_submission(db, submission, fields, _read_upload(business_context))
    db.commit()
    db.refresh(submission)
    return _envelope(submission)
