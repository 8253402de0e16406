import json

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.api_docs import error_responses
from app.core.config import settings
from app.core.deps import get_db
from app.core.security_current import require_platform_admin
from app.models.appointment import Appointment
from app.models.onboarding import OnboardingSubmission
from app.models.user import User
from app.schemas.admin import (
    AppointmentListOut,
    AppointmentOut,
    CalendarSyncIn,
    CalendarSyncItemOut,
    CalendarSyncOut,
    OwnerEnvelopeOut,
    OwnerListOut,
    OwnerOut,
    OwnerUpdateIn,
    WidgetScriptOut,
    WidgetStatusOut,
    WidgetStatusUpdateIn,
)
from app.services import calendar_service
from app.services.business_service import owned_business, set_widget_status

router = APIRouter(prefix="/admin", tags=["admin"])


def _owner_out(submission: OnboardingSubmission) -> OwnerOut:
    return OwnerOut(
        id=submission.id,
        uuid=submission.user_id,
        owner_name=submission.owner_name,
        owner_email=submission.owner_email,
        owner_phone=submission.owner_phone,
        business_name=submission.business_name,
        industry_type=submission.industry_type,
        type=submission.type,
        status=submission.status or "pending",
        submitted_at=submission.submitted_at,
        assigned_number=submission.assigned_number,
        customers_count=submission.customers_count or 0,
        total_messages=submission.total_messages or 0,
    )


def get_sync_calendar_client() -> calendar_service.CalendarClient:
    try:
        return calendar_service.get_calendar_client()
    except calendar_service.CalendarNotConfiguredError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


@router.get(
    "/owners",
    response_model=OwnerListOut,
    summary="List onboarded business owners",
    responses={**error_responses(401, 403, 500)},
)
def list_owners(
    _: User = Depends(require_platform_admin),
    db: Session = Depends(get_db),
):
    submissions = list(
        db.execute(
            select(OnboardingSubmission).order_by(OnboardingSubmission.submitted_at.desc())
        ).scalars()
    )
    return OwnerListOut(owners=[_owner_out(item) for item in submissions], total=len(submissions))


@router.put(
    "/owners",
    response_model=OwnerEnvelopeOut,
    summary="Update an owner's onboarding record",
    responses={**error_responses(400, 401, 403, 404, 422, 500)},
)
def update_owner(
    payload: OwnerUpdateIn,
    _: User = Depends(require_platform_admin),
    db: Session = Depends(get_db),
):
    if not payload.owner_id:
        raise HTTPException(status_code=400, detail="Owner ID is required")
    submission = db.get(OnboardingSubmission, payload.owner_id)
    if submission is None:
        raise HTTPException(status_code=404, detail="Owner not found")

    for field in ("assigned_number", "status", "customers_count", "total_messages"):
        value = getattr(payload, field)
        if value is not None:
            setattr(submission, field, value)
    db.commit()
    db.refresh(submission)
    return OwnerEnvelopeOut(owner=_owner_out(submission), message="Owner updated successfully")


@router.get(
    "/appointments",
    response_model=AppointmentListOut,
    summary="List appointments captured by the agents",
    responses={**error_responses(401, 403, 500)},
)
def list_appointments(
    _: User = Depends(require_platform_admin),
    db: Session = Depends(get_db),
):
    appointments = list(
        db.execute(select(Appointment).order_by(Appointment.created_at.desc())).scalars()
    )
    return AppointmentListOut(
        appointments=[AppointmentOut.model_validate(item) for item in appointments],
        total=len(appointments),
    )


@router.post(
    "/appointments/sync-calendar",
    response_model=CalendarSyncOut,
    summary="Push appointments to Google Calendar",
    description=(
        "Processes the ids in order. Each item succeeds or fails on its own; "
        "already synced appointments report their stored event id."
    ),
    responses={**error_responses(400, 401, 403, 422, 500, 503)},
)
def sync_calendar(
    payload: CalendarSyncIn,
    _: User = Depends(require_platform_admin),
    db: Session = Depends(get_db),
    client: calendar_service.CalendarClient = Depends(get_sync_calendar_client),
):
    if not payload.appointment_ids:
        raise HTTPException(status_code=400, detail="No appointments selected")

    results = calendar_service.sync_appointments(db, payload.appointment_ids, client)
    synced = sum(1 for item in results if item["success"])
    failed = len(results) - synced
    return CalendarSyncOut(
        results=[CalendarSyncItemOut.model_validate(item) for item in results],
        synced_count=synced,
        failed_count=failed,
        message=calendar_service.sync_message(synced, failed),
    )


@router.get(
    "/widget-script",
    response_model=WidgetScriptOut,
    summary="Embed snippet for a business's chat widget",
    responses={**error_responses(401, 403, 422, 500)},
)
def widget_script(
    business_id: str = Query(alias="businessId", min_length=1),
    _: User = Depends(require_platform_admin),
):
    config = json.dumps({"businessId": business_id})
    script = (
        f"<script>window.AIVoiceWidgetConfig = {config};</script>"
        f'<script src="{settings.widget_script_url}"></script>'
    )
    return WidgetScriptOut(
        business_id=business_id,
        script=script,
        chat_widget_url=settings.chat_widget_url,
    )


@router.get(
    "/widget-status",
    response_model=WidgetStatusOut,
    summary="Widget state for a business owner",
    responses={**error_responses(401, 403, 422, 500)},
)
def get_widget_status(
    uuid: str = Query(min_length=1),
    _: User = Depends(require_platform_admin),
    db: Session = Depends(get_db),
):
    business = owned_business(db, uuid)
    if business is None:
        return WidgetStatusOut(widget_active=False, business_name="", business_settings={})
    return WidgetStatusOut(
        widget_active=business.widget_active,
        business_name=business.name,
        business_settings=business.context or {},
    )


@router.put(
    "/widget-status",
    response_model=WidgetStatusOut,
    summary="Activate or deactivate a business's widget",
    responses={**error_responses(401, 403, 404, 422, 500)},
)
def update_widget_status(
    payload: WidgetStatusUpdateIn,
    _: User = Depends(require_platform_admin),
    db: Session = Depends(get_db),
):
    business = set_widget_status(
        db,
        payload.uuid,
        widget_active=payload.widget_active,
        business_settings=payload.business_settings,
    )
    if business is None:
        raise HTTPException(status_code=404, detail="Business not found")
    db.commit()
    db.refresh(business)
    return WidgetStatusOut(
        widget_active=business.widget_active,
        business_name=business.name,
        business_settings=business.context or {},
    )
