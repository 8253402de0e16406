from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.api_docs import error_responses
from app.core.deps import get_db
from app.core.observability import log_event
from app.core.security_current import get_current_user_id
from app.models.widget_settings import WidgetSettings
from app.schemas.dashboard import (
    AnalyticsDataOut,
    AnalyticsOut,
    AnalyticsPeriod,
    BusinessContextIn,
    BusinessContextOut,
    SentimentIn,
    SentimentOut,
    SummaryIn,
    SummaryListOut,
    SummaryOut,
    SummarySavedOut,
    WidgetSettingsIn,
    WidgetSettingsOut,
)
from app.services import ai_service, analytics_service, conversation_service
from app.services.business_service import owned_business, save_business_context, save_widget_settings

router = APIRouter(tags=["dashboard"])

AI_NOT_CONFIGURED = "AI service is not configured. Please add your OpenAI API key."


def get_sentiment_provider() -> ai_service.AIProvider:
    try:
        return ai_service.get_ai_provider()
    except ai_service.AIConfigurationError as exc:
        raise HTTPException(status_code=503, detail=AI_NOT_CONFIGURED) from exc


def _require_self(uid: str, user_id: str) -> None:
    if uid != user_id:
        raise HTTPException(status_code=403, detail="Cannot access another user's data")


@router.get(
    "/dashboard-analytics",
    response_model=AnalyticsOut,
    summary="Conversation analytics for a period",
    description=(
        "Compares the current day, week (from Monday) or month (from the 1st) "
        "with the previous one and breaks the current period down by hour, day, mood and type."
    ),
    responses={**error_responses(401, 422, 500)},
)
def dashboard_analytics(
    period: AnalyticsPeriod = Query(default="week"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    data = analytics_service.compute_dashboard_analytics(db, period)
    return AnalyticsOut(period=period, data=AnalyticsDataOut.model_validate(data))


@router.post(
    "/analyze-sentiment",
    response_model=SentimentOut,
    summary="Summarise a conversation with the LLM",
    responses={**error_responses(400, 401, 422, 500, 503)},
)
def analyze_sentiment(
    payload: SentimentIn,
    user_id: str = Depends(get_current_user_id),
    provider: ai_service.AIProvider = Depends(get_sentiment_provider),
):
    if not payload.messages:
        raise HTTPException(status_code=400, detail="No messages provided")

    messages = [item.model_dump() for item in payload.messages]
    try:
        result = ai_service.analyze_sentiment(messages, provider=provider)
    except ValueError as exc:
        log_event("sentiment_analysis_failed", error=str(exc))
        raise HTTPException(status_code=500, detail="Failed to analyze conversation") from exc

    return SentimentOut(
        sentiment=result.sentiment,
        summary=result.summary,
        key_topics=result.key_topics,
        customer_mood=result.customer_mood,
        rating=result.rating,
    )


@router.post(
    "/save-summary",
    response_model=SummarySavedOut,
    summary="Store a conversation summary",
    description="Upserts on customer and conversation date; the date defaults to today.",
    responses={**error_responses(401, 422, 500)},
)
def save_summary(
    payload: SummaryIn,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    row, created = conversation_service.save_summary(db, payload)
    db.commit()
    db.refresh(row)
    return SummarySavedOut(id=row.id, created=created, summary=SummaryOut.model_validate(row))


@router.get(
    "/summaries",
    response_model=SummaryListOut,
    summary="Conversation summaries for a customer",
    responses={**error_responses(401, 422, 500)},
)
def get_summaries(
    customer: str = Query(min_length=1),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    rows = conversation_service.list_summaries(db, customer)
    return SummaryListOut(summaries=[SummaryOut.model_validate(row) for row in rows])


@router.post(
    "/business-context",
    response_model=BusinessContextOut,
    summary="Save the caller's business context",
    responses={**error_responses(401, 403, 422, 500)},
)
def post_business_context(
    payload: BusinessContextIn,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    _require_self(payload.uid, user_id)
    business = save_business_context(
        db,
        user_id,
        business_name=payload.business_name,
        context=payload.context,
    )
    db.commit()
    db.refresh(business)
    return BusinessContextOut(
        business_id=business.id,
        business_name=business.name,
        context=business.context or {},
        updated_at=business.updated_at,
    )


@router.get(
    "/business-context",
    response_model=BusinessContextOut,
    summary="Read the caller's business context",
    responses={**error_responses(401, 403, 422, 500)},
)
def get_business_context(
    uid: str = Query(min_length=1),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    _require_self(uid, user_id)
    business = owned_business(db, user_id)
    if business is None:
        return BusinessContextOut()
    return BusinessContextOut(
        business_id=business.id,
        business_name=business.name,
        context=business.context or {},
        updated_at=business.updated_at,
    )


@router.post(
    "/widget-settings",
    response_model=WidgetSettingsOut,
    summary="Merge the caller's widget settings",
    responses={**error_responses(401, 403, 422, 500)},
)
def post_widget_settings(
    payload: WidgetSettingsIn,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    _require_self(payload.uid, user_id)
    row = save_widget_settings(db, user_id, payload.settings)
    db.commit()
    db.refresh(row)
    return WidgetSettingsOut(settings=row.settings, updated_at=row.updated_at)


@router.get(
    "/widget-settings",
    response_model=WidgetSettingsOut,
    summary="Read the caller's widget settings",
    responses={**error_responses(401, 403, 422, 500)},
)
def get_widget_settings(
    uid: str = Query(min_length=1),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    _require_self(uid, user_id)
    row = db.get(WidgetSettings, user_id)
    if row is None:
        return WidgetSettingsOut()
    return WidgetSettingsOut(settings=row.settings, updated_at=row.updated_at)
