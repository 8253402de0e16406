from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.api_docs import error_responses
from app.core.config import settings
from app.core.deps import get_db
from app.core.id_utils import generate_shortuuid
from app.core.rate_limit import FailedLoginTracker
from app.core.security import create_access_token, hash_password, verify_password
from app.core.security_current import get_current_user
from app.models.business import Business
from app.models.onboarding import OnboardingSubmission
from app.models.user import User
from app.schemas.auth import AuthCheckOut, LoginIn, RegisterIn, TokenOut, UserProfileOut
from app.services.platform_admin_service import is_platform_admin

router = APIRouter(prefix="/auth", tags=["auth"])
TOKEN_RESPONSE = {
    200: {
        "description": "Bearer access token",
        "content": {
            "application/json": {
                "example": {
                    "access_token": "access-token",
                    "token_type": "bearer",
                }
            }
        },
    }
}

login_rate_limiter = FailedLoginTracker(
    max_attempts=settings.auth_rate_limit_max_attempts,
    window_seconds=settings.auth_rate_limit_window_seconds,
    lock_seconds=settings.auth_rate_limit_lock_seconds,
)


def _client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for", "").strip()
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _rate_key(identifier: str, client_ip: str) -> str:
    return f"{identifier.strip().lower()}:{client_ip}"


def _enforce_rate_limit(identifier: str, client_ip: str) -> str:
    key = _rate_key(identifier, client_ip)
    retry_after = login_rate_limiter.retry_after(key)
    if retry_after > 0:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many failed attempts. Try again later.",
            headers={"Retry-After": str(retry_after)},
        )
    return key


def _authenticate_user(db: Session, identifier: str, password: str) -> User:
    user = db.execute(
        select(User).where(func.lower(User.email) == identifier.strip().lower())
    ).scalar_one_or_none()

    if not user or not user.is_active or not verify_password(password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return user


def _login(db: Session, request: Request, identifier: str, password: str) -> TokenOut:
    key = _enforce_rate_limit(identifier, _client_ip(request))
    try:
        user = _authenticate_user(db, identifier, password)
    except HTTPException as exc:
        if exc.status_code == 401:
            login_rate_limiter.record_failure(key)
        raise

    login_rate_limiter.reset(key)
    return TokenOut(access_token=create_access_token(user.id))


@router.post(
    "/register",
    response_model=TokenOut,
    summary="Register an account",
    description="Creates an account and returns a bearer access token.",
    responses={**TOKEN_RESPONSE, **error_responses(409, 422, 500)},
)
def register(payload: RegisterIn, db: Session = Depends(get_db)):
    normalized_email = str(payload.email).lower()
    exists = db.execute(
        select(User.id).where(func.lower(User.email) == normalized_email)
    ).scalar_one_or_none()
    if exists:
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(
        id=generate_shortuuid(),
        email=normalized_email,
        full_name=payload.full_name,
        phone=payload.phone,
        hashed_password=hash_password(payload.password),
    )
    db.add(user)
    db.commit()
    return TokenOut(access_token=create_access_token(user.id))


@router.post(
    "/login",
    response_model=TokenOut,
    summary="Login with JSON",
    description="Authenticate with email and password.",
    responses={**TOKEN_RESPONSE, **error_responses(401, 422, 429, 500)},
)
def login(payload: LoginIn, request: Request, db: Session = Depends(get_db)):
    return _login(db, request, payload.identifier, payload.password)


@router.post(
    "/token",
    response_model=TokenOut,
    summary="OAuth2 password token (Swagger Authorize)",
    description="Form-data login used by Swagger Authorize. Put the email in `username`.",
    responses={**TOKEN_RESPONSE, **error_responses(401, 422, 429, 500)},
)
def login_for_swagger(
    request: Request,
    db: Session = Depends(get_db),
    form_data: OAuth2PasswordRequestForm = Depends(),
):
    return _login(db, request, form_data.username, form_data.password)


@router.get(
    "/me",
    response_model=UserProfileOut,
    summary="Get current user profile",
    responses={**error_responses(401, 500)},
)
def get_my_profile(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return UserProfileOut(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        phone=user.phone,
        is_platform_admin=is_platform_admin(db, user.email),
        created_at=user.created_at,
    )


@router.get(
    "/auth-check",
    response_model=AuthCheckOut,
    summary="Where to send the user after login",
    description=(
        "Owners who onboarded a hotel go to the hotel admin console for that "
        "business; everyone else lands on the dashboard."
    ),
    responses={**error_responses(401, 500)},
)
def auth_check(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    hotel_submission = db.execute(
        select(OnboardingSubmission.id).where(
            OnboardingSubmission.user_id == user.id,
            func.lower(OnboardingSubmission.industry_type) == "hotel",
        )
    ).scalars().first()
    if hotel_submission:
        business = db.execute(
            select(Business)
            .where(Business.owner_user_id == user.id, func.lower(Business.type) == "hotel")
            .order_by(Business.created_at.asc())
        ).scalars().first()
        if business:
            return AuthCheckOut(
                redirect=f"/admin/hotel?businessId={business.id}",
                business_id=business.id,
            )
    return AuthCheckOut(redirect="/dashboard")
