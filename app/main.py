from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.observability import (
    http_exception_handler,
    request_logging_middleware,
    setup_observability,
    unhandled_exception_handler,
    validation_exception_handler,
)
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.db.session import engine
from app.routers import admin, auth, dashboard, invites, onboarding, team, tickets

app = FastAPI(
    title=settings.app_name,
    version="0.3.0",
    description=(
        "Backend API for TalkServe: hotel ticketing and team management, the "
        "platform back-office and the business-owner dashboard.\n\n"
        "Swagger quick test flow:\n"
        "1. Call `POST /auth/register` or `POST /auth/login`.\n"
        "2. Click **Authorize** and use your email + password "
        "(OAuth token URL: `/auth/token`).\n"
        "3. Test protected endpoints (`/hotel/tickets`, `/hotel/team`, `/dashboard-analytics`)."
    ),
    swagger_ui_parameters={
        "persistAuthorization": True,
        "displayRequestDuration": True,
        "defaultModelsExpandDepth": 1,
    },
    openapi_tags=[
        {"name": "health", "description": "Service status and quick links."},
        {"name": "auth", "description": "Accounts, access tokens and post-login routing."},
        {"name": "hotel-tickets", "description": "Guest request tickets, staff metrics and business lookup."},
        {"name": "hotel-team", "description": "Team members of a hotel business."},
        {"name": "hotel-invites", "description": "Single-use team invites."},
        {"name": "admin", "description": "Platform back-office: owners, appointments, calendar sync, widget."},
        {"name": "onboarding", "description": "Business owner onboarding submissions."},
        {"name": "dashboard", "description": "Conversation analytics, summaries and business settings."},
    ],
)

setup_observability()
app.middleware("http")(request_logging_middleware)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

LOCAL_ORIGIN_REGEX = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"


def cors_options() -> dict:
    origins = settings.cors_origins or ["http://localhost:3000"]
    wildcard = "*" in origins
    origin_regex = settings.cors_origin_regex
    if origin_regex is None and settings.env.strip().lower() in {"dev", "development", "staging", "stage"}:
        # The dashboard dev server runs on arbitrary local ports.
        origin_regex = LOCAL_ORIGIN_REGEX
    return {
        "allow_origins": ["*"] if wildcard else origins,
        "allow_origin_regex": origin_regex,
        "allow_credentials": not wildcard,
        "allow_methods": ["*"],
        "allow_headers": ["*"],
    }


app.add_middleware(CORSMiddleware, **cors_options())

for module in (auth, tickets, team, invites, admin, onboarding, dashboard):
    app.include_router(module.router)


@app.get("/", tags=["health"])
def root():
    return {
        "app": settings.app_name,
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/health",
        "ready": "/ready",
    }


@app.get("/health", tags=["health"])
def health():
    return {"ok": True}


@app.get("/ready", tags=["health"])
def ready():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        return {"ok": False}
    return {"ok": True}
