from datetime import timedelta

from helpers import auth_headers, create_business, me, register

from app.core.security import create_token
from app.models.onboarding import OnboardingSubmission
from app.models.platform_admin import PlatformAdmin


def test_register_login_and_profile(test_context):
    client, _ = test_context
    token = register(client, email="Jane@Example.com", full_name="Jane Owner")

    profile = me(client, token)
    assert profile["success"] is True
    assert profile["email"] == "jane@example.com"
    assert profile["fullName"] == "Jane Owner"
    assert profile["isPlatformAdmin"] is False

    login_res = client.post("/auth/login", json={"identifier": "JANE@example.com", "password": "password123"})
    assert login_res.status_code == 200
    assert login_res.json()["token_type"] == "bearer"

    form_res = client.post("/auth/token", data={"username": "jane@example.com", "password": "password123"})
    assert form_res.status_code == 200
    assert form_res.json()["access_token"]


def test_register_rejects_duplicate_email_and_short_password(test_context):
    client, _ = test_context
    register(client, email="dup@example.com")

    dup = client.post(
        "/auth/register",
        json={"email": "DUP@example.com", "fullName": "Again", "password": "password123"},
    )
    assert dup.status_code == 409
    assert dup.json()["error"] == "Email already registered"

    short = client.post(
        "/auth/register",
        json={"email": "short@example.com", "fullName": "Short", "password": "12345"},
    )
    assert short.status_code == 422
    body = short.json()
    assert body["success"] is False
    assert body["code"] == "validation_error"
    assert any(item["field"] == "password" for item in body["details"])


def test_missing_or_invalid_token_is_rejected_with_envelope(test_context):
    client, _ = test_context

    missing = client.get("/hotel/tickets", params={"businessId": "anything"})
    assert missing.status_code == 401
    body = missing.json()
    assert body == {
        "success": False,
        "error": "Unauthorized",
        "code": "unauthorized",
        "requestId": missing.headers["X-Request-ID"],
        "details": None,
    }

    garbage = client.get("/auth/me", headers=auth_headers("not-a-jwt"))
    assert garbage.status_code == 401
    assert garbage.json()["error"] == "Invalid token"


def test_token_of_wrong_type_is_rejected(test_context):
    client, _ = test_context
    token = register(client, email="typed@example.com")
    user_id = me(client, token)["id"]

    refresh_like = create_token(user_id, timedelta(minutes=5), token_type="refresh")
    res = client.get("/auth/me", headers=auth_headers(refresh_like))
    assert res.status_code == 401
    assert res.json()["error"] == "Invalid token type"


def test_login_rate_limit_returns_retry_after(test_context):
    client, _ = test_context
    register(client, email="limited@example.com")

    for _ in range(5):
        res = client.post("/auth/login", json={"identifier": "limited@example.com", "password": "wrong-pass"})
        assert res.status_code == 401

    blocked = client.post("/auth/login", json={"identifier": "limited@example.com", "password": "password123"})
    assert blocked.status_code == 429
    assert int(blocked.headers["Retry-After"]) > 0
    assert blocked.json()["code"] == "rate_limited"


def test_request_id_is_echoed(test_context):
    client, _ = test_context
    res = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert res.status_code == 200
    assert res.headers["X-Request-ID"] == "req-123"


def test_auth_check_routes_hotel_owner_to_hotel_console(test_context):
    client, session_local = test_context
    token = register(client, email="hotelier@example.com")
    user_id = me(client, token)["id"]

    plain = client.get("/auth/auth-check", headers=auth_headers(token))
    assert plain.status_code == 200
    assert plain.json()["redirect"] == "/dashboard"

    business_id = create_business(session_local, owner_id=user_id, type="hotel")
    with session_local() as db:
        db.add(
            OnboardingSubmission(
                id="sub-1",
                user_id=user_id,
                business_id=business_id,
                owner_name="Hotelier",
                owner_email="hotelier@example.com",
                business_name="Seaside Hotel",
                industry_type="hotel",
                status="pending",
            )
        )
        db.commit()

    routed = client.get("/auth/auth-check", headers=auth_headers(token))
    assert routed.json()["redirect"] == f"/admin/hotel?businessId={business_id}"
    assert routed.json()["businessId"] == business_id


def test_profile_reports_platform_admin(test_context):
    client, session_local = test_context
    token = register(client, email="Admin@TalkServe.com")
    with session_local() as db:
        db.add(PlatformAdmin(email="admin@talkserve.com"))
        db.commit()

    assert me(client, token)["isPlatformAdmin"] is True
