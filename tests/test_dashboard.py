from datetime import datetime, timezone

from helpers import auth_headers, me, register
from sqlalchemy import select

from app.core.config import settings
from app.main import app
from app.models.business import Business
from app.models.business_member import BusinessMember
from app.models.chat_experience import ChatExperience
from app.routers.dashboard import AI_NOT_CONFIGURED, get_sentiment_provider
from app.services.ai_service import AIProviderResult
from app.services.analytics_service import compute_dashboard_analytics

NOW = datetime(2026, 10, 14, 15, 30, tzinfo=timezone.utc)


def _chat(db, index, created_at, *, mood=None, type="Whatsapp agent"):
    db.add(
        ChatExperience(
            id=f"chat-{index}",
            customer=f"+1555000{index}",
            conversation_date=created_at.date().isoformat(),
            conversation_id=f"conv-{index}",
            customer_mood=mood,
            type=type,
            created_at=created_at,
            updated_at=created_at,
        )
    )


def _seed_chats(session_local):
    with session_local() as db:
        _chat(db, 1, datetime(2026, 10, 12, 10, 15, tzinfo=timezone.utc), mood="Happy")
        _chat(db, 2, datetime(2026, 10, 14, 10, 45, tzinfo=timezone.utc), mood="Happy", type="Voice")
        _chat(db, 3, datetime(2026, 10, 14, 14, 5, tzinfo=timezone.utc), mood="Frustrated")
        _chat(db, 4, datetime(2026, 10, 14, 16, 0, tzinfo=timezone.utc))
        _chat(db, 5, datetime(2026, 10, 6, 9, 0, tzinfo=timezone.utc))
        _chat(db, 6, datetime(2026, 10, 11, 23, 59, tzinfo=timezone.utc))
        _chat(db, 7, datetime(2026, 10, 4, 8, 0, tzinfo=timezone.utc))
        db.commit()


def test_week_analytics(test_context):
    _, session_local = test_context
    _seed_chats(session_local)

    with session_local() as db:
        data = compute_dashboard_analytics(db, "week", now=NOW)

    assert data["total_chats"] == 3
    assert data["previous_total"] == 2
    assert data["change"] == 50.0
    assert data["peak_hour"] == "10:00 AM - 11:00 AM"
    assert data["peak_day"] == "Wednesday"
    assert data["daily_data"] == [1, 0, 2, 0, 0, 0, 0]
    assert data["hourly_data"] == []
    assert data["mood_counts"] == {"Happy": 2, "Frustrated": 1}
    assert data["type_counts"] == {"Whatsapp agent": 2, "Voice": 1}
    assert [bucket["count"] for bucket in data["hourly_distribution"]] == [2, 1, 0, 0]
    assert [bucket["percentage"] for bucket in data["hourly_distribution"]] == [67, 33, 0, 0]
    assert data["weekly_performance"] == [50, 0, 100, 0, 0, 0, 0]


def test_day_and_month_analytics(test_context):
    _, session_local = test_context
    _seed_chats(session_local)

    with session_local() as db:
        day = compute_dashboard_analytics(db, "day", now=NOW)
        month = compute_dashboard_analytics(db, "month", now=NOW)

    assert day["total_chats"] == 2
    assert day["previous_total"] == 0
    assert day["change"] == 100.0
    assert len(day["hourly_data"]) == 24
    assert day["hourly_data"][10] == 1 and day["hourly_data"][14] == 1

    assert month["total_chats"] == 6
    assert month["weekly_data"] == [2, 4]
    assert month["daily_data"] == []


def test_empty_analytics(test_context):
    _, session_local = test_context
    with session_local() as db:
        data = compute_dashboard_analytics(db, "week", now=NOW)
    assert data["total_chats"] == 0
    assert data["change"] == 0.0
    assert data["peak_hour"] == "N/A"
    assert data["peak_day"] == "N/A"
    assert data["weekly_performance"] == [0] * 7


def test_analytics_endpoint(test_context):
    client, _ = test_context
    token = register(client, email="owner@example.com")

    res = client.get("/dashboard-analytics", params={"period": "month"}, headers=auth_headers(token))
    assert res.status_code == 200
    body = res.json()
    assert body["period"] == "month"
    assert body["data"]["totalChats"] == 0
    assert "hourlyDistribution" in body["data"]

    invalid = client.get("/dashboard-analytics", params={"period": "year"}, headers=auth_headers(token))
    assert invalid.status_code == 422
    assert client.get("/dashboard-analytics").status_code == 401


def test_analyze_sentiment_with_stub_provider(test_context):
    client, _ = test_context
    token = register(client, email="owner@example.com")

    res = client.post(
        "/analyze-sentiment",
        json={
            "messages": [
                {"direction": "incoming", "message": "Thanks, great service"},
                {"direction": "outgoing", "message": "Happy to help"},
            ]
        },
        headers=auth_headers(token),
    )
    assert res.status_code == 200
    body = res.json()
    assert body["sentiment"] == "positive"
    assert body["rating"] == 5
    assert body["customerMood"] == "Satisfied"
    assert body["keyTopics"] == ["thanks", "great", "service"]

    empty = client.post("/analyze-sentiment", json={"messages": []}, headers=auth_headers(token))
    assert empty.status_code == 400
    assert empty.json()["error"] == "No messages provided"


def test_analyze_sentiment_without_api_key(test_context, monkeypatch):
    client, _ = test_context
    token = register(client, email="owner@example.com")
    monkeypatch.setattr(settings, "ai_provider", "openai")
    monkeypatch.setattr(settings, "openai_api_key", None)

    res = client.post(
        "/analyze-sentiment",
        json={"messages": [{"direction": "incoming", "message": "hi"}]},
        headers=auth_headers(token),
    )
    assert res.status_code == 503
    assert res.json()["error"] == AI_NOT_CONFIGURED


def test_analyze_sentiment_bad_answer(test_context):
    client, _ = test_context
    token = register(client, email="owner@example.com")

    class ListProvider:
        provider = "fake"
        model = "fake"

        def complete(self, *, system_prompt, user_prompt, json_mode=False):
            return AIProviderResult(text="[1, 2, 3]")

    class ClampProvider(ListProvider):
        def complete(self, *, system_prompt, user_prompt, json_mode=False):
            return AIProviderResult(text='{"rating": 9, "keyTopics": "billing"}')

    app.dependency_overrides[get_sentiment_provider] = lambda: ListProvider()
    failed = client.post(
        "/analyze-sentiment",
        json={"messages": [{"message": "hello"}]},
        headers=auth_headers(token),
    )
    assert failed.status_code == 500
    assert failed.json()["error"] == "Failed to analyze conversation"

    app.dependency_overrides[get_sentiment_provider] = lambda: ClampProvider()
    normalized = client.post(
        "/analyze-sentiment",
        json={"messages": [{"message": "hello"}]},
        headers=auth_headers(token),
    )
    body = normalized.json()
    assert body["rating"] == 5
    assert body["keyTopics"] == ["billing"]
    assert body["sentiment"] == "neutral"
    assert body["summary"] == "Unable to generate summary"
    assert body["customerMood"] == "Unknown"


def test_save_summary_upserts_per_customer_and_day(test_context):
    client, session_local = test_context
    headers = auth_headers(register(client, email="owner@example.com"))

    first = client.post(
        "/save-summary",
        json={"customer": "+15550001", "conversationDate": "2026-10-01", "summary": "Asked about rooms", "rating": 4},
        headers=headers,
    )
    assert first.status_code == 200
    assert first.json()["created"] is True
    summary = first.json()["summary"]
    assert summary["type"] == "Whatsapp agent"
    assert summary["conversationId"] == "+15550001_2026-10-01"

    second = client.post(
        "/save-summary",
        json={"customer": "+15550001", "conversationDate": "2026-10-01", "summary": "Booked a room"},
        headers=headers,
    )
    assert second.json()["created"] is False
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["summary"]["summary"] == "Booked a room"

    client.post(
        "/save-summary",
        json={"customer": "+15550001", "conversationDate": "2026-10-03", "summary": "Asked for late checkout"},
        headers=headers,
    )
    client.post("/save-summary", json={"customer": "+15550002", "summary": "Other guest"}, headers=headers)

    listing = client.get("/summaries", params={"customer": "+15550001"}, headers=headers)
    assert [item["conversationDate"] for item in listing.json()["summaries"]] == ["2026-10-03", "2026-10-01"]

    with session_local() as db:
        assert len(db.execute(select(ChatExperience)).scalars().all()) == 3

    bad_date = client.post(
        "/save-summary", json={"customer": "+15550001", "conversationDate": "10/01/2026"}, headers=headers
    )
    assert bad_date.status_code == 422
    bad_rating = client.post("/save-summary", json={"customer": "+15550001", "rating": 6}, headers=headers)
    assert bad_rating.status_code == 422


def test_business_context_merges_and_is_private(test_context):
    client, _ = test_context
    token = register(client, email="owner@example.com")
    uid = me(client, token)["id"]
    headers = auth_headers(token)

    empty = client.get("/business-context", params={"uid": uid}, headers=headers)
    assert empty.json()["businessId"] is None
    assert empty.json()["context"] == {}

    created = client.post(
        "/business-context", json={"uid": uid, "context": {"checkIn": "3 PM"}}, headers=headers
    )
    assert created.status_code == 200
    assert created.json()["businessName"] == "My Business"

    merged = client.post(
        "/business-context",
        json={"uid": uid, "businessName": "Seaside", "context": {"parking": "Free"}},
        headers=headers,
    )
    context = merged.json()["context"]
    assert context["checkIn"] == "3 PM"
    assert context["parking"] == "Free"
    assert "updatedAt" in context
    assert merged.json()["businessId"] == created.json()["businessId"]

    current = client.get("/business-context", params={"uid": uid}, headers=headers)
    assert current.json()["businessName"] == "Seaside"

    other = client.get("/business-context", params={"uid": "someone-else"}, headers=headers)
    assert other.status_code == 403
    assert other.json()["error"] == "Cannot access another user's data"


def test_widget_settings_merge(test_context):
    client, _ = test_context
    token = register(client, email="owner@example.com")
    uid = me(client, token)["id"]
    headers = auth_headers(token)

    assert client.get("/widget-settings", params={"uid": uid}, headers=headers).json()["settings"] == {}
    client.post("/widget-settings", json={"uid": uid, "settings": {"color": "teal"}}, headers=headers)
    res = client.post("/widget-settings", json={"uid": uid, "settings": {"position": "left"}}, headers=headers)
    assert res.json()["settings"] == {"color": "teal", "position": "left"}

    denied = client.post("/widget-settings", json={"uid": "other", "settings": {}}, headers=headers)
    assert denied.status_code == 403


def _onboarding_form(**overrides):
    form = {
        "ownerName": "Olivia Owner",
        "ownerEmail": "Olivia@Example.com",
        "businessName": "Harbor Inn",
        "industryType": "Hotel",
        "ownerPhone": "+1 555 0100",
    }
    form.update(overrides)
    return form


def test_onboarding_creates_business_and_admin_membership(test_context):
    client, session_local = test_context
    token = register(client, email="olivia@example.com", full_name="Olivia")
    user_id = me(client, token)["id"]
    headers = auth_headers(token)

    before = client.get("/onboarding", headers=headers)
    assert before.json()["exists"] is False
    assert before.json()["data"] is None

    res = client.post(
        "/onboarding",
        data=_onboarding_form(),
        files={"businessContext": ("context.txt", b"Breakfast 7-10 AM", "text/plain")},
        headers=headers,
    )
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["exists"] is True
    data = body["data"]
    assert data["ownerEmail"] == "olivia@example.com"
    assert data["industryType"] == "hotel"
    assert data["status"] == "pending"
    assert data["businessContextFilename"] == "context.txt"

    with session_local() as db:
        business = db.get(Business, data["businessId"])
        assert business.owner_user_id == user_id
        assert business.type == "hotel"
        member = db.get(BusinessMember, (business.id, user_id))
        assert member.role == "admin"

    check = client.get("/auth/auth-check", headers=headers)
    assert check.json()["redirect"] == f"/admin/hotel?businessId={data['businessId']}"

    again = client.post("/onboarding", data=_onboarding_form(), headers=headers)
    assert again.status_code == 409

    current = client.get("/onboarding", headers=headers)
    assert current.json()["documentId"] == body["documentId"]


def test_onboarding_update(test_context):
    client, session_local = test_context
    owner = auth_headers(register(client, email="olivia@example.com"))
    other = auth_headers(register(client, email="mallory@example.com"))
    created = client.post("/onboarding", data=_onboarding_form(), headers=owner).json()
    document_id = created["documentId"]

    missing_id = client.put("/onboarding", data={"businessName": "New"}, headers=owner)
    assert missing_id.status_code == 400
    assert missing_id.json()["error"] == "Document ID is required for updates"

    unknown = client.put("/onboarding", data={"documentId": "nope"}, headers=owner)
    assert unknown.status_code == 404

    foreign = client.put("/onboarding", data={"documentId": document_id, "businessName": "Mine"}, headers=other)
    assert foreign.status_code == 403

    updated = client.put(
        "/onboarding", data={"documentId": document_id, "businessName": "Harbor Inn & Spa"}, headers=owner
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["businessName"] == "Harbor Inn & Spa"
    assert updated.json()["data"]["ownerName"] == "Olivia Owner"

    with session_local() as db:
        assert db.get(Business, created["data"]["businessId"]).name == "Harbor Inn & Spa"
