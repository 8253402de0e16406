from datetime import datetime, timezone

from app.core.id_utils import generate_shortuuid
from app.models.business import Business
from app.models.business_member import BusinessMember


def register(client, *, email: str, full_name: str = "Owner", password: str = "password123") -> str:
    res = client.post(
        "/auth/register",
        json={"email": email, "fullName": full_name, "password": password},
    )
    assert res.status_code == 200, res.text
    return res.json()["access_token"]


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def me(client, token: str) -> dict:
    res = client.get("/auth/me", headers=auth_headers(token))
    assert res.status_code == 200, res.text
    return res.json()


def create_business(session_local, *, owner_id: str, name: str = "Seaside Hotel", type: str = "hotel") -> str:
    business_id = generate_shortuuid()
    with session_local() as db:
        db.add(Business(id=business_id, owner_user_id=owner_id, name=name, type=type, context={}))
        db.commit()
    return business_id


def add_member(
    session_local,
    *,
    business_id: str,
    user_id: str,
    email: str,
    role: str,
    department: str | None = None,
    full_name: str | None = None,
    preferred_language: str | None = None,
) -> None:
    with session_local() as db:
        db.add(
            BusinessMember(
                business_id=business_id,
                user_id=user_id,
                email=email,
                full_name=full_name,
                role=role,
                department=department,
                status="active",
                preferred_language=preferred_language,
                created_at=datetime.now(timezone.utc),
            )
        )
        db.commit()


def hotel_team(client, session_local) -> dict:
    """Owner (member-admin), a front desk manager, two staff and an outsider."""
    people = {}
    for key, email, name in [
        ("owner", "owner@hotel.example.com", "Olivia Owner"),
        ("manager", "manager@hotel.example.com", "Mark Manager"),
        ("staff", "staff@hotel.example.com", "Sam Staff"),
        ("staff2", "staff2@hotel.example.com", None),
        ("outsider", "outsider@example.com", "Otto Outsider"),
    ]:
        token = register(client, email=email, full_name=name or "Member")
        people[key] = {"token": token, "id": me(client, token)["id"], "email": email, "name": name}

    business_id = create_business(session_local, owner_id=people["owner"]["id"])
    add_member(session_local, business_id=business_id, user_id=people["owner"]["id"],
               email=people["owner"]["email"], role="admin", full_name=people["owner"]["name"])
    add_member(session_local, business_id=business_id, user_id=people["manager"]["id"],
               email=people["manager"]["email"], role="manager", department="Front Desk",
               full_name=people["manager"]["name"])
    add_member(session_local, business_id=business_id, user_id=people["staff"]["id"],
               email=people["staff"]["email"], role="staff", department="housekeeping",
               full_name=people["staff"]["name"], preferred_language="fr")
    add_member(session_local, business_id=business_id, user_id=people["staff2"]["id"],
               email=people["staff2"]["email"], role="staff", department="front-desk")
    people["business_id"] = business_id
    return people
