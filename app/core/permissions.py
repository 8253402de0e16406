from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.models.business import Business
from app.models.business_member import BusinessMember
from app.services.membership_service import get_business, resolve_membership


def require_member(db: Session, business_id: str, user_id: str) -> BusinessMember:
    member = resolve_membership(db, business_id, user_id)
    if member is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not a member of this business",
        )
    return member


def require_business_owner(db: Session, business_id: str, user_id: str) -> Business:
    business = get_business(db, business_id)
    if business is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Business not found")
    if business.owner_user_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the business owner can perform this action",
        )
    return business


def require_owner_or_admin(db: Session, business_id: str, user_id: str) -> Business:
    """Owner of the business, or a member holding the admin role."""
    business = get_business(db, business_id)
    if business is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Business not found")
    if business.owner_user_id == user_id:
        return business
    member = resolve_membership(db, business_id, user_id)
    if member is None or (member.role or "").lower() != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient role for this action",
        )
    return business
