from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.deps import get_db
from app.core.security import TokenValidationError, verify_access_token
from app.models.user import User
from app.services.platform_admin_service import is_platform_admin

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def get_current_user_id(token: str | None = Depends(oauth2_scheme)) -> str:
    """Verify the bearer token and return its subject.

    Knows nothing about businesses or roles and never touches the database, so
    an unauthenticated request is rejected before any read happens.
    """
    if not token:
        raise HTTPException(
            status_code=401,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return verify_access_token(token)
    except TokenValidationError as exc:
        raise HTTPException(
            status_code=401,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def get_current_user(
    user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)
) -> User:
    user = db.execute(select(User).where(User.id == user_id)).scalar_one_or_none()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def require_platform_admin(
    user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> User:
    if not is_platform_admin(db, user.email):
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
