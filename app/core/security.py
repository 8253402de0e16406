from datetime import datetime, timedelta, timezone
from uuid import uuid4

import bcrypt
from jose import JWTError, jwt

from app.core.config import settings

ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"


class TokenValidationError(ValueError):
    pass


def hash_password(password: str) -> str:
    # bcrypt only looks at the first 72 bytes of the utf-8 encoding.
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash.
        return False


def create_token(subject: str, expires_delta: timedelta, token_type: str) -> str:
    issued_at = datetime.now(timezone.utc)
    claims = {
        "sub": subject,
        "type": token_type,
        "jti": uuid4().hex,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + expires_delta).timestamp()),
    }
    return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM)


def create_access_token(user_id: str) -> str:
    return create_token(
        user_id,
        timedelta(minutes=settings.access_token_expire_minutes),
        token_type=ACCESS_TOKEN_TYPE,
    )


def verify_access_token(token: str) -> str:
    """Return the user id carried by a valid access token.

    Signature, expiry and token type are checked here; nothing else about the
    user is known at this point.
    """
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise TokenValidationError("Invalid token") from exc

    if claims.get("type") != ACCESS_TOKEN_TYPE:
        raise TokenValidationError("Invalid token type")
    subject = claims.get("sub")
    if not subject:
        raise TokenValidationError("Invalid token subject")
    return str(subject)
