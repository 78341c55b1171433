"""Password hashing and owner access tokens."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

import bcrypt
from jose import JWTError, jwt

from app.core.config import settings


def hash_password(plain_password: str) -> str:
    return bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # stored hash is not a bcrypt hash
        return False


def create_owner_token(user_id: UUID, email: str, expires_minutes: Optional[int] = None) -> str:
    """Signed bearer token; `sub` is the owner id every service call is scoped to."""
    minutes = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    claims: Dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=minutes),
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def owner_id_from_token(token: str) -> Optional[UUID]:
    """Owner id from a valid, unexpired token, else None."""
    try:
        claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    try:
        return UUID(str(claims.get("sub", "")))
    except ValueError:
        return None
