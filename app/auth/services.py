from datetime import datetime, timezone

from fastapi import status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import User
from app.auth.schemas import LoginRequest, LoginResponse, RegisterRequest, UserInfo
from app.auth.security import create_owner_token, hash_password, verify_password
from app.core.exceptions import ConflictError, ServiceError
from app.core.logging import get_logger

logger = get_logger(__name__)


def _user_info(user: User) -> UserInfo:
    return UserInfo(id=user.id, full_name=user.full_name, email=user.email)


async def register_user(db: AsyncSession, payload: RegisterRequest) -> UserInfo:
    email = payload.email.strip().lower()
    existing = await db.execute(select(User.id).where(func.lower(User.email) == email))
    if existing.scalar_one_or_none():
        raise ConflictError("Email is already in use")
    try:
        user = User(
            full_name=payload.full_name.strip(),
            email=email,
            password_hash=hash_password(payload.password),
            status="ACTIVE",
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Email is already in use") from e
    logger.info("user_registered", user_id=str(user.id))
    return _user_info(user)


async def login_user(db: AsyncSession, payload: LoginRequest) -> LoginResponse:
    email = payload.email.strip().lower()
    result = await db.execute(select(User).where(func.lower(User.email) == email))
    user = result.scalar_one_or_none()
    if not user or not verify_password(payload.password, user.password_hash):
        logger.warning("login_failed", email=email)
        raise ServiceError("Invalid email or password", status.HTTP_401_UNAUTHORIZED)
    if user.status != "ACTIVE":
        raise ServiceError("Account is not active", status.HTTP_403_FORBIDDEN)

    issued_at = datetime.now(timezone.utc)
    token = create_owner_token(user.id, user.email)
    return LoginResponse(access_token=token, user=_user_info(user), issued_at=issued_at)
