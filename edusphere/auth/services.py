from datetime import datetime, timezone

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.auth.models import User
from edusphere.auth.schemas import LoginRequest, LoginResponse, UserInfo
from edusphere.auth.security import create_access_token, token_subject_for, verify_password
from edusphere.core.exceptions import ServiceError


async def login_user(db: AsyncSession, payload: LoginRequest) -> LoginResponse:
    result = await db.execute(select(User).where(User.email == payload.email.lower()))
    user = result.scalar_one_or_none()
    if not user or not verify_password(payload.password, user.password_hash):
        raise ServiceError("Invalid email or password", status.HTTP_401_UNAUTHORIZED)
    if not user.is_active:
        raise ServiceError("Account is disabled", status.HTTP_403_FORBIDDEN)

    now = datetime.now(timezone.utc)
    user.last_login = now
    await db.commit()

    return LoginResponse(
        access_token=create_access_token(subject=token_subject_for(user)),
        user=UserInfo(
            id=user.id,
            name=user.full_name,
            email=user.email,
            role=user.role,
            school_id=user.school_id,
        ),
        issued_at=now,
    )
