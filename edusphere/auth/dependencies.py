from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.auth.models import User
from edusphere.auth.schemas import CurrentUser
from edusphere.core.config import settings
from edusphere.db.session import get_db


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login-oauth")


class InvalidCredentials(Exception):
    """Token missing, malformed, expired or pointing at an inactive user."""


async def resolve_user_from_token(db: AsyncSession, token: str) -> CurrentUser:
    """Decode an access token and load the user it names. Raises InvalidCredentials."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        raise InvalidCredentials()

    user_id_str = payload.get("user_id") or payload.get("sub")
    role_name = payload.get("role")
    if not user_id_str or not role_name:
        raise InvalidCredentials()
    try:
        user_id = UUID(user_id_str)
    except ValueError:
        raise InvalidCredentials()

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise InvalidCredentials()

    return CurrentUser(
        id=user.id,
        school_id=user.school_id,
        role=user.role,
        name=user.full_name,
    )


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Resolve the authenticated user from the access token."""
    try:
        return await resolve_user_from_token(db, token)
    except InvalidCredentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
