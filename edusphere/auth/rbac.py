from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status

from edusphere.auth.dependencies import get_current_user
from edusphere.auth.schemas import CurrentUser
from edusphere.core.enums import UserRole


def require_roles(*roles: UserRole):
    """
    Dependency factory restricting an endpoint to the given roles.
    super_admin passes every check.

    Example:
        Depends(require_roles(UserRole.PRINCIPAL, UserRole.TEACHER))
    """
    allowed = {r.value for r in roles}

    async def _checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role == UserRole.SUPER_ADMIN.value:
            return current_user
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return _checker


def school_scope(current_user: CurrentUser, school_id: Optional[UUID] = None) -> UUID:
    """
    School the request operates on. School users are pinned to their own school;
    super_admin must name one explicitly.
    """
    if current_user.role == UserRole.SUPER_ADMIN.value:
        if school_id is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="school_id is required for super admin requests",
            )
        return school_id
    if current_user.school_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is not attached to a school",
        )
    if school_id is not None and school_id != current_user.school_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot access another school",
        )
    return current_user.school_id
