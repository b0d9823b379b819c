"""Notices router."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.auth.dependencies import get_current_user
from edusphere.auth.rbac import require_roles, school_scope
from edusphere.auth.schemas import CurrentUser
from edusphere.core.enums import UserRole
from edusphere.db.session import get_db

from . import service
from .schemas import NoticeCreate, NoticePublishResponse, NoticeResponse

router = APIRouter(prefix="/api/v1/notices", tags=["notices"])


@router.post("", response_model=NoticePublishResponse, status_code=status.HTTP_201_CREATED)
async def publish_notice(
    payload: NoticeCreate,
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.PRINCIPAL)),
) -> NoticePublishResponse:
    scope = school_scope(current_user, school_id)
    return await service.publish_notice(db, scope, current_user.id, payload)


@router.get("", response_model=List[NoticeResponse])
async def list_notices(
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[NoticeResponse]:
    scope = school_scope(current_user, school_id)
    role = None if current_user.role in (UserRole.SUPER_ADMIN.value, UserRole.PRINCIPAL.value) else current_user.role
    return await service.list_notices(db, scope, role=role)
