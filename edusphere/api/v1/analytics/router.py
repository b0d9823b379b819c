"""Analytics router."""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.auth.rbac import require_roles, school_scope
from edusphere.auth.schemas import CurrentUser
from edusphere.core.enums import UserRole
from edusphere.db.session import get_db

from . import service
from .schemas import AnalyticsOverview

router = APIRouter(prefix="/api/v1/analytics", tags=["analytics"])


@router.get("/overview", response_model=AnalyticsOverview)
async def analytics_overview(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    class_id: Optional[UUID] = Query(None),
    student_id: Optional[UUID] = Query(None),
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.PRINCIPAL, UserRole.TEACHER)),
) -> AnalyticsOverview:
    """Daily attendance percentage and per-subject performance for a school, class or student."""
    scope = school_scope(current_user, school_id)
    return await service.get_overview(db, scope, start=start, end=end, class_id=class_id, student_id=student_id)
