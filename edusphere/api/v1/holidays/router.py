"""Holidays router: school holidays and their announcements."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.auth.dependencies import get_current_user
from edusphere.auth.rbac import require_roles, school_scope
from edusphere.auth.schemas import CurrentUser
from edusphere.core.enums import HolidayType, UserRole
from edusphere.core.exceptions import ServiceError
from edusphere.db.session import get_db

from . import service
from .schemas import HolidayCreate, HolidayNotifyResponse, HolidayResponse, HolidayUpdate

router = APIRouter(prefix="/api/v1/holidays", tags=["holidays"])


@router.post("", response_model=HolidayResponse, status_code=status.HTTP_201_CREATED)
async def create_holiday(
    payload: HolidayCreate,
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.PRINCIPAL)),
) -> HolidayResponse:
    """Create a holiday and announce it to everyone in the school."""
    scope = school_scope(current_user, school_id)
    try:
        return await service.create_holiday(db, scope, current_user.id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[HolidayResponse])
async def list_holidays(
    holiday_type: Optional[HolidayType] = Query(None, alias="type"),
    search: Optional[str] = Query(None),
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[HolidayResponse]:
    scope = school_scope(current_user, school_id)
    return await service.list_holidays(db, scope, holiday_type=holiday_type, search=search)


@router.get("/upcoming", response_model=List[HolidayResponse])
async def list_upcoming_holidays(
    days: Optional[int] = Query(None, ge=1, le=366),
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[HolidayResponse]:
    return await service.list_upcoming_holidays(db, school_scope(current_user, school_id), days=days)


@router.get("/today", response_model=List[HolidayResponse])
async def list_todays_holidays(
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[HolidayResponse]:
    return await service.list_todays_holidays(db, school_scope(current_user, school_id))


@router.get("/{holiday_id}", response_model=HolidayResponse)
async def get_holiday(
    holiday_id: UUID,
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> HolidayResponse:
    try:
        return await service.get_holiday(db, school_scope(current_user, school_id), holiday_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{holiday_id}", response_model=HolidayResponse)
async def update_holiday(
    holiday_id: UUID,
    payload: HolidayUpdate,
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.PRINCIPAL)),
) -> HolidayResponse:
    scope = school_scope(current_user, school_id)
    try:
        return await service.update_holiday(db, scope, holiday_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{holiday_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_holiday(
    holiday_id: UUID,
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.PRINCIPAL)),
) -> Response:
    """Delete a holiday and announce the cancellation."""
    scope = school_scope(current_user, school_id)
    try:
        await service.delete_holiday(db, scope, holiday_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{holiday_id}/notify", response_model=HolidayNotifyResponse)
async def send_holiday_notification(
    holiday_id: UUID,
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.PRINCIPAL)),
) -> HolidayNotifyResponse:
    """Send the announcement of a holiday whose announcement did not go out."""
    scope = school_scope(current_user, school_id)
    try:
        return await service.send_pending_notification(db, scope, holiday_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
