"""
Holidays service: holiday records and their announcements.

Every change is announced to the whole school (all users except super admins):
created -> info, date or title changed -> warning, deleted -> error.
The holiday write and the announcement are separate writes; notification_sent
records that the creation announcement went out.
"""

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.api.v1.notifications import service as notification_service
from edusphere.api.v1.users import service as users_service
from edusphere.core.config import settings
from edusphere.core.enums import HOLIDAY_TYPE_LABELS, HolidayType, NotificationCategory
from edusphere.core.exceptions import ConflictError, NotFoundError, ServiceError
from edusphere.core.models import Holiday

from .schemas import HolidayCreate, HolidayNotifyResponse, HolidayResponse, HolidayUpdate

logger = logging.getLogger(__name__)


def _metadata(holiday_id: UUID, holiday_type) -> dict:
    return {"holiday_id": str(holiday_id), "holiday_type": HolidayType(holiday_type).value}


async def _announce(
    db: AsyncSession,
    school_id: UUID,
    metadata: dict,
    title: str,
    message: str,
    category: NotificationCategory,
) -> int:
    recipients = await users_service.list_school_recipient_ids(db, school_id)
    created = await notification_service.notify_system(
        db, recipients, title, message, category, metadata=metadata
    )
    return len(created)


async def _announce_created(db: AsyncSession, holiday: Holiday) -> int:
    label = HOLIDAY_TYPE_LABELS[HolidayType(holiday.holiday_type)]
    return await _announce(
        db,
        holiday.school_id,
        _metadata(holiday.id, holiday.holiday_type),
        f"🎉 Holiday Announced: {holiday.title}",
        f"{label} on {notification_service.format_date(holiday.date)}. {holiday.description}",
        NotificationCategory.INFO,
    )


async def _announce_updated(db: AsyncSession, holiday: Holiday) -> int:
    return await _announce(
        db,
        holiday.school_id,
        _metadata(holiday.id, holiday.holiday_type),
        f"📅 Holiday Updated: {holiday.title}",
        "Holiday details have been updated. "
        f"New date: {notification_service.format_date(holiday.date)}. {holiday.description}",
        NotificationCategory.WARNING,
    )


async def _announce_cancelled(db: AsyncSession, holiday: HolidayResponse) -> int:
    return await _announce(
        db,
        holiday.school_id,
        _metadata(holiday.id, holiday.holiday_type),
        f"❌ Holiday Cancelled: {holiday.title}",
        f"The holiday scheduled for {notification_service.format_date(holiday.date)} has been cancelled. "
        "Please check the updated schedule.",
        NotificationCategory.ERROR,
    )


async def _mark_sent(db: AsyncSession, holiday: Holiday) -> None:
    holiday.notification_sent = True
    await db.commit()
    await db.refresh(holiday)


async def _get_holiday(db: AsyncSession, school_id: UUID, holiday_id: UUID) -> Holiday:
    holiday = await db.get(Holiday, holiday_id)
    if not holiday or holiday.school_id != school_id:
        raise NotFoundError("Holiday not found")
    return holiday


async def create_holiday(
    db: AsyncSession,
    school_id: UUID,
    created_by: UUID,
    payload: HolidayCreate,
) -> HolidayResponse:
    holiday = Holiday(
        school_id=school_id,
        title=payload.title.strip(),
        description=payload.description or "",
        date=payload.date,
        holiday_type=payload.holiday_type.value,
        is_recurring=payload.is_recurring,
        notification_sent=False,
        created_by=created_by,
    )
    db.add(holiday)
    await db.commit()
    await db.refresh(holiday)

    try:
        sent = await _announce_created(db, holiday)
    except SQLAlchemyError:
        # Holiday stays with notification_sent = false; POST /{id}/notify retries
        logger.exception("Announcement for holiday %s failed", holiday.id)
        raise
    await _mark_sent(db, holiday)
    logger.info("Holiday %s created, announced to %d user(s)", holiday.id, sent)
    return HolidayResponse.model_validate(holiday)


async def update_holiday(
    db: AsyncSession,
    school_id: UUID,
    holiday_id: UUID,
    payload: HolidayUpdate,
) -> HolidayResponse:
    """Apply changes; announce only when the date or the title changed."""
    holiday = await _get_holiday(db, school_id, holiday_id)
    old_date, old_title = holiday.date, holiday.title
    data = payload.model_dump(exclude_unset=True)

    if "title" in data:
        title = (data["title"] or "").strip()
        if not title:
            raise ServiceError("Title is required", status.HTTP_400_BAD_REQUEST)
        holiday.title = title
    if "date" in data:
        if data["date"] is None:
            raise ServiceError("Date is required", status.HTTP_400_BAD_REQUEST)
        holiday.date = data["date"]
    if "description" in data:
        holiday.description = data["description"] or ""
    if data.get("holiday_type") is not None:
        holiday.holiday_type = HolidayType(data["holiday_type"]).value
    if data.get("is_recurring") is not None:
        holiday.is_recurring = data["is_recurring"]
    holiday.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(holiday)

    if holiday.date != old_date or holiday.title != old_title:
        sent = await _announce_updated(db, holiday)
        logger.info("Holiday %s changed, update announced to %d user(s)", holiday.id, sent)
    return HolidayResponse.model_validate(holiday)


async def delete_holiday(db: AsyncSession, school_id: UUID, holiday_id: UUID) -> None:
    holiday = await _get_holiday(db, school_id, holiday_id)
    deleted = HolidayResponse.model_validate(holiday)
    await db.delete(holiday)
    await db.commit()
    sent = await _announce_cancelled(db, deleted)
    logger.info("Holiday %s deleted, cancellation announced to %d user(s)", deleted.id, sent)


async def send_pending_notification(
    db: AsyncSession,
    school_id: UUID,
    holiday_id: UUID,
) -> HolidayNotifyResponse:
    """Re-run the creation announcement for a holiday whose announcement never completed."""
    holiday = await _get_holiday(db, school_id, holiday_id)
    if holiday.notification_sent:
        raise ConflictError("Holiday notification already sent")
    sent = await _announce_created(db, holiday)
    await _mark_sent(db, holiday)
    return HolidayNotifyResponse(holiday=HolidayResponse.model_validate(holiday), recipients=sent)


async def get_holiday(db: AsyncSession, school_id: UUID, holiday_id: UUID) -> HolidayResponse:
    return HolidayResponse.model_validate(await _get_holiday(db, school_id, holiday_id))


async def list_holidays(
    db: AsyncSession,
    school_id: UUID,
    holiday_type: Optional[HolidayType] = None,
    search: Optional[str] = None,
) -> List[HolidayResponse]:
    """Ordered by date; search matches title or description, case-insensitive."""
    stmt = select(Holiday).where(Holiday.school_id == school_id)
    if holiday_type is not None:
        stmt = stmt.where(Holiday.holiday_type == holiday_type.value)
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(or_(Holiday.title.ilike(pattern), Holiday.description.ilike(pattern)))
    result = await db.execute(stmt.order_by(Holiday.date, Holiday.title))
    return [HolidayResponse.model_validate(h) for h in result.scalars().all()]


async def list_upcoming_holidays(
    db: AsyncSession,
    school_id: UUID,
    today: Optional[date] = None,
    days: Optional[int] = None,
) -> List[HolidayResponse]:
    """Holidays after today and at most `days` days ahead."""
    today = today or date.today()
    days = settings.upcoming_holiday_days if days is None else days
    result = await db.execute(
        select(Holiday)
        .where(
            Holiday.school_id == school_id,
            Holiday.date > today,
            Holiday.date <= today + timedelta(days=days),
        )
        .order_by(Holiday.date)
    )
    return [HolidayResponse.model_validate(h) for h in result.scalars().all()]


async def list_todays_holidays(
    db: AsyncSession,
    school_id: UUID,
    today: Optional[date] = None,
) -> List[HolidayResponse]:
    today = today or date.today()
    result = await db.execute(
        select(Holiday).where(Holiday.school_id == school_id, Holiday.date == today).order_by(Holiday.title)
    )
    return [HolidayResponse.model_validate(h) for h in result.scalars().all()]
