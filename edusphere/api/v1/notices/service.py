"""Notices service: publish to a school (optionally one role) and list what a user may read."""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.api.v1.notifications import service as notification_service
from edusphere.api.v1.users import service as users_service
from edusphere.core.models import Notice

from .schemas import NoticeCreate, NoticePublishResponse, NoticeResponse

logger = logging.getLogger(__name__)


async def publish_notice(
    db: AsyncSession,
    school_id: UUID,
    created_by: UUID,
    payload: NoticeCreate,
) -> NoticePublishResponse:
    notice = Notice(
        school_id=school_id,
        title=payload.title.strip(),
        content=payload.content,
        target_role=payload.target_role.value if payload.target_role else None,
        priority=payload.priority.value,
        created_by=created_by,
    )
    db.add(notice)
    await db.commit()
    await db.refresh(notice)

    recipients = await users_service.list_school_recipient_ids(db, school_id, role=notice.target_role)
    recipients = [uid for uid in recipients if uid != created_by]
    created = await notification_service.notify_notice_published(
        db, recipients, notice.title, payload.priority, notice.id
    )
    logger.info("Notice %s published to %d user(s)", notice.id, len(created))
    return NoticePublishResponse(notice=NoticeResponse.model_validate(notice), recipients=len(created))


async def list_notices(
    db: AsyncSession,
    school_id: UUID,
    role: Optional[str] = None,
) -> List[NoticeResponse]:
    """Newest first. With a role, only notices addressed to everyone or to that role."""
    stmt = select(Notice).where(Notice.school_id == school_id)
    if role is not None:
        stmt = stmt.where(or_(Notice.target_role.is_(None), Notice.target_role == role))
    result = await db.execute(stmt.order_by(Notice.created_at.desc()))
    return [NoticeResponse.model_validate(n) for n in result.scalars().all()]
