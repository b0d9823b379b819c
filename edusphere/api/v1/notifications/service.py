"""Notifications service: per-recipient records, typed constructors for domain events, read state, retention."""

import logging
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional, Union
from uuid import UUID

from fastapi import status
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.core.config import settings
from edusphere.core.enums import (
    AttendanceStatus,
    CertificateStatus,
    NoticePriority,
    NotificationCategory,
    UserRole,
)
from edusphere.core.exceptions import ServiceError
from edusphere.core.models import Notification

from .events import (
    EVENT_CLEANED,
    EVENT_CREATED,
    EVENT_DELETED,
    EVENT_READ,
    EVENT_READ_ALL,
    hub,
)
from .schemas import NotificationResponse

logger = logging.getLogger(__name__)

SYSTEM_CATEGORIES = (
    NotificationCategory.INFO,
    NotificationCategory.WARNING,
    NotificationCategory.ERROR,
)

NOTICE_PRIORITY_MARKERS = {
    NoticePriority.low: "📢",
    NoticePriority.medium: "⚠️",
    NoticePriority.high: "🚨",
}

ATTENDANCE_STATUS_MESSAGES = {
    AttendanceStatus.present: "marked as present",
    AttendanceStatus.absent: "marked as absent",
    AttendanceStatus.late: "marked as late",
}

WELCOME_MESSAGES = {
    UserRole.STUDENT.value: "Welcome to EduSphere! You can now view your assignments, grades, and school notices.",
    UserRole.TEACHER.value: "Welcome to EduSphere! You can now manage your classes, create assignments, and track student progress.",
    UserRole.PRINCIPAL.value: "Welcome to EduSphere! You have full access to manage your school, teachers, students, and notices.",
    UserRole.SUPER_ADMIN.value: "Welcome to EduSphere! You have administrative access to manage all schools and users.",
}
DEFAULT_WELCOME_MESSAGE = "Welcome to EduSphere!"

CERTIFICATE_STATUS_CATEGORIES = {
    CertificateStatus.approved: NotificationCategory.INFO,
    CertificateStatus.rejected: NotificationCategory.ERROR,
    CertificateStatus.generated: NotificationCategory.SUCCESS,
}

# (minimum percentage, letter), checked top-down
GRADE_BANDS = (
    (90, "A+"),
    (80, "A"),
    (70, "B"),
    (60, "C"),
)
LOWEST_GRADE = "D"


def _utcnow() -> datetime:
    return datetime.utcnow()


def _to_uuid(val):
    if val is None:
        return None
    return val if isinstance(val, UUID) else UUID(str(val))


def format_date(value: Union[date, datetime, str]) -> str:
    """Display format used in notification text: M/D/YYYY."""
    if isinstance(value, str):
        value = date.fromisoformat(value[:10])
    return f"{value.month}/{value.day}/{value.year}"


def grade_percentage(marks: Union[int, float, Decimal], max_marks: Union[int, float, Decimal]) -> int:
    """Whole-number percentage, halves rounded up."""
    max_dec = Decimal(str(max_marks))
    if max_dec <= 0:
        raise ServiceError("max_marks must be greater than zero", status.HTTP_400_BAD_REQUEST)
    pct = Decimal(str(marks)) / max_dec * 100
    return int(pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def letter_grade(percentage: Union[int, float, Decimal]) -> str:
    for minimum, letter in GRADE_BANDS:
        if percentage >= minimum:
            return letter
    return LOWEST_GRADE


def _fmt_marks(value) -> str:
    dec = Decimal(str(value))
    return str(dec.quantize(Decimal("1"))) if dec == dec.to_integral_value() else str(dec.normalize())


def _json_metadata(metadata: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not metadata:
        return None
    return {k: (str(v) if isinstance(v, (UUID, date, datetime, Decimal)) else v) for k, v in metadata.items()}


def _to_response(n: Notification) -> NotificationResponse:
    return NotificationResponse(
        id=_to_uuid(n.id),
        recipient_user_id=_to_uuid(n.recipient_user_id),
        title=n.title,
        message=n.message,
        category=n.category,
        read=bool(n.read),
        read_at=n.read_at,
        action_reference=n.action_reference,
        metadata=n.extra,
        created_at=n.created_at,
    )


# --- Generic constructors ---
async def create_notification(
    db: AsyncSession,
    recipient_user_id: UUID,
    title: str,
    message: str,
    category: NotificationCategory,
    action_reference: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> NotificationResponse:
    """Append one unread notification for one recipient."""
    category = NotificationCategory(category)
    notification = Notification(
        recipient_user_id=recipient_user_id,
        title=title,
        message=message,
        category=category.value,
        read=False,
        action_reference=action_reference,
        extra=_json_metadata(metadata),
        created_at=_utcnow(),
    )
    db.add(notification)
    await db.commit()
    await db.refresh(notification)
    hub.publish(EVENT_CREATED, _to_uuid(notification.recipient_user_id), _to_uuid(notification.id))
    return _to_response(notification)


async def create_for_many(
    db: AsyncSession,
    recipient_user_ids: Iterable[UUID],
    title: str,
    message: str,
    category: NotificationCategory,
    action_reference: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> List[NotificationResponse]:
    """
    Fan out: one record per recipient id, each committed on its own.
    If a write fails part-way, recipients handled before the failure keep their record.
    """
    created: List[NotificationResponse] = []
    for recipient_user_id in recipient_user_ids:
        created.append(
            await create_notification(
                db,
                recipient_user_id,
                title,
                message,
                category,
                action_reference=action_reference,
                metadata=metadata,
            )
        )
    logger.info("Fan-out '%s' (%s) delivered to %d recipient(s)", title, NotificationCategory(category).value, len(created))
    return created


# --- Domain event constructors ---
async def notify_assignment_posted(
    db: AsyncSession,
    student_ids: Iterable[UUID],
    assignment_title: str,
    subject_name: str,
    class_name: str,
    due_date: Union[date, str],
    assignment_id: UUID,
) -> List[NotificationResponse]:
    return await create_for_many(
        db,
        student_ids,
        "New Assignment Posted",
        f"{assignment_title} has been assigned for {subject_name}. Due: {format_date(due_date)}",
        NotificationCategory.ASSIGNMENT,
        action_reference=f"/assignments/{assignment_id}",
        metadata={
            "assignment_id": assignment_id,
            "subject_name": subject_name,
            "class_name": class_name,
        },
    )


async def notify_grade_posted(
    db: AsyncSession,
    student_id: UUID,
    subject_name: str,
    exam_type: str,
    marks: Union[int, float, Decimal],
    max_marks: Union[int, float, Decimal],
    grade_id: UUID,
) -> NotificationResponse:
    percentage = grade_percentage(marks, max_marks)
    letter = letter_grade(percentage)
    return await create_notification(
        db,
        student_id,
        "New Grade Posted",
        f"Your {exam_type} grade for {subject_name}: {_fmt_marks(marks)}/{_fmt_marks(max_marks)} ({percentage}% - {letter})",
        NotificationCategory.GRADE,
        action_reference=f"/grades/{grade_id}",
        metadata={"grade_id": grade_id, "subject_name": subject_name},
    )


async def notify_attendance_marked(
    db: AsyncSession,
    student_id: UUID,
    att_date: Union[date, str],
    att_status: AttendanceStatus,
    class_name: str,
) -> NotificationResponse:
    att_status = AttendanceStatus(att_status)
    return await create_notification(
        db,
        student_id,
        "Attendance Updated",
        f"Your attendance for {format_date(att_date)} has been {ATTENDANCE_STATUS_MESSAGES[att_status]} in {class_name}",
        NotificationCategory.ATTENDANCE,
        metadata={"class_name": class_name},
    )


async def notify_notice_published(
    db: AsyncSession,
    user_ids: Iterable[UUID],
    notice_title: str,
    priority: NoticePriority,
    notice_id: UUID,
) -> List[NotificationResponse]:
    priority = NoticePriority(priority)
    return await create_for_many(
        db,
        user_ids,
        f"{NOTICE_PRIORITY_MARKERS[priority]} New Notice: {notice_title}",
        f"A new {priority.value} priority notice has been posted. Click to read more.",
        NotificationCategory.NOTICE,
        action_reference=f"/notices/{notice_id}",
        metadata={"notice_id": notice_id},
    )


async def notify_certificate_status(
    db: AsyncSession,
    student_id: UUID,
    certificate_type: str,
    cert_status: CertificateStatus,
    certificate_id: UUID,
    rejection_reason: Optional[str] = None,
) -> NotificationResponse:
    cert_status = CertificateStatus(cert_status)
    if cert_status not in CERTIFICATE_STATUS_CATEGORIES:
        raise ServiceError(f"No notification for certificate status {cert_status.value}", status.HTTP_400_BAD_REQUEST)
    if cert_status == CertificateStatus.approved:
        message = "Your certificate request has been approved and is being processed."
    elif cert_status == CertificateStatus.rejected:
        message = "Your certificate request has been rejected."
        if rejection_reason:
            message = f"{message} Reason: {rejection_reason}"
    else:
        message = "Your certificate is ready for download!"
    return await create_notification(
        db,
        student_id,
        f"Certificate {cert_status.value.capitalize()}",
        message,
        CERTIFICATE_STATUS_CATEGORIES[cert_status],
        action_reference=f"/certificates/{certificate_id}",
        metadata={"certificate_id": certificate_id, "certificate_type": certificate_type},
    )


async def notify_welcome(
    db: AsyncSession,
    user_id: UUID,
    user_name: str,
    role: str,
) -> NotificationResponse:
    return await create_notification(
        db,
        user_id,
        f"Welcome to EduSphere, {user_name}!",
        WELCOME_MESSAGES.get(role, DEFAULT_WELCOME_MESSAGE),
        NotificationCategory.SUCCESS,
    )


async def notify_system(
    db: AsyncSession,
    user_ids: Iterable[UUID],
    title: str,
    message: str,
    category: NotificationCategory = NotificationCategory.INFO,
    metadata: Optional[Dict[str, Any]] = None,
) -> List[NotificationResponse]:
    category = NotificationCategory(category)
    if category not in SYSTEM_CATEGORIES:
        raise ServiceError("System notifications must be info, warning or error", status.HTTP_400_BAD_REQUEST)
    return await create_for_many(db, user_ids, title, message, category, metadata=metadata)


# --- Reads ---
async def list_notifications(
    db: AsyncSession,
    recipient_user_id: UUID,
    limit: Optional[int] = None,
    unread_only: bool = False,
) -> List[NotificationResponse]:
    """Newest first, capped at the feed limit."""
    stmt = select(Notification).where(Notification.recipient_user_id == recipient_user_id)
    if unread_only:
        stmt = stmt.where(Notification.read.is_(False))
    stmt = stmt.order_by(Notification.created_at.desc()).limit(limit or settings.notification_feed_limit)
    result = await db.execute(stmt)
    return [_to_response(n) for n in result.scalars().all()]


async def get_unread_count(db: AsyncSession, recipient_user_id: UUID) -> int:
    result = await db.execute(
        select(func.count(Notification.id)).where(
            Notification.recipient_user_id == recipient_user_id,
            Notification.read.is_(False),
        )
    )
    return int(result.scalar_one() or 0)


# --- Read state ---
async def mark_as_read(
    db: AsyncSession,
    notification_id: UUID,
    recipient_user_id: Optional[UUID] = None,
) -> bool:
    """Set read on one notification. Unknown id (or someone else's) is a no-op returning False."""
    stmt = select(Notification).where(Notification.id == notification_id)
    if recipient_user_id is not None:
        stmt = stmt.where(Notification.recipient_user_id == recipient_user_id)
    result = await db.execute(stmt)
    notification = result.scalar_one_or_none()
    if not notification:
        return False
    if notification.read:
        return True
    notification.read = True
    notification.read_at = _utcnow()
    await db.commit()
    hub.publish(EVENT_READ, _to_uuid(notification.recipient_user_id), _to_uuid(notification.id))
    return True


async def mark_all_as_read(db: AsyncSession, recipient_user_id: UUID) -> int:
    result = await db.execute(
        update(Notification)
        .where(
            Notification.recipient_user_id == recipient_user_id,
            Notification.read.is_(False),
        )
        .values(read=True, read_at=_utcnow())
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    updated = result.rowcount or 0
    if updated:
        hub.publish(EVENT_READ_ALL, recipient_user_id)
    return updated


async def delete_notification(
    db: AsyncSession,
    notification_id: UUID,
    recipient_user_id: Optional[UUID] = None,
) -> bool:
    stmt = select(Notification).where(Notification.id == notification_id)
    if recipient_user_id is not None:
        stmt = stmt.where(Notification.recipient_user_id == recipient_user_id)
    result = await db.execute(stmt)
    notification = result.scalar_one_or_none()
    if not notification:
        return False
    owner = _to_uuid(notification.recipient_user_id)
    await db.delete(notification)
    await db.commit()
    hub.publish(EVENT_DELETED, owner, notification_id)
    return True


# --- Retention ---
async def cleanup_old_notifications(
    db: AsyncSession,
    days_to_keep: Optional[int] = None,
    now: Optional[datetime] = None,
) -> int:
    """
    Remove notifications of every recipient created at or before now - days_to_keep.
    Only records newer than the cutoff survive.
    """
    if days_to_keep is None:
        days_to_keep = settings.notification_retention_days
    if days_to_keep < 0:
        raise ServiceError("days_to_keep must not be negative", status.HTTP_400_BAD_REQUEST)
    now = now or _utcnow()
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)
    cutoff = now - timedelta(days=days_to_keep)

    affected = await db.execute(
        select(Notification.recipient_user_id)
        .where(Notification.created_at <= cutoff)
        .distinct()
    )
    recipients = [_to_uuid(r) for r in affected.scalars().all()]

    result = await db.execute(
        delete(Notification)
        .where(Notification.created_at <= cutoff)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    removed = result.rowcount or 0
    for recipient_user_id in recipients:
        hub.publish(EVENT_CLEANED, recipient_user_id)
    logger.info("Notification retention sweep removed %d record(s) created at or before %s", removed, cutoff.isoformat())
    return removed
