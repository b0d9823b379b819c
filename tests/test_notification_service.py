import uuid
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.api.v1.notifications import service
from edusphere.api.v1.notifications.events import hub
from edusphere.core.enums import (
    AttendanceStatus,
    CertificateStatus,
    NoticePriority,
    NotificationCategory,
    UserRole,
)
from edusphere.core.exceptions import ServiceError
from edusphere.core.models import Notification


async def _count(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(Notification.id)))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_create_notification_defaults(db_session: AsyncSession, student) -> None:
    n = await service.create_notification(
        db_session, student.id, "Hello", "World", NotificationCategory.INFO
    )
    assert n.recipient_user_id == student.id
    assert n.read is False
    assert n.read_at is None
    assert n.category == NotificationCategory.INFO
    assert n.created_at is not None


@pytest.mark.asyncio
async def test_unread_count_tracks_create_and_read(db_session: AsyncSession, student) -> None:
    assert await service.get_unread_count(db_session, student.id) == 0
    n = await service.create_notification(db_session, student.id, "t", "m", NotificationCategory.INFO)
    assert await service.get_unread_count(db_session, student.id) == 1

    assert await service.mark_as_read(db_session, n.id) is True
    assert await service.get_unread_count(db_session, student.id) == 0

    # Second mark is a no-op
    assert await service.mark_as_read(db_session, n.id) is True
    assert await service.get_unread_count(db_session, student.id) == 0


@pytest.mark.asyncio
async def test_mark_as_read_unknown_id_is_noop(db_session: AsyncSession, student) -> None:
    await service.create_notification(db_session, student.id, "t", "m", NotificationCategory.INFO)
    assert await service.mark_as_read(db_session, uuid.uuid4()) is False
    assert await service.get_unread_count(db_session, student.id) == 1


@pytest.mark.asyncio
async def test_mark_as_read_ignores_other_recipient(db_session: AsyncSession, student, teacher) -> None:
    n = await service.create_notification(db_session, student.id, "t", "m", NotificationCategory.INFO)
    assert await service.mark_as_read(db_session, n.id, recipient_user_id=teacher.id) is False
    assert await service.get_unread_count(db_session, student.id) == 1


@pytest.mark.asyncio
async def test_create_for_many_same_content_distinct_ids(db_session: AsyncSession, make_user, school) -> None:
    users = [await make_user(UserRole.TEACHER, school) for _ in range(3)]
    created = await service.create_for_many(
        db_session, [u.id for u in users], "Staff meeting", "Room 4 at noon", NotificationCategory.INFO
    )
    assert len(created) == 3
    assert len({n.id for n in created}) == 3
    assert [n.recipient_user_id for n in created] == [u.id for u in users]
    assert {(n.title, n.message, n.category) for n in created} == {
        ("Staff meeting", "Room 4 at noon", NotificationCategory.INFO)
    }


@pytest.mark.asyncio
async def test_create_for_many_duplicate_ids_each_get_a_record(db_session: AsyncSession, student) -> None:
    created = await service.create_for_many(
        db_session, [student.id, student.id], "t", "m", NotificationCategory.INFO
    )
    assert len(created) == 2
    assert await service.get_unread_count(db_session, student.id) == 2


@pytest.mark.asyncio
async def test_create_for_many_empty(db_session: AsyncSession) -> None:
    assert await service.create_for_many(db_session, [], "t", "m", NotificationCategory.INFO) == []
    assert await _count(db_session) == 0


@pytest.mark.asyncio
async def test_create_for_many_keeps_earlier_recipients_on_failure(
    db_session: AsyncSession, make_user, school, monkeypatch
) -> None:
    users = [await make_user(UserRole.TEACHER, school) for _ in range(3)]
    original = service.create_notification
    calls = {"n": 0}

    async def failing_on_third(*args, **kwargs):
        calls["n"] += 1
        if calls["n"] == 3:
            raise OperationalError("INSERT INTO notifications", {}, Exception("disk I/O error"))
        return await original(*args, **kwargs)

    monkeypatch.setattr(service, "create_notification", failing_on_third)
    with pytest.raises(OperationalError):
        await service.create_for_many(db_session, [u.id for u in users], "t", "m", NotificationCategory.INFO)

    result = await db_session.execute(select(Notification.recipient_user_id))
    assert sorted(result.scalars().all()) == sorted([users[0].id, users[1].id])
    assert await service.get_unread_count(db_session, users[2].id) == 0


@pytest.mark.asyncio
async def test_mark_all_as_read(db_session: AsyncSession, student, teacher) -> None:
    for _ in range(3):
        await service.create_notification(db_session, student.id, "t", "m", NotificationCategory.INFO)
    await service.create_notification(db_session, teacher.id, "t", "m", NotificationCategory.INFO)

    assert await service.mark_all_as_read(db_session, student.id) == 3
    assert await service.get_unread_count(db_session, student.id) == 0
    assert await service.get_unread_count(db_session, teacher.id) == 1
    assert await service.mark_all_as_read(db_session, student.id) == 0


@pytest.mark.asyncio
async def test_delete_notification(db_session: AsyncSession, student, teacher) -> None:
    n = await service.create_notification(db_session, student.id, "t", "m", NotificationCategory.INFO)
    assert await service.delete_notification(db_session, n.id, recipient_user_id=teacher.id) is False
    assert await service.delete_notification(db_session, n.id, recipient_user_id=student.id) is True
    assert await service.delete_notification(db_session, n.id) is False
    assert await _count(db_session) == 0


@pytest.mark.asyncio
async def test_list_notifications_newest_first_and_limited(db_session: AsyncSession, student) -> None:
    base = datetime(2026, 10, 1, 12, 0, 0)
    for i in range(5):
        db_session.add(
            Notification(
                recipient_user_id=student.id,
                title=f"n{i}",
                message="m",
                category="info",
                read=i % 2 == 0,
                created_at=base + timedelta(minutes=i),
            )
        )
    await db_session.commit()

    feed = await service.list_notifications(db_session, student.id, limit=3)
    assert [n.title for n in feed] == ["n4", "n3", "n2"]

    unread = await service.list_notifications(db_session, student.id, unread_only=True)
    assert [n.title for n in unread] == ["n3", "n1"]


@pytest.mark.asyncio
async def test_cleanup_removes_boundary_record(db_session: AsyncSession, student) -> None:
    now = datetime(2026, 10, 17, 9, 0, 0)
    ages = {
        "old": timedelta(days=31),
        "boundary": timedelta(days=30),
        "just inside": timedelta(days=30) - timedelta(seconds=1),
        "fresh": timedelta(days=29),
    }
    for title, age in ages.items():
        db_session.add(
            Notification(
                recipient_user_id=student.id,
                title=title,
                message="m",
                category="info",
                read=False,
                created_at=now - age,
            )
        )
    await db_session.commit()

    removed = await service.cleanup_old_notifications(db_session, days_to_keep=30, now=now)
    assert removed == 2
    remaining = await service.list_notifications(db_session, student.id)
    assert {n.title for n in remaining} == {"just inside", "fresh"}


@pytest.mark.asyncio
async def test_cleanup_rejects_negative_days(db_session: AsyncSession) -> None:
    with pytest.raises(ServiceError) as exc:
        await service.cleanup_old_notifications(db_session, days_to_keep=-1)
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_writes_bump_feed_version(db_session: AsyncSession, student) -> None:
    assert hub.version(student.id) == 0
    n = await service.create_notification(db_session, student.id, "t", "m", NotificationCategory.INFO)
    assert hub.version(student.id) == 1
    await service.mark_as_read(db_session, n.id)
    assert hub.version(student.id) == 2
    # Already read: nothing changed, no event
    await service.mark_as_read(db_session, n.id)
    assert hub.version(student.id) == 2
    await service.delete_notification(db_session, n.id)
    assert hub.version(student.id) == 3


# --- Typed constructors ---
@pytest.mark.asyncio
async def test_notify_assignment_posted(db_session: AsyncSession, student) -> None:
    assignment_id = uuid.uuid4()
    created = await service.notify_assignment_posted(
        db_session, [student.id], "Essay on Rivers", "Geography", "Grade 5 - A", date(2026, 11, 3), assignment_id
    )
    n = created[0]
    assert n.category == NotificationCategory.ASSIGNMENT
    assert n.title == "New Assignment Posted"
    assert n.message == "Essay on Rivers has been assigned for Geography. Due: 11/3/2026"
    assert n.action_reference == f"/assignments/{assignment_id}"
    assert n.metadata == {
        "assignment_id": str(assignment_id),
        "subject_name": "Geography",
        "class_name": "Grade 5 - A",
    }


@pytest.mark.asyncio
async def test_notify_grade_posted_message(db_session: AsyncSession, student) -> None:
    n = await service.notify_grade_posted(db_session, student.id, "Math", "Midterm", 95, 100, uuid.uuid4())
    assert n.category == NotificationCategory.GRADE
    assert n.message == "Your Midterm grade for Math: 95/100 (95% - A+)"


@pytest.mark.asyncio
async def test_notify_grade_posted_rejects_zero_max(db_session: AsyncSession, student) -> None:
    with pytest.raises(ServiceError) as exc:
        await service.notify_grade_posted(db_session, student.id, "Math", "Quiz", 5, 0, uuid.uuid4())
    assert exc.value.status_code == 400
    assert await _count(db_session) == 0


@pytest.mark.asyncio
async def test_notify_attendance_marked(db_session: AsyncSession, student) -> None:
    n = await service.notify_attendance_marked(
        db_session, student.id, date(2026, 10, 5), AttendanceStatus.late, "Grade 5 - A"
    )
    assert n.category == NotificationCategory.ATTENDANCE
    assert n.message == "Your attendance for 10/5/2026 has been marked as late in Grade 5 - A"


@pytest.mark.asyncio
async def test_notify_notice_published_priority_marker(db_session: AsyncSession, student) -> None:
    created = await service.notify_notice_published(
        db_session, [student.id], "Sports Day", NoticePriority.high, uuid.uuid4()
    )
    assert created[0].title == "🚨 New Notice: Sports Day"
    assert created[0].category == NotificationCategory.NOTICE


@pytest.mark.asyncio
async def test_notify_certificate_status(db_session: AsyncSession, student) -> None:
    rejected = await service.notify_certificate_status(
        db_session, student.id, "bonafide", CertificateStatus.rejected, uuid.uuid4(), rejection_reason="Missing ID"
    )
    assert rejected.title == "Certificate Rejected"
    assert rejected.category == NotificationCategory.ERROR
    assert "Reason: Missing ID" in rejected.message

    generated = await service.notify_certificate_status(
        db_session, student.id, "bonafide", CertificateStatus.generated, uuid.uuid4()
    )
    assert generated.category == NotificationCategory.SUCCESS

    with pytest.raises(ServiceError):
        await service.notify_certificate_status(
            db_session, student.id, "bonafide", CertificateStatus.pending, uuid.uuid4()
        )


@pytest.mark.asyncio
async def test_notify_welcome(db_session: AsyncSession, teacher) -> None:
    n = await service.notify_welcome(db_session, teacher.id, "Edna", UserRole.TEACHER.value)
    assert n.title == "Welcome to EduSphere, Edna!"
    assert n.category == NotificationCategory.SUCCESS
    assert "manage your classes" in n.message


@pytest.mark.asyncio
async def test_notify_system_rejects_non_system_category(db_session: AsyncSession, student) -> None:
    with pytest.raises(ServiceError):
        await service.notify_system(db_session, [student.id], "t", "m", NotificationCategory.GRADE)
    created = await service.notify_system(db_session, [student.id], "t", "m", NotificationCategory.WARNING)
    assert created[0].category == NotificationCategory.WARNING


# --- Grade banding ---
@pytest.mark.parametrize(
    "marks,expected",
    [
        (100, "A+"),
        (90, "A+"),
        (89, "A"),
        (80, "A"),
        (79, "B"),
        (70, "B"),
        (69, "C"),
        (60, "C"),
        (59, "D"),
        (0, "D"),
    ],
)
def test_letter_grade_boundaries(marks, expected) -> None:
    assert service.letter_grade(service.grade_percentage(marks, 100)) == expected


def test_letter_grade_exact_eighty_is_a() -> None:
    assert service.letter_grade(80.0) == "A"
    assert service.letter_grade(Decimal("79.99")) == "B"


def test_grade_percentage_rounds_half_up() -> None:
    assert service.grade_percentage(1, 8) == 13  # 12.5
    assert service.grade_percentage(2, 3) == 67
    assert service.grade_percentage(Decimal("44.5"), 50) == 89


def test_format_date() -> None:
    assert service.format_date(date(2026, 1, 9)) == "1/9/2026"
    assert service.format_date("2026-12-25") == "12/25/2026"
