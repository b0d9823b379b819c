import uuid
from datetime import date
from types import SimpleNamespace

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.api.v1.analytics.service import attendance_trend, subject_performance
from edusphere.api.v1.notifications import service as notification_service
from edusphere.core.enums import UserRole
from edusphere.core.models import AttendanceRecord


# --- Grades ---
@pytest.mark.asyncio
async def test_post_grade_notifies_student(
    client: AsyncClient, db_session: AsyncSession, teacher, student, auth_headers
) -> None:
    resp = await client.post(
        "/api/v1/grades",
        json={
            "student_id": str(student.id),
            "subject_name": "Science",
            "exam_type": "Final",
            "marks": "80",
            "max_marks": "100",
        },
        headers=auth_headers(teacher),
    )
    assert resp.status_code == 201
    grade = resp.json()
    assert grade["percentage"] == 80
    assert grade["letter_grade"] == "A"

    feed = await notification_service.list_notifications(db_session, student.id)
    assert feed[0].category == "grade"
    assert feed[0].message == "Your Final grade for Science: 80/100 (80% - A)"


@pytest.mark.asyncio
async def test_grade_marks_above_max_rejected(client: AsyncClient, teacher, student, auth_headers) -> None:
    resp = await client.post(
        "/api/v1/grades",
        json={"student_id": str(student.id), "subject_name": "Art", "exam_type": "Quiz", "marks": 11, "max_marks": 10},
        headers=auth_headers(teacher),
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_student_sees_only_own_grades(
    client: AsyncClient, teacher, student, make_user, school, school_class, auth_headers
) -> None:
    other = await make_user(UserRole.STUDENT, school, school_class)
    teacher_headers = auth_headers(teacher)
    for target in (student, other):
        await client.post(
            "/api/v1/grades",
            json={"student_id": str(target.id), "subject_name": "Math", "exam_type": "Quiz", "marks": 7, "max_marks": 10},
            headers=teacher_headers,
        )
    resp = await client.get(f"/api/v1/grades?student_id={other.id}", headers=auth_headers(student))
    assert [g["student_id"] for g in resp.json()] == [str(student.id)]


# --- Attendance ---
@pytest.mark.asyncio
async def test_mark_attendance_upserts_and_notifies(
    client: AsyncClient, db_session: AsyncSession, teacher, student, school_class, auth_headers
) -> None:
    headers = auth_headers(teacher)
    body = {"class_id": str(school_class.id), "date": "2026-10-16", "records": [{"student_id": str(student.id), "status": "absent"}]}
    first = await client.post("/api/v1/attendance/mark", json=body, headers=headers)
    assert first.status_code == 201
    assert first.json()["marked"] == 1

    body["records"][0]["status"] = "late"
    second = await client.post("/api/v1/attendance/mark", json=body, headers=headers)
    assert second.status_code == 201

    listed = await client.get(f"/api/v1/attendance?class_id={school_class.id}&date=2026-10-16", headers=headers)
    assert [r["status"] for r in listed.json()] == ["late"]

    feed = await notification_service.list_notifications(db_session, student.id)
    messages = {n.message for n in feed}
    assert "Your attendance for 10/16/2026 has been marked as late in Grade 5 - A" in messages
    assert "Your attendance for 10/16/2026 has been marked as absent in Grade 5 - A" in messages


@pytest.mark.asyncio
async def test_mark_attendance_rejects_student_outside_class(
    client: AsyncClient, db_session: AsyncSession, teacher, make_user, school, school_class, auth_headers
) -> None:
    drifter = await make_user(UserRole.STUDENT, school)
    headers = auth_headers(teacher)
    resp = await client.post(
        "/api/v1/attendance/mark",
        json={"class_id": str(school_class.id), "date": "2026-10-16", "records": [{"student_id": str(drifter.id), "status": "present"}]},
        headers=headers,
    )
    assert resp.status_code == 400
    assert await notification_service.list_notifications(db_session, drifter.id) == []


# --- Notices ---
@pytest.mark.asyncio
async def test_publish_notice_to_role(
    client: AsyncClient, db_session: AsyncSession, principal, teacher, student, auth_headers
) -> None:
    resp = await client.post(
        "/api/v1/notices",
        json={"title": "Staff meeting", "content": "Friday 3pm", "target_role": "teacher", "priority": "low"},
        headers=auth_headers(principal),
    )
    assert resp.status_code == 201
    assert resp.json()["recipients"] == 1

    teacher_feed = await notification_service.list_notifications(db_session, teacher.id)
    assert teacher_feed[0].title == "📢 New Notice: Staff meeting"
    assert await notification_service.list_notifications(db_session, student.id) == []

    # Students do not see notices addressed to teachers
    listed = await client.get("/api/v1/notices", headers=auth_headers(student))
    assert listed.json() == []


@pytest.mark.asyncio
async def test_publish_notice_to_everyone_skips_author(
    client: AsyncClient, db_session: AsyncSession, principal, teacher, student, auth_headers
) -> None:
    resp = await client.post(
        "/api/v1/notices",
        json={"title": "Fire drill", "content": "Tomorrow", "priority": "high"},
        headers=auth_headers(principal),
    )
    assert resp.json()["recipients"] == 2
    assert await notification_service.list_notifications(db_session, principal.id) == []


# --- Assignments ---
@pytest.mark.asyncio
async def test_post_assignment_notifies_class(
    client: AsyncClient, db_session: AsyncSession, teacher, student, make_user, school, auth_headers
) -> None:
    outsider = await make_user(UserRole.STUDENT, school)
    resp = await client.post(
        "/api/v1/assignments",
        json={
            "class_id": str(student.class_id),
            "subject_name": "History",
            "title": "Civil War essay",
            "due_date": "2026-11-20",
        },
        headers=auth_headers(teacher),
    )
    assert resp.status_code == 201
    assert resp.json()["recipients"] == 1

    feed = await notification_service.list_notifications(db_session, student.id)
    assert feed[0].message == "Civil War essay has been assigned for History. Due: 11/20/2026"
    assert feed[0].action_reference == f"/assignments/{resp.json()['assignment']['id']}"
    assert await notification_service.list_notifications(db_session, outsider.id) == []

    mine = await client.get("/api/v1/assignments", headers=auth_headers(student))
    assert [a["title"] for a in mine.json()] == ["Civil War essay"]


@pytest.mark.asyncio
async def test_post_assignment_unknown_class(client: AsyncClient, teacher, auth_headers) -> None:
    resp = await client.post(
        "/api/v1/assignments",
        json={"class_id": str(uuid.uuid4()), "subject_name": "X", "title": "Y", "due_date": "2026-11-20"},
        headers=auth_headers(teacher),
    )
    assert resp.status_code == 404


# --- Analytics ---
def test_attendance_trend_rounds_percentage() -> None:
    day = date(2026, 10, 1)
    records = [AttendanceRecord(date=day, status=s) for s in ("present", "present", "absent")]
    records.append(AttendanceRecord(date=date(2026, 9, 30), status="late"))
    trend = attendance_trend(records)
    assert [d.date for d in trend] == [date(2026, 9, 30), day]
    assert trend[0].percentage == 0
    assert trend[1].percentage == 67
    assert (trend[1].present, trend[1].absent, trend[1].total) == (2, 1, 3)


def test_subject_performance() -> None:
    grades = [
        SimpleNamespace(subject_name="Math", marks=45, max_marks=50),
        SimpleNamespace(subject_name="Math", marks=40, max_marks=50),
        SimpleNamespace(subject_name="Art", marks=1, max_marks=8),
    ]
    perf = subject_performance(grades)
    assert [(p.subject, p.percentage, p.count) for p in perf] == [("Math", 85, 2), ("Art", 13, 1)]


@pytest.mark.asyncio
async def test_analytics_overview(client: AsyncClient, teacher, student, school_class, auth_headers) -> None:
    headers = auth_headers(teacher)
    await client.post(
        "/api/v1/attendance/mark",
        json={"class_id": str(school_class.id), "date": "2026-10-16", "records": [{"student_id": str(student.id), "status": "present"}]},
        headers=headers,
    )
    await client.post(
        "/api/v1/grades",
        json={"student_id": str(student.id), "subject_name": "Math", "exam_type": "Quiz", "marks": 9, "max_marks": 10},
        headers=headers,
    )
    resp = await client.get(f"/api/v1/analytics/overview?class_id={school_class.id}", headers=headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["attendance"][0]["percentage"] == 100
    assert data["subjects"][0]["percentage"] == 90
    assert data["average_attendance"] == 100
    assert data["average_performance"] == 90
