import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import TEST_PASSWORD
from edusphere.api.v1.notifications import service as notification_service
from edusphere.core.enums import UserRole
from edusphere.core.models import SchoolClass


@pytest.mark.asyncio
async def test_super_admin_creates_school_and_principal(
    client: AsyncClient, db_session: AsyncSession, super_admin, auth_headers
) -> None:
    headers = auth_headers(super_admin)
    school = await client.post("/api/v1/schools", json={"name": "Riverdale High"}, headers=headers)
    assert school.status_code == 201
    school_id = school.json()["id"]

    resp = await client.post(
        "/api/v1/users",
        json={
            "full_name": "Seymour Skinner",
            "email": "Skinner@Example.com",
            "password": "Password123",
            "role": "principal",
            "school_id": school_id,
        },
        headers=headers,
    )
    assert resp.status_code == 201
    user = resp.json()
    assert user["email"] == "skinner@example.com"
    assert user["school_id"] == school_id

    fetched = await client.get(f"/api/v1/schools/{school_id}", headers=headers)
    assert fetched.json()["principal_id"] == user["id"]

    feed = await notification_service.list_notifications(db_session, uuid.UUID(user["id"]))
    assert [n.title for n in feed] == ["Welcome to EduSphere, Seymour Skinner!"]


@pytest.mark.asyncio
async def test_new_user_can_log_in(client: AsyncClient, principal, auth_headers) -> None:
    await client.post(
        "/api/v1/users",
        json={"full_name": "Lisa", "email": "lisa@example.com", "password": TEST_PASSWORD, "role": "student"},
        headers=auth_headers(principal),
    )
    resp = await client.post("/api/v1/auth/login", json={"email": "lisa@example.com", "password": TEST_PASSWORD})
    assert resp.status_code == 200
    assert resp.json()["user"]["school_id"] == str(principal.school_id)


@pytest.mark.asyncio
async def test_principal_cannot_create_principal(client: AsyncClient, principal, auth_headers) -> None:
    resp = await client.post(
        "/api/v1/users",
        json={"full_name": "X", "email": "x@example.com", "password": "Password123", "role": "principal"},
        headers=auth_headers(principal),
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_duplicate_email_conflict(client: AsyncClient, principal, teacher, auth_headers) -> None:
    resp = await client.post(
        "/api/v1/users",
        json={"full_name": "Dup", "email": teacher.email, "password": "Password123", "role": "teacher"},
        headers=auth_headers(principal),
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_student_class_must_belong_to_school(
    client: AsyncClient, db_session: AsyncSession, principal, other_school, auth_headers
) -> None:
    foreign = SchoolClass(school_id=other_school.id, name="Grade 1", grade="1")
    db_session.add(foreign)
    await db_session.commit()
    resp = await client.post(
        "/api/v1/users",
        json={
            "full_name": "Milhouse",
            "email": "milhouse@example.com",
            "password": "Password123",
            "role": "student",
            "class_id": str(foreign.id),
        },
        headers=auth_headers(principal),
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_list_users_scoped_to_school(
    client: AsyncClient, principal, teacher, student, make_user, other_school, auth_headers
) -> None:
    await make_user(UserRole.TEACHER, other_school)
    resp = await client.get("/api/v1/users?role=teacher", headers=auth_headers(principal))
    assert [u["id"] for u in resp.json()] == [str(teacher.id)]


@pytest.mark.asyncio
async def test_super_admin_list_requires_school_id(client: AsyncClient, super_admin, school, auth_headers) -> None:
    headers = auth_headers(super_admin)
    assert (await client.get("/api/v1/users", headers=headers)).status_code == 400
    assert (await client.get(f"/api/v1/users?school_id={school.id}", headers=headers)).status_code == 200


@pytest.mark.asyncio
async def test_classes(client: AsyncClient, principal, teacher, auth_headers) -> None:
    headers = auth_headers(principal)
    teacher_headers = auth_headers(teacher)
    resp = await client.post(
        "/api/v1/classes",
        json={"name": "Grade 6 - B", "grade": "6", "section": "B", "class_teacher_id": str(teacher.id)},
        headers=headers,
    )
    assert resp.status_code == 201

    dup = await client.post("/api/v1/classes", json={"name": "Grade 6 - B", "grade": "6"}, headers=headers)
    assert dup.status_code == 409

    listed = await client.get("/api/v1/classes", headers=teacher_headers)
    assert [c["name"] for c in listed.json()] == ["Grade 6 - B"]
