import io
import uuid

import pytest
from httpx import AsyncClient
from openpyxl import Workbook, load_workbook
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import TEST_PASSWORD
from edusphere.api.v1.notifications import service as notification_service
from edusphere.api.v1.users import service as users_service
from edusphere.api.v1.users.importer import read_import_rows
from edusphere.auth.models import User
from edusphere.core.exceptions import ConflictError

IMPORT_PATH = "/api/v1/users/import"
XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
HEADERS = ["Full Name", "Email", "Password", "Role", "Class Name", "Roll Number", "Phone"]


def _workbook(rows, headers=HEADERS) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.append(headers)
    for row in rows:
        ws.append(row)
    bio = io.BytesIO()
    wb.save(bio)
    return bio.getvalue()


def _upload(content: bytes, filename: str = "users.xlsx") -> dict:
    return {"file": (filename, content, XLSX)}


async def _emails(db_session: AsyncSession, school_id) -> set:
    result = await db_session.execute(select(User.email).where(User.school_id == school_id))
    return set(result.scalars().all())


@pytest.mark.asyncio
async def test_import_creates_every_valid_row(
    client: AsyncClient, db_session: AsyncSession, principal, school_class, auth_headers
) -> None:
    content = _workbook(
        [
            ["Edna Krabappel", "Edna@Example.com", TEST_PASSWORD, "Teacher", None, None, "555-0101"],
            ["Milhouse Van Houten", "milhouse@example.com", TEST_PASSWORD, "student", "Grade 5 - A", 12, None],
            [None, None, None, None, None, None, None],
        ]
    )
    resp = await client.post(IMPORT_PATH, files=_upload(content), headers=auth_headers(principal))
    assert resp.status_code == 200
    body = resp.json()
    assert body["created"] == 2
    by_email = {u["email"]: u for u in body["users"]}
    assert by_email["edna@example.com"]["role"] == "teacher"
    assert by_email["edna@example.com"]["phone"] == "555-0101"
    milhouse = by_email["milhouse@example.com"]
    assert milhouse["class_id"] == str(school_class.id)
    assert milhouse["roll_number"] == "12"

    feed = await notification_service.list_notifications(db_session, uuid.UUID(milhouse["id"]))
    assert [n.title for n in feed] == ["Welcome to EduSphere, Milhouse Van Houten!"]

    login = await client.post("/api/v1/auth/login", json={"email": "edna@example.com", "password": TEST_PASSWORD})
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_import_returns_error_workbook_for_rejected_rows(
    client: AsyncClient, db_session: AsyncSession, principal, school_class, auth_headers
) -> None:
    school_id = principal.school_id
    existing_email = principal.email
    content = _workbook(
        [
            ["Nelson Muntz", "nelson@example.com", TEST_PASSWORD, "student", "Grade 5 - A", None, None],
            ["No Email", None, TEST_PASSWORD, "student", None, None, None],
            ["Homer Simpson", "homer@example.com", TEST_PASSWORD, "parent", None, None, None],
            ["Nelson Again", "NELSON@example.com", TEST_PASSWORD, "student", None, None, None],
            ["Taken", existing_email, TEST_PASSWORD, "teacher", None, None, None],
            ["Lost Kid", "lost@example.com", TEST_PASSWORD, "student", "Grade 9 - Z", None, None],
            ["Class Teacher", "ct@example.com", TEST_PASSWORD, "teacher", "Grade 5 - A", None, None],
            ["Short Password", "short@example.com", "abc", "student", None, None, None],
            ["Bad Email", "not-an-email", TEST_PASSWORD, "student", None, None, None],
        ]
    )
    resp = await client.post(IMPORT_PATH, files=_upload(content), headers=auth_headers(principal))
    assert resp.status_code == 200
    assert resp.headers["content-type"] == XLSX
    assert "users_import_errors.xlsx" in resp.headers["content-disposition"]
    assert resp.headers["x-imported-count"] == "1"

    report = list(load_workbook(io.BytesIO(resp.content)).active.iter_rows(values_only=True))
    assert report[0] == ("row", "full_name", "email", "password", "role", "class_name", "roll_number", "phone", "reason")
    reasons = {r[0]: r[-1] for r in report[1:]}
    assert sorted(reasons) == [3, 4, 5, 6, 7, 8, 9, 10]
    assert reasons[3] == "Missing fields: email"
    assert reasons[4] == "Role must be teacher or student, got 'parent'"
    assert reasons[5] == "Duplicate email in upload: nelson@example.com"
    assert reasons[6] == f"Email already exists: {existing_email}"
    assert reasons[7] == "Class not found: 'Grade 9 - Z'"
    assert reasons[8] == "Only students belong to a class"
    assert reasons[9].startswith("password:")
    assert reasons[10].startswith("email:")
    assert {r[3] for r in report[1:]} == {"(hidden)"}

    assert await _emails(db_session, school_id) == {existing_email, "nelson@example.com"}


@pytest.mark.asyncio
async def test_import_rejects_unusable_files(client: AsyncClient, principal, auth_headers) -> None:
    headers = auth_headers(principal)
    row = ["Ralph Wiggum", "ralph@example.com", TEST_PASSWORD, "student"]

    resp = await client.post(IMPORT_PATH, files=_upload(b"full_name,email\n", "users.csv"), headers=headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "File must be an Excel file (.xlsx)"

    resp = await client.post(IMPORT_PATH, files=_upload(b"not a zip"), headers=headers)
    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("Invalid Excel file")

    missing_role = _workbook([row[:3]], headers=["full_name", "email", "password"])
    resp = await client.post(IMPORT_PATH, files=_upload(missing_role), headers=headers)
    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("Missing required column(s): role")

    resp = await client.post(IMPORT_PATH, files=_upload(_workbook([])), headers=headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Excel file has no data rows"


@pytest.mark.asyncio
async def test_import_permissions_and_school_scope(
    client: AsyncClient, db_session: AsyncSession, super_admin, teacher, other_school, auth_headers
) -> None:
    other_school_id = other_school.id
    content = _workbook([["Martin Prince", "martin@example.com", TEST_PASSWORD, "student", None, None, None]])

    resp = await client.post(IMPORT_PATH, files=_upload(content), headers=auth_headers(teacher))
    assert resp.status_code == 403

    resp = await client.post(IMPORT_PATH, files=_upload(content), headers=auth_headers(super_admin))
    assert resp.status_code == 400

    resp = await client.post(
        IMPORT_PATH,
        files=_upload(content),
        params={"school_id": str(other_school_id)},
        headers=auth_headers(super_admin),
    )
    assert resp.status_code == 200
    assert resp.json()["users"][0]["school_id"] == str(other_school_id)
    assert await _emails(db_session, other_school_id) == {"martin@example.com"}


@pytest.mark.asyncio
async def test_row_lost_to_a_concurrent_signup_is_reported(
    db_session: AsyncSession, principal, monkeypatch
) -> None:
    school_id = principal.school_id
    rows = read_import_rows(
        "users.xlsx",
        _workbook(
            [
                ["Sherri", "sherri@example.com", TEST_PASSWORD, "student", None, None, None],
                ["Terri", "terri@example.com", TEST_PASSWORD, "student", None, None, None],
            ]
        ),
    )
    real_create_user = users_service.create_user

    async def create_user(db, creator_role, creator_school_id, payload):
        if payload.email == "sherri@example.com":
            raise ConflictError("Email is already in use")
        return await real_create_user(db, creator_role, creator_school_id, payload)

    monkeypatch.setattr(users_service, "create_user", create_user)
    created, failed = await users_service.import_users(db_session, "principal", school_id, rows)

    assert [u.email for u in created] == ["terri@example.com"]
    assert [(row_num, reason) for (row_num, _), reason in failed] == [(2, "Email is already in use")]
