"""Users service: account creation (single and Excel bulk import, each with a welcome notification) and recipient resolution."""

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from fastapi import status
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.api.v1.notifications import service as notification_service
from edusphere.auth.models import User
from edusphere.auth.security import hash_password
from edusphere.core.enums import UserRole
from edusphere.core.exceptions import ConflictError, NotFoundError, ServiceError
from edusphere.core.models import School, SchoolClass

from .importer import REQUIRED_HEADERS, ImportRow
from .schemas import UserCreate, UserResponse

logger = logging.getLogger(__name__)

# Roles each creator may create
CREATABLE_ROLES = {
    UserRole.SUPER_ADMIN.value: {UserRole.SUPER_ADMIN, UserRole.PRINCIPAL, UserRole.TEACHER, UserRole.STUDENT},
    UserRole.PRINCIPAL.value: {UserRole.TEACHER, UserRole.STUDENT},
}

# Roles a workbook row may name, keyed by the lowercased cell text
IMPORTABLE_ROLES = {UserRole.TEACHER.value: UserRole.TEACHER, UserRole.STUDENT.value: UserRole.STUDENT}


async def create_user(
    db: AsyncSession,
    creator_role: str,
    creator_school_id: Optional[UUID],
    payload: UserCreate,
) -> UserResponse:
    """Create an account and send its welcome notification."""
    if payload.role not in CREATABLE_ROLES.get(creator_role, set()):
        raise ServiceError(f"Cannot create users with role {payload.role.value}", status.HTTP_403_FORBIDDEN)

    if payload.role == UserRole.SUPER_ADMIN:
        school_id = None
    elif creator_role == UserRole.SUPER_ADMIN.value:
        school_id = payload.school_id
    else:
        school_id = creator_school_id
    if payload.role != UserRole.SUPER_ADMIN:
        if school_id is None:
            raise ServiceError("school_id is required", status.HTTP_400_BAD_REQUEST)
        school = await db.get(School, school_id)
        if not school:
            raise NotFoundError("School not found")

    class_id = None
    if payload.class_id is not None:
        if payload.role != UserRole.STUDENT:
            raise ServiceError("Only students belong to a class", status.HTTP_400_BAD_REQUEST)
        cl = await db.get(SchoolClass, payload.class_id)
        if not cl or cl.school_id != school_id:
            raise ServiceError("Invalid class", status.HTTP_400_BAD_REQUEST)
        class_id = cl.id

    user = User(
        school_id=school_id,
        full_name=payload.full_name.strip(),
        email=payload.email.lower(),
        password_hash=hash_password(payload.password),
        role=payload.role.value,
        class_id=class_id,
        roll_number=payload.roll_number,
        phone=payload.phone,
        is_active=True,
    )
    db.add(user)
    try:
        await db.flush()
        if payload.role == UserRole.PRINCIPAL:
            school.principal_id = user.id
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Email is already in use")
    await db.refresh(user)
    logger.info("Created %s account %s in school %s", user.role, user.id, school_id)

    await notification_service.notify_welcome(db, user.id, user.full_name, user.role)
    return UserResponse.model_validate(user)


async def list_users(
    db: AsyncSession,
    school_id: UUID,
    role: Optional[UserRole] = None,
    class_id: Optional[UUID] = None,
) -> List[UserResponse]:
    stmt = select(User).where(User.school_id == school_id)
    if role is not None:
        stmt = stmt.where(User.role == role.value)
    if class_id is not None:
        stmt = stmt.where(User.class_id == class_id)
    stmt = stmt.order_by(User.role, User.full_name)
    result = await db.execute(stmt)
    return [UserResponse.model_validate(u) for u in result.scalars().all()]


async def list_school_recipient_ids(
    db: AsyncSession,
    school_id: UUID,
    role: Optional[str] = None,
) -> List[UUID]:
    """Active non-super-admin users of a school (optionally one role), in a stable order."""
    stmt = select(User.id).where(
        User.school_id == school_id,
        User.role != UserRole.SUPER_ADMIN.value,
        User.is_active.is_(True),
    )
    if role is not None:
        stmt = stmt.where(User.role == role)
    result = await db.execute(stmt.order_by(User.created_at, User.id))
    return list(result.scalars().all())


async def list_class_student_ids(db: AsyncSession, school_id: UUID, class_id: UUID) -> List[UUID]:
    result = await db.execute(
        select(User.id)
        .where(
            User.school_id == school_id,
            User.class_id == class_id,
            User.role == UserRole.STUDENT.value,
            User.is_active.is_(True),
        )
        .order_by(User.roll_number, User.full_name)
    )
    return list(result.scalars().all())


async def get_school_student(db: AsyncSession, school_id: UUID, student_id: UUID) -> User:
    """Student of this school or ServiceError 400."""
    user = await db.get(User, student_id)
    if not user or user.school_id != school_id or user.role != UserRole.STUDENT.value:
        raise ServiceError("Invalid student", status.HTTP_400_BAD_REQUEST)
    if not user.is_active:
        raise ServiceError("Student account is inactive", status.HTTP_400_BAD_REQUEST)
    return user


async def list_school_students(db: AsyncSession, school_id: UUID) -> List[User]:
    """Roster of a school: every student account, active or not."""
    result = await db.execute(
        select(User)
        .where(User.school_id == school_id, User.role == UserRole.STUDENT.value)
        .order_by(User.full_name, User.id)
    )
    return list(result.scalars().all())


def _validation_reason(e: ValidationError) -> str:
    err = e.errors()[0]
    field = ".".join(str(p) for p in err["loc"])
    return f"{field}: {err['msg']}" if field else err["msg"]


async def import_users(
    db: AsyncSession,
    creator_role: str,
    school_id: UUID,
    rows: List[ImportRow],
) -> Tuple[List[UserResponse], List[Tuple[ImportRow, str]]]:
    """
    Create one teacher or student account per valid workbook row in school_id.
    Rows are checked up front (required cells, role, class name, field formats,
    duplicate emails within the upload and against existing accounts); each valid
    row is then created through create_user, so it gets its welcome notification.
    Returns (created, failed) where failed pairs each rejected row with its reason.
    """
    school = await db.get(School, school_id)
    if not school:
        raise NotFoundError("School not found")

    result = await db.execute(
        select(SchoolClass.name, SchoolClass.id).where(SchoolClass.school_id == school_id)
    )
    class_ids = {name.strip().lower(): cid for name, cid in result.all()}
    emails = {cells.get("email", "").lower() for _, cells in rows} - {""}
    taken = set()
    if emails:
        result = await db.execute(select(User.email).where(User.email.in_(emails)))
        taken = {e.lower() for e in result.scalars().all()}

    failed: List[Tuple[ImportRow, str]] = []
    to_create: List[Tuple[ImportRow, UserCreate]] = []
    emails_seen = set()
    for row in rows:
        _, cells = row
        missing = [h for h in REQUIRED_HEADERS if not cells.get(h)]
        if missing:
            failed.append((row, f"Missing fields: {', '.join(missing)}"))
            continue
        role = IMPORTABLE_ROLES.get(cells["role"].lower())
        if role is None:
            failed.append((row, f"Role must be teacher or student, got '{cells['role']}'"))
            continue
        class_id = None
        class_name = cells.get("class_name", "")
        if class_name:
            if role != UserRole.STUDENT:
                failed.append((row, "Only students belong to a class"))
                continue
            class_id = class_ids.get(class_name.lower())
            if class_id is None:
                failed.append((row, f"Class not found: '{class_name}'"))
                continue
        try:
            payload = UserCreate(
                full_name=cells["full_name"],
                email=cells["email"],
                password=cells["password"],
                role=role,
                school_id=school_id,
                class_id=class_id,
                roll_number=cells.get("roll_number") or None,
                phone=cells.get("phone") or None,
            )
        except ValidationError as e:
            failed.append((row, _validation_reason(e)))
            continue
        email = payload.email.lower()
        if email in emails_seen:
            failed.append((row, f"Duplicate email in upload: {email}"))
            continue
        if email in taken:
            failed.append((row, f"Email already exists: {email}"))
            continue
        emails_seen.add(email)
        to_create.append((row, payload))

    created: List[UserResponse] = []
    for row, payload in to_create:
        try:
            created.append(await create_user(db, creator_role, school_id, payload))
        except ServiceError as e:
            failed.append((row, e.message))

    failed.sort(key=lambda item: item[0][0])
    logger.info(
        "Imported %d account(s) into school %s, rejected %d row(s)", len(created), school_id, len(failed)
    )
    return created, failed
