import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from typing import AsyncGenerator, Callable, Dict, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

import edusphere.auth.models  # noqa: F401
import edusphere.core.models  # noqa: F401
from edusphere.api.v1.notifications.events import hub
from edusphere.auth.models import User
from edusphere.auth.security import create_access_token, hash_password, token_subject_for
from edusphere.core.enums import UserRole
from edusphere.core.models import School, SchoolClass
from edusphere.db.session import Base, build_engine, get_db, get_session_factory, session_factory
from edusphere.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "StrongPass123"
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest.fixture()
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """One in-memory database per test."""
    test_engine = build_engine(TEST_DATABASE_URL)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture()
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for a test and override FastAPI dependency."""
    async_session = session_factory(engine)

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_session_factory] = lambda: async_session
        yield session

    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_session_factory, None)


@pytest.fixture(autouse=True)
def reset_hub():
    hub.reset()
    yield
    hub.reset()


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# --- Data factories ---
@pytest.fixture()
def make_user(db_session: AsyncSession) -> Callable:
    counter = {"n": 0}

    async def _make(
        role: UserRole,
        school: Optional[School] = None,
        school_class: Optional[SchoolClass] = None,
        full_name: Optional[str] = None,
        is_active: bool = True,
    ) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            school_id=school.id if school else None,
            full_name=full_name or f"{role.value.title()} {n}",
            email=f"{role.value}{n}@example.com",
            password_hash=TEST_PASSWORD_HASH,
            role=role.value,
            class_id=school_class.id if school_class else None,
            is_active=is_active,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
async def school(db_session: AsyncSession) -> School:
    obj = School(name="Springfield High", address="742 Evergreen Terrace")
    db_session.add(obj)
    await db_session.commit()
    await db_session.refresh(obj)
    return obj


@pytest.fixture()
async def other_school(db_session: AsyncSession) -> School:
    obj = School(name="Shelbyville Elementary")
    db_session.add(obj)
    await db_session.commit()
    await db_session.refresh(obj)
    return obj


@pytest.fixture()
async def school_class(db_session: AsyncSession, school: School) -> SchoolClass:
    obj = SchoolClass(school_id=school.id, name="Grade 5 - A", grade="5", section="A")
    db_session.add(obj)
    await db_session.commit()
    await db_session.refresh(obj)
    return obj


@pytest.fixture()
async def super_admin(make_user) -> User:
    return await make_user(UserRole.SUPER_ADMIN)


@pytest.fixture()
async def principal(make_user, school: School) -> User:
    return await make_user(UserRole.PRINCIPAL, school)


@pytest.fixture()
async def teacher(make_user, school: School) -> User:
    return await make_user(UserRole.TEACHER, school)


@pytest.fixture()
async def student(make_user, school: School, school_class: SchoolClass) -> User:
    return await make_user(UserRole.STUDENT, school, school_class, full_name="Bart Simpson")


@pytest.fixture()
def auth_headers() -> Callable[[User], Dict[str, str]]:
    def _headers(user: User) -> Dict[str, str]:
        token = create_access_token(subject=token_subject_for(user))
        return {"Authorization": f"Bearer {token}"}

    return _headers
