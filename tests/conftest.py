import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import AsyncGenerator, Callable, Dict  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.core.enums import Language, PerformanceLevel, SubjectCategory  # noqa: E402
from app.core.models import CommentLibraryEntry, Subject  # noqa: E402
from app.db.session import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture()
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh in-memory database per test. StaticPool keeps every session on the same connection."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield factory
    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture()
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture()
async def client(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def register_and_login(client: AsyncClient, email: str, password: str = "StrongPass123") -> Dict[str, str]:
    payload = {
        "full_name": "Test Owner",
        "email": email,
        "password": password,
        "confirm_password": password,
    }
    response = await client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 201, response.text
    response = await client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture()
async def auth_headers(client: AsyncClient) -> Dict[str, str]:
    return await register_and_login(client, "owner@example.com")


@pytest.fixture()
async def other_headers(client: AsyncClient) -> Dict[str, str]:
    return await register_and_login(client, "someone.else@example.com")


@pytest.fixture()
def make_client(client: AsyncClient, auth_headers: Dict[str, str]) -> Callable:
    async def _make(name: str = "Acme Corp", headers: Dict[str, str] = None, **fields) -> dict:
        body = {"name": name, "email": "billing@acme.example.com", **fields}
        response = await client.post("/api/v1/clients", json=body, headers=headers or auth_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _make


@pytest.fixture()
def make_student(client: AsyncClient, auth_headers: Dict[str, str]) -> Callable:
    async def _make(first_name: str = "John", headers: Dict[str, str] = None, **fields) -> dict:
        body = {
            "first_name": first_name,
            "last_name": "Doe",
            "date_of_birth": "2012-05-01",
            "grade": 7,
            "language": "english",
            "parent_name": "Jane Doe",
            "parent_email": "parent@example.com",
            **fields,
        }
        response = await client.post("/api/v1/students", json=body, headers=headers or auth_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _make


@pytest.fixture()
async def subject(session_factory: async_sessionmaker) -> dict:
    """A catalogue subject with one English comment per performance level."""
    async with session_factory() as session:
        s = Subject(code="MATH07", name_en="Mathematics", name_af="Wiskunde", grade=7, category=SubjectCategory.core.value)
        session.add(s)
        await session.flush()
        for level in PerformanceLevel:
            session.add(
                CommentLibraryEntry(
                    category="subject_specific",
                    language=Language.english.value,
                    comment_text=f"{level.value} comment",
                    subject_id=s.id,
                    performance_level=level.value,
                )
            )
        await session.commit()
        return {"id": str(s.id), "code": s.code}
