"""Shared test fixtures for the lead engine tests.

Uses a file-backed SQLite async engine so concurrent sessions opened by the
assignment and rescoring fan-out see the same data without PostgreSQL.
"""

import os
import tempfile
from pathlib import Path

os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("SENDGRID_API_KEY", "")

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from app.core.database import Base, get_db
from app.core.deps import get_notifier, get_session_factory
from app.main import app
from app.models.profile import UserRole

from factories import RecordingNotifier, auth_headers, make_profile


TEST_DB_PATH = Path(tempfile.mkdtemp()) / "lead_engine_test.db"
TEST_DATABASE_URL = f"sqlite+aiosqlite:///{TEST_DB_PATH}"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    poolclass=NullPool,
    connect_args={"timeout": 30},
)
TestSession = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_db():
    async with TestSession() as session:
        yield session


app.dependency_overrides[get_db] = override_get_db
app.dependency_overrides[get_session_factory] = lambda: TestSession


@pytest_asyncio.fixture
async def notifier():
    recording = RecordingNotifier()
    app.dependency_overrides[get_notifier] = lambda: recording
    yield recording
    app.dependency_overrides.pop(get_notifier, None)


@pytest_asyncio.fixture
async def client(notifier):
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db():
    """Direct DB session for test setup/assertions."""
    async with TestSession() as session:
        yield session


@pytest_asyncio.fixture
async def admin(db):
    return await make_profile(db, "admin@example.com", UserRole.ADMIN)


@pytest_asyncio.fixture
async def admin_headers(admin):
    return auth_headers(admin)


@pytest_asyncio.fixture
async def session_factory():
    """The factory services use for their own concurrent sessions."""
    return TestSession
