"""
Test configuration and fixtures
"""

import os
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Dict, Optional
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment before the settings object is built
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-with-at-least-thirty-two-chars"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["PROMETHEUS_ENABLED"] = "false"

from drawn_to_run.core.database import Base, get_session
from drawn_to_run.core.redis import get_redis
from drawn_to_run.core.security import security_manager
from drawn_to_run.models import User, UserRole, Event, EventStatus, Tag

TEST_PASSWORD = "TestPass123!"


class FakeRedis:
    """In-memory stand-in for the few redis commands the app issues"""

    def __init__(self):
        self.store: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}

    async def get(self, key: str) -> Optional[str]:
        return self.store.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    async def ping(self) -> bool:
        return True


@pytest_asyncio.fixture(scope="function")
async def test_db():
    """In-memory database shared by every connection of one test"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_db) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests"""
    async_session_maker = async_sessionmaker(
        test_db,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        try:
            yield session
        finally:
            if session.in_transaction():
                await session.rollback()


@pytest.fixture
def redis_client():
    return FakeRedis()


@pytest_asyncio.fixture
async def client(db_session, redis_client):
    """Create test client with dependency override"""
    from drawn_to_run.main import app

    async def override_get_session():
        yield db_session

    async def override_get_redis():
        return redis_client

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_redis] = override_get_redis

    try:
        # Unhandled errors come back as 500 responses instead of raising in the test
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


async def create_user(db_session, role: UserRole = UserRole.PARTICIPANT, name: str = "Test Runner") -> User:
    """Helper to insert a user with the shared test password"""
    user = User(
        email=f"{role.value}_{uuid4().hex[:8]}@example.com",
        name=name,
        password_hash=security_manager.hash_password(TEST_PASSWORD),
        role=role,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


def auth_headers(user: User) -> Dict[str, str]:
    token = security_manager.create_access_token(user)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def test_user(db_session):
    return await create_user(db_session, UserRole.PARTICIPANT, "Pat Participant")


@pytest_asyncio.fixture
async def other_user(db_session):
    return await create_user(db_session, UserRole.PARTICIPANT, "Olive Other")


@pytest_asyncio.fixture
async def test_organizer(db_session):
    return await create_user(db_session, UserRole.ORGANIZER, "Orla Organizer")


@pytest_asyncio.fixture
async def test_admin(db_session):
    return await create_user(db_session, UserRole.ADMIN, "Ada Admin")


@pytest.fixture
def auth_headers_user(test_user):
    return auth_headers(test_user)


@pytest.fixture
def auth_headers_organizer(test_organizer):
    return auth_headers(test_organizer)


@pytest.fixture
def auth_headers_admin(test_admin):
    return auth_headers(test_admin)


async def create_event(db_session, organizer: User, **overrides) -> Event:
    """Helper to insert an active event a month out"""
    values = {
        "title": "Riverside 10K",
        "description": "Flat loop along the river",
        "event_date": datetime.now(timezone.utc) + timedelta(days=30),
        "location": "Riverside Park",
        "distance_options": ["5K", "10K"],
        "capacity": 100,
        "registration_fee": 25.0,
        "created_by": organizer.id,
        "status": EventStatus.ACTIVE,
    }
    values.update(overrides)
    event = Event(**values)
    db_session.add(event)
    await db_session.commit()
    await db_session.refresh(event)
    return event


@pytest_asyncio.fixture
async def test_event(db_session, test_organizer):
    return await create_event(db_session, test_organizer)


@pytest_asyncio.fixture
async def test_tags(db_session):
    tags = [
        Tag(name="Trail", category="type", color="#2E7D32"),
        Tag(name="Road", category="type", color="#1565C0"),
        Tag(name="Beginner Friendly", category="difficulty", color="#F9A825"),
    ]
    db_session.add_all(tags)
    await db_session.commit()
    for tag in tags:
        await db_session.refresh(tag)
    return tags
