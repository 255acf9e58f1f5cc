"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.pool import Pool, StaticPool

from backend.app.main import create_app
from backend.app.db.session import Base, Database
from backend.app.core.security import get_password_hash
from backend.app.domain.parcels.lifecycle import ParcelLifecycleManager
from backend.app.models.enums import UserRole
from backend.app.models.user import User
from backend.app.services.parcel_store import ParcelStore, UserDirectory
import backend.app.core.redis_client as redis_client_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)).lower():
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


test_database = Database(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

app = create_app(database=test_database)


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}

    async def ping(self):
        return True

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        return True

    async def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0

    async def exists(self, key):
        return 1 if key in self.store else 0

    async def flushdb(self):
        self.store = {}


@pytest.fixture
def mock_redis(monkeypatch):
    """Swap the shared Redis client for an in-memory fake."""
    fake = MockRedis()
    monkeypatch.setattr(redis_client_module, "redis_client", fake)
    return fake


@pytest.fixture(autouse=True)
async def setup_database(mock_redis):
    """Create tables before each test function and drop after."""
    async with test_database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with test_database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session():
    async with test_database.session_factory() as session:
        yield session


@pytest.fixture
def store(db_session):
    return ParcelStore(db_session)


@pytest.fixture
def users(db_session):
    return UserDirectory(db_session)


@pytest.fixture
def manager(store, users):
    return ParcelLifecycleManager(store, users)


async def create_user(db_session, email, role=UserRole.OWNER, password="password123", name="Test User"):
    user = User(
        email=email,
        name=name,
        hashed_password=get_password_hash(password),
        role=role,
        is_active=True
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def admin_user(db_session):
    return await create_user(db_session, "admin@parceltracker.com", role=UserRole.ADMIN, password="admin123", name="Admin User")


@pytest.fixture
async def owner_user(db_session):
    return await create_user(db_session, "john.doe@example.com", name="John Doe")


@pytest.fixture
async def other_owner_user(db_session):
    return await create_user(db_session, "sarah.johnson@example.com", name="Sarah Johnson")


async def login(client, email, password):
    response = await client.post("/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["accessToken"]


def auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin_token(client, admin_user):
    return await login(client, "admin@parceltracker.com", "admin123")


@pytest.fixture
async def owner_token(client, owner_user):
    return await login(client, "john.doe@example.com", "password123")


@pytest.fixture
async def other_owner_token(client, other_owner_user):
    return await login(client, "sarah.johnson@example.com", "password123")
