import pytest
import pytest_asyncio
import os

# Set dummy environment variables for testing before importing the app
os.environ["JWT_SECRET"] = "fake_jwt_secret"
os.environ["DATABASE_URL"] = ""
os.environ["ONBOARDING_VALIDATION_MODE"] = "first"

from httpx import AsyncClient, ASGITransport
from fitin.main import app
from fitin.db import db
from fitin.collaborators import session_store
from fitin.models import PlanType


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(autouse=True)
async def mock_db_pool(monkeypatch):
    """Mock database pool to avoid real connections during tests."""
    class MockPool:
        def acquire(self, timeout=None):
            class MockAcquireContext:
                async def __aenter__(self):
                    class MockConn:
                        async def execute(self, query, *args):
                            return "OK"
                        async def fetchrow(self, query, *args):
                            return None
                    return MockConn()
                async def __aexit__(self, exc_type, exc_val, exc_tb):
                    pass
            return MockAcquireContext()
        async def close(self):
            pass

    mock_pool = MockPool()
    monkeypatch.setattr(db, "pool", mock_pool)
    return mock_pool


@pytest.fixture(autouse=True)
def clean_state():
    session_store.clear()
    yield
    session_store.clear()
    app.dependency_overrides.clear()


class FakeProfileStore:
    """In-memory stand-in for the persistence collaborator."""

    def __init__(self, plan_type: PlanType = PlanType.PAID, save_ok: bool = True):
        self.plan_type = plan_type
        self.save_ok = save_ok
        self.saved_profiles: list[tuple[str, object]] = []
        self.saved_details: list[tuple[str, object]] = []

    async def fetch_plan_type(self, user_id):
        return self.plan_type

    async def save_profile(self, user_id, state):
        self.saved_profiles.append((user_id, state))
        return self.save_ok

    async def save_details(self, user_id, profile):
        self.saved_details.append((user_id, profile))
        return self.save_ok


class FakePhotoStore:
    def __init__(self):
        self.stored: list[tuple[str, object, bytes]] = []

    async def store(self, user_id, filename, data):
        self.stored.append((user_id, filename, data))
        return f"progress/{user_id}/photo-{len(self.stored)}.bin"


@pytest.fixture
def profile_store():
    return FakeProfileStore()


@pytest.fixture
def photo_store():
    return FakePhotoStore()


@pytest.fixture
def make_profile_store():
    return FakeProfileStore
