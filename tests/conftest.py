"""Shared pytest fixtures for unit and API tests."""

import os
import uuid
from unittest.mock import AsyncMock

import pytest

# Settings are read at import time; keep tests off email and rate limits
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.config import WalletPolicy, settings
from app.main import app
from app.models.enums import UserRole
from app.models.user import User


@pytest.fixture
def policy() -> WalletPolicy:
    """Defaults: 100 daily, 1000 monthly, 10000 max deposit, Mexico City time."""
    return WalletPolicy()


@pytest.fixture
def school_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def db():
    return AsyncMock(spec=AsyncSession)


def make_user(role: UserRole, school_id: uuid.UUID) -> User:
    return User(
        id=uuid.uuid4(),
        school_id=school_id,
        email=f"{role.value}_{uuid.uuid4().hex[:8]}@test.example.com",
        first_name="Test",
        last_name=role.value.title(),
        role=role,
        is_active=True,
    )


@pytest.fixture
def student(school_id) -> User:
    return make_user(UserRole.STUDENT, school_id)


@pytest.fixture
def parent(school_id) -> User:
    return make_user(UserRole.PARENT, school_id)


@pytest.fixture
def admin(school_id) -> User:
    return make_user(UserRole.SCHOOL_ADMIN, school_id)


@pytest.fixture
def api_base() -> str:
    return f"http://test{settings.API_V1_PREFIX}"


@pytest.fixture
def login_as(db, policy):
    """
    Override auth and storage dependencies for API tests.
    Usage: login_as(parent) before sending requests.
    """
    async def _get_db():
        yield db

    def _login(user: User):
        app.dependency_overrides[deps.get_current_user] = lambda: user
        app.dependency_overrides[deps.get_db] = _get_db
        app.dependency_overrides[deps.get_policy] = lambda: policy
        return user

    yield _login
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(api_base: str):
    transport = ASGITransport(app=app)
    client = AsyncClient(transport=transport, base_url=api_base, timeout=30.0)
    yield client
    await client.aclose()
