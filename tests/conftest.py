"""Pytest configuration and fixtures for the Blog API tests."""

import os

# Set test environment variables BEFORE any app imports
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET"] = "test-access-secret-for-testing-only"
os.environ["REFRESH_TOKEN_SECRET"] = "test-refresh-secret-for-testing-only"
os.environ["BCRYPT_ROUNDS"] = "4"  # Keep hashing fast in tests
os.environ["USE_MEMORY_STORE"] = "true"
os.environ["LOGFIRE_CONSOLE"] = "false"
os.environ.pop("LOGFIRE_WRITE_TOKEN", None)

from datetime import datetime, timedelta  # noqa: E402

import logfire  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from models.helpers import utc_now  # noqa: E402
from storage.memory import MemoryStore  # noqa: E402
from utils.config import Settings  # noqa: E402

logfire.configure(send_to_logfire=False, console=False)

TEST_USER = {
    "username": "testuser",
    "email": "test@example.com",
    "password": "password123",
}

ANOTHER_USER = {
    "username": "another",
    "email": "another@example.com",
    "password": "password123",
}


class FakeClock:
    """Controllable replacement for `utc_now`."""

    def __init__(self, now: datetime | None = None):
        self.now = now or utc_now()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        access_token_secret=os.environ["JWT_SECRET"],
        refresh_token_secret=os.environ["REFRESH_TOKEN_SECRET"],
        bcrypt_rounds=4,
    )


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def client(store, settings):
    """Test client for an app serving from the in-memory store."""
    from main import create_app

    app = create_app(store=store, settings=settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def registered(client) -> dict:
    """Register TEST_USER and return the response body."""
    response = client.post("/api/users/register", json=TEST_USER)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def logged_in(client, registered) -> dict:
    """Login TEST_USER and return the response body."""
    response = client.post(
        "/api/users/login",
        json={"email": TEST_USER["email"], "password": TEST_USER["password"]},
    )
    assert response.status_code == 200
    return response.json()
