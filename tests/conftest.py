from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from servicedesk.auth.tokens import Identity
from servicedesk.core.config import Settings
from servicedesk.main import create_app
from servicedesk.users.models import Role


class FakeClock:
    """Manually advanced clock injected wherever services read the time."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def admin_identity() -> Identity:
    return Identity(id="1", name="Admin", role=Role.ADMIN)


@pytest.fixture
def analyst_identity() -> Identity:
    return Identity(id="2", name="Ana Lima", role=Role.ANALYST)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        data_dir=tmp_path / "data",
        upload_dir=tmp_path / "uploads",
        jwt_secret="test-secret",
    )


@pytest.fixture
def app_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def app(settings, app_clock):
    return create_app(settings, clock=app_clock)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def _login(client: TestClient, login_name: str, password: str) -> str:
    response = client.post("/api/auth/login", json={"login": login_name, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["token"]


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(client) -> dict[str, str]:
    return _bearer(_login(client, "admin", "admin"))


@pytest.fixture
def analyst_headers(client, admin_headers) -> dict[str, str]:
    response = client.post(
        "/api/users",
        json={"name": "Ana Lima", "login": "ana", "password": "secret", "role": "analyst"},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    return _bearer(_login(client, "ana", "secret"))


@pytest.fixture
def headers_for(client):
    """Log in through the API and return the bearer header for that user."""

    def issue(login_name: str, password: str) -> dict[str, str]:
        return _bearer(_login(client, login_name, password))

    return issue
