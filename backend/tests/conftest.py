"""Shared test fixtures and configuration for backend tests."""
import time

import pytest
from fastapi.testclient import TestClient

from app.config import AppConfig
from app.dependencies import build_services, services_for
from app.main import create_app

TEST_JWT_SECRET = "test-secret-0123456789abcdef0123456789"


class FakeWebSocket:
    """Records frames sent by the server; optionally fails every send."""

    def __init__(self, fail: bool = False) -> None:
        self.sent = []
        self.closed_with = None
        self.fail = fail

    async def send_json(self, data) -> None:
        if self.fail:
            raise RuntimeError("socket is closed")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.closed_with = code

    def events(self, event_type: str) -> list:
        return [e for e in self.sent if e["type"] == event_type]


@pytest.fixture
def config():
    """In-memory database, a fixed JWT secret and a heartbeat that never fires in tests."""
    cfg = AppConfig()
    cfg.database.path = ":memory:"
    cfg.secrets.jwt.secret_key = TEST_JWT_SECRET
    cfg.realtime.heartbeat_interval_seconds = 3600
    return cfg


@pytest.fixture
def services(config):
    """Standalone service container for unit tests (no HTTP app)."""
    svc = build_services(config)
    yield svc
    svc.close()


@pytest.fixture
def app(config):
    return create_app(config)


@pytest.fixture
def api_client(app):
    """TestClient with the lifespan running, so HTTP and WebSocket calls
    share one event loop."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def app_services(app, api_client):
    """The service container of the running test app."""
    return services_for(app)


@pytest.fixture
def make_user(app_services):
    """Create a user and return (user_id, auth headers)."""

    def _make(username: str, is_admin: bool = False):
        user = app_services.users.create(username)
        token = app_services.tokens.issue(user.id, is_admin=is_admin)
        return user.id, {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def wait_for():
    """Poll a predicate until it holds (WebSocket frames are handled asynchronously)."""

    def _wait(predicate, timeout: float = 2.0) -> None:
        deadline = time.monotonic() + timeout
        while not predicate():
            if time.monotonic() > deadline:
                raise AssertionError("condition not met before timeout")
            time.sleep(0.01)

    return _wait


@pytest.fixture
def fake_socket():
    return FakeWebSocket
