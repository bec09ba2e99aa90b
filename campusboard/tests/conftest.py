"""
Pytest fixtures shared across all test modules.
Uses an in-memory SQLite database with StaticPool so all connections
share a single in-memory DB — no real Postgres required for tests.
pywebpush and Redis are replaced with in-memory fakes.
"""

import os

# Set env vars BEFORE any campusboard module is imported
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-min-32-chars-long!!"
os.environ["ALGORITHM"] = "HS256"
os.environ["REDIS_URL"] = ""
os.environ["SMTP_HOST"] = ""
os.environ["VAPID_PUBLIC_KEY"] = "BPublicTestKey_" + "a" * 72
os.environ["VAPID_PRIVATE_KEY"] = "PrivateTestKey_" + "b" * 28
os.environ["VAPID_CLAIMS_EMAIL"] = "mailto:admin@example.ac.kr"

import pytest
from fastapi.testclient import TestClient
from pywebpush import WebPushException
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Import campusboard modules AFTER env vars are set
import campusboard.redis.log_health as log_health_mod  # noqa: E402
import campusboard.services.push_service as push_service_mod  # noqa: E402
from campusboard.database import Base, get_db  # noqa: E402
from campusboard.main import app  # noqa: E402
from campusboard.models.push_subscription import PushSubscription  # noqa: E402

# Single shared in-memory SQLite engine — StaticPool ensures all
# connections share the same DB instance.
engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_db():
    """Create tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Fake push transport
# ---------------------------------------------------------------------------


class FakeResponse:
    def __init__(self, status_code: int):
        self.status_code = status_code
        self.text = ""


class FakeWebPush:
    """Stands in for pywebpush.webpush; fails endpoints listed in ``failures``.

    A failure value is either an HTTP status code (raised as WebPushException)
    or an exception instance raised as-is.
    """

    def __init__(self):
        self.calls: list[dict] = []
        self.failures: dict[str, int | Exception] = {}

    def __call__(self, *, subscription_info, data, vapid_private_key, vapid_claims, **kwargs):
        self.calls.append(
            {
                "subscription_info": subscription_info,
                "data": data,
                "vapid_private_key": vapid_private_key,
                "vapid_claims": vapid_claims,
            }
        )
        failure = self.failures.get(subscription_info["endpoint"])
        if failure is None:
            return FakeResponse(201)
        if isinstance(failure, Exception):
            raise failure
        raise WebPushException(f"Push failed: {failure}", response=FakeResponse(failure))


@pytest.fixture()
def fake_webpush(monkeypatch):
    fake = FakeWebPush()
    monkeypatch.setattr(push_service_mod, "webpush", fake)
    return fake


class FakeRedis:
    """The slice of redis.asyncio used by the delivery-log health counter."""

    def __init__(self):
        self._data: dict[str, int] = {}
        self._ttls: dict[str, int] = {}

    async def incr(self, key: str) -> int:
        self._data[key] = self._data.get(key, 0) + 1
        return self._data[key]

    async def expire(self, key: str, ttl: int):
        self._ttls[key] = ttl
        return 1

    async def get(self, key: str):
        value = self._data.get(key)
        return None if value is None else str(value)


@pytest.fixture()
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(log_health_mod, "get_redis", lambda: fake)
    return fake


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def register_admin(client: TestClient, email="admin@example.ac.kr", password="Password1!", headers=None):
    return client.post("/api/auth/register", json={"email": email, "password": password}, headers=headers or {})


def auth_headers(client: TestClient, email="admin@example.ac.kr", password="Password1!"):
    resp = register_admin(client, email=email, password=password)
    assert resp.status_code == 200, f"Registration failed: {resp.json()}"
    token = resp.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


def make_subscription(db, endpoint: str, *, is_active: bool = True, **fields) -> PushSubscription:
    sub = PushSubscription(
        endpoint=endpoint,
        p256dh=fields.pop("p256dh", "p256dh-key"),
        auth=fields.pop("auth", "auth-secret"),
        is_active=is_active,
        **fields,
    )
    db.add(sub)
    db.commit()
    db.refresh(sub)
    return sub
