import os
import sys
import uuid
from pathlib import Path

import anyio
import httpx
import pytest

BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

TEST_DB_PATH = BASE_DIR / "test.db"

os.environ.setdefault("DATABASE_URL", f"sqlite:///{TEST_DB_PATH}")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("JWT_REFRESH_SECRET_KEY", "test-refresh-secret")
os.environ.setdefault("AUTO_CREATE_SCHEMA", "false")
os.environ.setdefault("SWEEPER_ENABLED", "false")
os.environ.setdefault("ENTRY_SERVICE_MINUTES", "5")
os.environ.setdefault("CALL_RESPONSE_TIMEOUT_MINUTES", "5")

from campus_queue.core.cache import cache_manager
from campus_queue.core.config import get_settings
from campus_queue.core.db import database
from campus_queue.core.dependencies import get_db
from campus_queue.core.identity import AdminIdentity
from campus_queue.main import app
from campus_queue.models import Base, Staff
from campus_queue.services import StaffService
from campus_queue.services.staff_service import invalidate_public_caches

get_settings.cache_clear()
database.dispose()


@pytest.fixture(scope="session")
def engine():
    TEST_DB_PATH.unlink(missing_ok=True)
    engine = database.engine
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    database.dispose()
    TEST_DB_PATH.unlink(missing_ok=True)


@pytest.fixture(scope="session")
def session_factory(engine):
    return database.session_factory


@pytest.fixture()
def db_session(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def _fresh_public_cache():
    cache_manager.connect()
    invalidate_public_caches()
    yield
    invalidate_public_caches()


@pytest.fixture()
def admin_identity() -> AdminIdentity:
    return AdminIdentity(user_id=uuid.uuid4(), email="fixture.admin@university.edu", name="Fixture Admin")


@pytest.fixture()
def make_staff(session_factory, admin_identity):
    """Create a staff member with an open queue through the service layer."""

    def _make_staff(name: str = "Dr. Ada Byron", department: str = "Computer Science") -> Staff:
        with session_factory() as session:
            staff = StaffService(session).create_staff(
                name=name,
                email=f"{uuid.uuid4().hex[:8]}@university.edu",
                department=department,
                actor=admin_identity,
            )
            # Load the queue before the session closes.
            assert staff.queue is not None
            return staff

    return _make_staff


class SyncASGIClient:
    """Blocking facade over ``httpx.AsyncClient`` bound to the ASGI app."""

    def __init__(self, asgi_app):
        self._client = httpx.AsyncClient(
            transport=httpx.ASGITransport(app=asgi_app),
            base_url="http://testserver",
        )

    def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        async def _send():
            return await self._client.request(method, url, **kwargs)

        return anyio.run(_send)

    def get(self, url: str, **kwargs) -> httpx.Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs) -> httpx.Response:
        return self.request("POST", url, **kwargs)

    def put(self, url: str, **kwargs) -> httpx.Response:
        return self.request("PUT", url, **kwargs)

    def delete(self, url: str, **kwargs) -> httpx.Response:
        return self.request("DELETE", url, **kwargs)

    def close(self) -> None:
        anyio.run(self._client.aclose)


@pytest.fixture()
def client(session_factory):
    def _override_get_db():
        with session_factory() as db:
            yield db

    app.dependency_overrides[get_db] = _override_get_db
    test_client = SyncASGIClient(app)
    try:
        yield test_client
    finally:
        test_client.close()
        app.dependency_overrides.clear()


@pytest.fixture()
def admin_token(client) -> str:
    response = client.post(
        "/api/v1/auth/admin/signup",
        json={
            "email": f"admin-{uuid.uuid4().hex[:8]}@university.edu",
            "password": "secret123",
            "name": "Queue Admin",
        },
    )
    assert response.status_code == 201
    return response.json()["tokens"]["access_token"]
