import asyncio
from datetime import date

import pytest
from fastapi.testclient import TestClient

from studio_site.config import Settings
from studio_site.database import Database
from studio_site.dependencies import get_today
from studio_site.main import create_app
from studio_site.schemas import UserCreate
from studio_site.storage import DatabaseStorage
from studio_site.utils.auth import hash_password

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "s3cret!"
TODAY = date(2025, 5, 20)


@pytest.fixture
def settings(tmp_path):
    # Each test gets its own SQLite file
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        DATABASE_AUTO_CREATE=True,
        RATE_LIMIT_ENABLED=False,
        SESSION_SECRET="test-session-secret",
    )


@pytest.fixture
def app(settings):
    app = create_app(settings)
    app.dependency_overrides[get_today] = lambda: TODAY
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def storage(app) -> DatabaseStorage:
    return app.state.storage


@pytest.fixture
def admin_user(client, storage):
    # `client` first so the lifespan has created the tables
    return asyncio.run(storage.create_user(
        UserCreate(username=ADMIN_USERNAME, password_hash=hash_password(ADMIN_PASSWORD, rounds=4))
    ))


@pytest.fixture
def admin_client(client, admin_user):
    resp = client.post("/api/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200, resp.text
    return client


@pytest.fixture
def run_store(settings):
    """Run a coroutine function against a fresh store outside of any app."""
    def _run(scenario):
        async def _main():
            database = Database(settings)
            await database.connect()
            try:
                return await scenario(DatabaseStorage(database.session_factory))
            finally:
                await database.close()
        return asyncio.run(_main())
    return _run
