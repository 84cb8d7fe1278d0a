"""
Shared fixtures for the test suite.

Every test gets its own application wired to a throwaway SQLite database in
`tmp_path`. The app is built through `create_app`, so routing, dependencies,
middleware and exception handlers are the production ones.
"""

from collections.abc import Iterator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.testclient import TestClient

from hackdb.config import Settings
from hackdb.db import Database, set_edit_permission
from tests.helpers import (
    EDITOR_EMAIL,
    EDITOR_USERNAME,
    VIEWER_EMAIL,
    VIEWER_USERNAME,
    login,
    logout,
    register,
)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'hackdb.sqlite3'}",
        SESSION_SECRET="test-session-secret",
    )


@pytest.fixture
def database(settings: Settings) -> Database:
    return Database.from_settings(settings)


@pytest.fixture
def app(settings: Settings, database: Database) -> FastAPI:
    from main import create_app

    return create_app(settings, database)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """
    Test client that keeps cookies and does not follow redirects.
    Entering the context runs the lifespan, which creates the tables.
    """
    with TestClient(app, follow_redirects=False) as c:
        yield c


@pytest_asyncio.fixture
async def db_session(database: Database):
    """A bare session for handler-level tests, with tables created."""
    await database.init()
    async with database.session_factory() as session:
        yield session
    await database.close()


@pytest.fixture
def viewer_client(client: TestClient) -> TestClient:
    """Client logged in as a registered user without edit permission."""
    assert register(client, VIEWER_EMAIL, VIEWER_USERNAME).status_code == 302
    return client


@pytest.fixture
def editor_client(client: TestClient, database: Database) -> TestClient:
    """Client logged in as a user whose edit permission was granted by the CLI path."""
    assert register(client, EDITOR_EMAIL, EDITOR_USERNAME).status_code == 302
    assert client.portal.call(set_edit_permission, database, EDITOR_EMAIL, True)
    # The session caches can_edit, so a fresh login picks up the grant
    logout(client)
    assert login(client, EDITOR_EMAIL).status_code == 302
    return client
