"""Shared fixtures: a throwaway SQLite database behind the FastAPI app."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["JWT_SECRET"] = "test-secret-key-with-enough-bytes-for-hs256"
os.environ["GTD_AUTO_CREATE_TABLES"] = "false"

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from gtd_client.api import GTDApiClient
from gtd_client.store import GTDStore
from gtd_core.api.main import app
from gtd_core.database import get_db
from gtd_core.models import Base


@pytest.fixture
def engine(tmp_path):
    """File-backed so concurrent requests each get their own connection."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'gtd-test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def api_app(engine):
    """The app with get_db pointed at the test database."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(api_app):
    return TestClient(api_app)


def register_user(client, email="ada@example.com", password="secret-password", name="Ada"):
    response = client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "name": name},
    )
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def register(client):
    """Register a user through the API and return the auth response body."""

    def make(email="ada@example.com", password="secret-password", name="Ada"):
        return register_user(client, email, password, name)

    return make


@pytest.fixture
def auth_headers(client):
    """Bearer headers for a freshly registered user."""
    token = register_user(client)["token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_headers(client):
    """Bearer headers for a second, unrelated user."""
    token = register_user(client, email="grace@example.com", name="Grace")["token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def api_factory(api_app):
    """Build a GTDApiClient that talks to the app in-process."""

    def make(token=None):
        return GTDApiClient(
            base_url="http://testserver",
            token=token,
            transport=httpx.ASGITransport(app=api_app),
        )

    return make


@pytest.fixture
def store_factory(api_factory):
    """Async factory: register a user and return a store signed in as them."""

    async def make(email="ada@example.com"):
        api = api_factory()
        auth = await api.register(email, "secret-password", "Ada")
        api.set_token(auth.token)
        return GTDStore(api)

    return make
