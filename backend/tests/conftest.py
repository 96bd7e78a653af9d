import os
import tempfile

# Configure before any vidanalytica import: settings and the engine are built at import time
_DB_DIR = tempfile.mkdtemp(prefix="vidanalytica-test-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["ENVIRONMENT"] = "test"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["DEV_AUTH_FALLBACK"] = "false"
os.environ["AUTH_RATE_LIMIT"] = "1000"

import pytest
from fastapi.testclient import TestClient

from vidanalytica.core.database import Base, SessionLocal, engine
from vidanalytica.core.events import RecordingAuthEvents, set_auth_events
from vidanalytica.core.rate_limit import auth_rate_limiter
from vidanalytica.main import app

DEFAULT_EMAIL = "alice@example.com"
DEFAULT_PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def _fresh_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    auth_rate_limiter.reset()
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def recorded_events():
    recorder = RecordingAuthEvents()
    previous = set_auth_events(recorder)
    yield recorder
    set_auth_events(previous)


def register(client, email=DEFAULT_EMAIL, password=DEFAULT_PASSWORD, name="Alice"):
    return client.post("/api/auth/register", json={"email": email, "password": password, "name": name})


def login(client, email=DEFAULT_EMAIL, password=DEFAULT_PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def session_tokens(client):
    """Registered and logged-in default user; returns the login response body"""
    assert register(client).status_code == 201
    response = login(client)
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def auth_headers(session_tokens):
    return bearer(session_tokens["accessToken"])
