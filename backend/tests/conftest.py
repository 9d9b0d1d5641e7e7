"""
Shared fixtures for the Trip Board API test suite.

Provides:
- a temporary SQLite database, recreated for every test
- a temporary local bucket wired into the app in place of the configured one
- a FastAPI test client and admin auth headers
"""

import os
import tempfile

import pytest
from fastapi.testclient import TestClient

# Ensure test env vars before any app imports
os.environ.setdefault("ENVIRONMENT", "test")
_TEST_DIR = tempfile.mkdtemp(prefix="tripboard-test-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_TEST_DIR, 'tripboard-test.db')}")
os.environ.setdefault("STORAGE_ROOT", os.path.join(_TEST_DIR, "storage"))
os.environ.setdefault("STORAGE_PUBLIC_URL", "http://testserver/storage")
os.environ.setdefault("ADMIN_PASSWORD", "test-admin-password")

from tripboard.api.metrics import metrics_collector  # noqa: E402
from tripboard.auth.rate_limiter import rate_limiter  # noqa: E402
from tripboard.core.database import Base, SessionLocal, engine  # noqa: E402
from tripboard.main import app  # noqa: E402
from tripboard.services.images import ImageResolver  # noqa: E402
from tripboard.services.storage import LocalObjectStorage, get_storage  # noqa: E402

ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]


# ---------------------------------------------------------------------------
# Database + storage isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def clean_state():
    """Fresh tables, rate limits and metrics for every test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    rate_limiter.reset()
    metrics_collector.reset()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage(tmp_path):
    return LocalObjectStorage(
        root=str(tmp_path),
        bucket="trip-photos",
        public_url="http://testserver/storage",
    )


@pytest.fixture
def resolver(storage):
    return ImageResolver(storage, default_image="/placeholder.svg")


# ---------------------------------------------------------------------------
# FastAPI test client
# ---------------------------------------------------------------------------

@pytest.fixture
def client(storage):
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers(client):
    response = client.post("/auth/login", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
