import os
import tempfile

import pytest
from fastapi.testclient import TestClient

# Settings are read from the environment, so configure before importing the app
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")
os.environ.setdefault("JWT_KEY", "test-signing-key-for-organizer-tests")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="organizer-uploads-"))

from src.organizer.db import SQLiteDocumentStore  # noqa: E402
from src.organizer.dependencies import get_store  # noqa: E402
from src.organizer.main import app  # noqa: E402
from src.organizer.store import InMemoryDocumentStore  # noqa: E402


@pytest.fixture
def store():
    """Fresh in-memory store wired into the app for the duration of a test."""
    s = InMemoryDocumentStore()
    app.dependency_overrides[get_store] = lambda: s
    yield s
    app.dependency_overrides.pop(get_store, None)


@pytest.fixture
def client(store):
    return TestClient(app)


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request, tmp_path):
    """Each store implementation, for protocol-level tests."""
    if request.param == "sqlite":
        return SQLiteDocumentStore(str(tmp_path / "organizer.db"))
    return InMemoryDocumentStore()


def signup(client, username="amy", email=None, password="p"):
    res = client.post(
        "/api/users/signup",
        json={"username": username, "email": email or f"{username}@example.com", "password": password},
    )
    assert res.status_code == 201, res.text
    return res.json()


def bearer(auth: dict) -> dict:
    return {"Authorization": f"Bearer {auth['token']}"}
