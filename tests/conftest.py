# tests/conftest.py
import pytest
from fastapi.testclient import TestClient
import shutil
import os
import sys
import tempfile
import logging

# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# The engine is created at import time, so the test database must be chosen first.
TEST_DB_DIR = tempfile.mkdtemp(prefix="aiplacement_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(TEST_DB_DIR, 'test.db')}"

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from aiplacement.services.llm_client import (
    get_chat_backend,
    get_quizgen_backend,
    get_textprocessor_backend,
)


class FakeBackend:
    """Stands in for a language-model backend and records every call."""

    def __init__(self, reply: str = "", model: str = "fake-model", error: Exception | None = None):
        self.reply = reply
        self.model = model
        self.error = error
        self.calls = []

    async def chat(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return self.reply


# --- TestClient Fixture ---
@pytest.fixture(scope="session")
def client():
    """
    Creates the TestClient once; startup creates the tables in the temporary database.
    """
    from aiplacement.main import app
    logger.info(f"Creating TestClient instance for the session (database in {TEST_DB_DIR}).")
    with TestClient(app) as c:
        yield c
    shutil.rmtree(TEST_DB_DIR, ignore_errors=True)


# --- Backend Override Fixture ---
@pytest.fixture
def fake_backend(client):
    """
    Routes all three placements to one FakeBackend for the duration of a test.
    Tests set `reply` or `error` on it before calling the API.
    """
    from aiplacement.main import app
    backend = FakeBackend()
    for dependency in (get_chat_backend, get_quizgen_backend, get_textprocessor_backend):
        app.dependency_overrides[dependency] = lambda: backend
    yield backend
    app.dependency_overrides.clear()


@pytest.fixture
def make_course(client):
    """Stores a course through the API and returns its id."""
    def _make_course(course_id: int, fullname: str = "Test Course", **content):
        payload = {"id": course_id, "fullname": fullname, **content}
        response = client.post("/courses/", json=payload)
        assert response.status_code == 200, response.text
        return course_id
    return _make_course
