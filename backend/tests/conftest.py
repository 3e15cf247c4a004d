import pytest
from fastapi.testclient import TestClient

from careerpilot.main import app, get_llm, get_store
from fakes import FakeLLM, FakeStore


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def client(store, llm):
    """API client wired to the in-memory store and the scripted LLM."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_llm] = lambda: llm
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


ADMIN = {"X-User": "root", "X-Role": "admin"}
USER = {"X-User": "jane_smith", "X-Role": "user"}


@pytest.fixture
def admin_headers():
    return dict(ADMIN)


@pytest.fixture
def user_headers():
    return dict(USER)
