import os

import pytest
from fastapi.testclient import TestClient

# Memory backend and a cheap bcrypt cost keep the suite fast and filesystem-free
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.setdefault("JWT_SECRET", "test-secret-0123456789abcdef0123456789abcdef")

from task_api.main import app  # noqa: E402
from task_api.repositories import InMemoryRepository, get_repository  # noqa: E402


@pytest.fixture
def repo():
    return InMemoryRepository()


@pytest.fixture
def client(repo):
    app.dependency_overrides[get_repository] = lambda: repo
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """Register a user through the API and return (user, token)."""

    def _register(name="Test User", email="test@example.com", password="password123"):
        res = client.post("/register", json={"name": name, "email": email, "password": password})
        assert res.status_code == 201, res.json()
        data = res.json()["data"]
        return data["user"], data["authorisation"]["token"]

    return _register


@pytest.fixture
def auth_headers():
    def _headers(token):
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def create_task(client, auth_headers):
    """Create a task as the owner of `token` and return the task JSON."""

    def _create(token, title="New Task", description="Task Description", due_date="2022-07-24"):
        res = client.post(
            "/tasks",
            json={"title": title, "description": description, "due_date": due_date},
            headers=auth_headers(token),
        )
        assert res.status_code == 201, res.json()
        return res.json()["data"]

    return _create
