"""
Pytest fixtures. Each test gets a fresh app backed by its own SQLite file.
"""
import pytest
from fastapi.testclient import TestClient

from quizlink.config import Settings
from quizlink.main import create_app


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'quizlink.db'}",
        public_base_url=None,
        log_level="WARNING",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    # Entering the client runs the lifespan: pool created, tables created
    with TestClient(app) as client:
        yield client


@pytest.fixture
def created_test(client):
    """A two-question test; returns its id."""
    response = client.post("/api/tests", json={
        "title": "Capitals",
        "questions": [
            {"text": "Capital of France?", "answer": " Paris ", "score": 2},
            {"text": "Capital of Italy?", "answer": "ROME", "score": 3},
        ],
    })
    assert response.status_code == 200
    return response.json()["test_id"]


@pytest.fixture
def submit(client):
    def _submit(test_id, name, group, **fields):
        body = {"test_id": test_id, "student_name": name, "student_group": group}
        body.update(fields)
        return client.post("/api/results", json=body)
    return _submit
