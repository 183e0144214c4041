from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure the project root is on sys.path so `import crm_api.*` works in tests.
ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

from crm_api.app.core.config import Settings  # noqa: E402
from crm_api.app.main import create_app  # noqa: E402


TEST_SECRET = "super-secret-for-tests"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        db_storage=str(tmp_path / "crm_db.test.sqlite"),
        jwt_secret=TEST_SECRET,
        token_ttl_seconds=15 * 60,
        hash_iterations=1_000,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def register_and_login(client):
    """Register an employee, log in and return ``(token, employee)``."""

    def _register_and_login(**overrides):
        payload = {
            "name": "Casey Counselor",
            "email": "casey@example.com",
            "password": "example-password",
            **overrides,
        }
        r = client.post("/api/employees/register", json=payload)
        assert r.status_code == 201, r.text
        r = client.post(
            "/api/employees/login",
            json={"email": payload["email"], "password": payload["password"]},
        )
        assert r.status_code == 200, r.text
        body = r.json()
        return body["token"], body["employee"]

    return _register_and_login


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
