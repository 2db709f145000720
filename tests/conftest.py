from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from stall_passport.config import Settings
from stall_passport.main import create_app

ADMIN_KEY = "test-admin-key"
REGISTERED = ["ann@x.com", "bob@x.com", "cat@x.com", "dan@x.com"]


@pytest.fixture
def allowlist_file(tmp_path: Path) -> Path:
    path = tmp_path / "registered_emails.txt"
    path.write_text("email\n" + "\n".join(REGISTERED) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def settings(allowlist_file: Path) -> Settings:
    return Settings(
        jwt_secret="test-secret",
        admin_key=ADMIN_KEY,
        allowlist_source=str(allowlist_file),
        bcrypt_rounds=4,
    )


@pytest.fixture
def app(settings: Settings):
    return create_app(settings)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def signup(client: TestClient):
    def _signup(name: str, email: str, password: str = "password123") -> str:
        res = client.post("/api/signup", json={"name": name, "email": email, "password": password})
        assert res.status_code == 200, res.text
        return res.json()["token"]

    return _signup
