import os
import tempfile

# Settings are read at import time, so point them at a scratch area first
_tmp = tempfile.mkdtemp(prefix="homeease-test-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_tmp, 'test.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_tmp, "uploads")

import pytest
from fastapi.testclient import TestClient

from homeease.core.config import settings
from homeease.main import app
from tests.utils import auth_headers, signup_and_login


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def customer(client):
    return signup_and_login(client, "customer")


@pytest.fixture
def provider(client):
    return signup_and_login(client, "provider")


@pytest.fixture
def admin_headers(client):
    resp = client.post(
        "/api/auth/admin/signin",
        json={"email": settings.ADMIN_EMAIL, "password": settings.ADMIN_PASSWORD},
    )
    assert resp.status_code == 200, resp.text
    return auth_headers(resp.json()["token"])
