import os

# Settings are read once at import time, so configure the environment first.
# An empty value also keeps load_dotenv() from filling it in from a local .env
os.environ["DATABASE_URL"] = ""
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret"

import mongomock  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import database  # noqa: E402
from config import get_settings  # noqa: E402
from main import app  # noqa: E402


@pytest.fixture
def db():
    mongo = mongomock.MongoClient()["testdb"]
    database.set_db(mongo)
    yield mongo
    database.set_db(None)


@pytest.fixture
def settings(tmp_path, monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "upload_dir", tmp_path / "uploads")
    return settings


@pytest.fixture
def client(db, settings):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def bare_client(settings):
    """Client with no database configured."""
    database.set_db(None)
    with TestClient(app) as c:
        yield c


def signup(client, email="alice@example.com", password="s3cret-pass", name="Alice"):
    resp = client.post("/auth/signup", json={"name": name, "email": email, "password": password})
    assert resp.status_code == 201, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
def alice(client):
    return signup(client)


@pytest.fixture
def bob(client):
    return signup(client, email="bob@example.com", name="Bob")
