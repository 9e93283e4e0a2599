import os

# must be set before ecoquiz.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["TIMEZONE"] = "UTC"
os.environ["ADMIN_EMAIL"] = ""
os.environ["ADMIN_PASSWORD"] = ""

import pytest
from fastapi.testclient import TestClient

from ecoquiz.database import Base, SessionLocal, engine
from ecoquiz.main import app
from ecoquiz.utils.auth import create_user

from helpers import ADMIN_EMAIL, ADMIN_PASSWORD


@pytest.fixture(autouse=True)
def _tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def admin_headers(db, client):
    create_user(db, ADMIN_EMAIL, ADMIN_PASSWORD, role="admin")
    resp = client.post("/api/auth/token", data={"username": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}
