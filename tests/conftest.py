import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("SITE_URL", "http://localhost:3000")

import pytest
from fastapi.testclient import TestClient

from contacts_app import db, models
from contacts_app.main import app


@pytest.fixture(autouse=True)
def fresh_db():
    models.Base.metadata.drop_all(bind=db.engine)
    models.Base.metadata.create_all(bind=db.engine)
    yield


@pytest.fixture
def db_session():
    session = db.SessionLocal()
    yield session
    session.close()


@pytest.fixture
def client():
    return TestClient(app)


def signup_and_login(client, email="user@example.com", password="password"):
    client.post("/auth/signup", json={"email": email, "password": password})
    response = client.post("/auth/token", json={"email": email, "password": password})
    body = response.json()
    return body["user"]["id"], {"Authorization": f"Bearer {body['access_token']}"}


@pytest.fixture
def user_headers(client):
    return signup_and_login(client)


@pytest.fixture
def login(client):
    def _login(email, password="password"):
        return signup_and_login(client, email, password)

    return _login
