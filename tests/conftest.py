"""
Shared fixtures.

Each test gets its own SQLite file under tmp_path, so tests never share rows.
"""

import pytest
from fastapi.testclient import TestClient

import crud
from config import Settings
from database import Database
from main import create_app
from schemas import UserSchema


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        secret_key="test-secret",
        static_dir=str(tmp_path / "public"),
        log_level="WARNING",
    )


@pytest.fixture
def db(settings):
    database = Database(settings.database_url)
    database.create_all()
    session = database.SessionLocal()
    yield session
    session.close()
    database.dispose()


@pytest.fixture
def user(db):
    return crud.create_user(
        db,
        UserSchema(mobile="0400000000", email="ana@example.com", password="s3cret"),
    )


@pytest.fixture
def other_user(db):
    return crud.create_user(
        db,
        UserSchema(mobile="0411111111", email="ben@example.com", password="hunter2"),
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def register_and_login(client, email, password="s3cret"):
    """Register a user through the API and return (user_id, auth headers)."""
    response = client.post(
        "/api/register",
        json={"mobile": "0400000000", "email": email, "password": password},
    )
    assert response.status_code == 201
    user_id = response.json()["id"]

    response = client.post("/api/login", json={"email": email, "password": password})
    assert response.status_code == 200
    token = response.json()["access_token"]
    return user_id, {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth(client):
    return register_and_login(client, "ana@example.com")


@pytest.fixture
def other_auth(client):
    return register_and_login(client, "ben@example.com", password="hunter2")
