"""
Shared fixtures: an in-memory SQLite database behind the API client.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from junket.db.session import get_db, init_db
from junket.main import app


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    init_db(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    try:
        yield TestingSessionLocal
    finally:
        engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        db = db_session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def login(client, username, password):
    response = client.post("/api/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def admin_headers(client):
    """The first account created becomes the admin."""
    response = client.post(
        "/api/auth/signup",
        json={"username": "admin", "email": "admin@example.com", "password": "adminpassword"}
    )
    assert response.status_code == 201
    return login(client, "admin", "adminpassword")


@pytest.fixture
def make_user(client, admin_headers):
    """Create an account with the given role and return its auth headers."""
    def _make_user(username, role, **links):
        response = client.post(
            "/api/auth/signup",
            json={
                "username": username,
                "email": f"{username}@example.com",
                "password": "password123",
                "role": role,
                **links
            },
            headers=admin_headers
        )
        assert response.status_code == 201
        return login(client, username, "password123")
    return _make_user
