"""
Tests for authentication endpoints.
"""


def test_first_signup_becomes_admin(client):
    """The very first account is the admin."""
    response = client.post(
        "/api/auth/signup",
        json={
            "username": "testuser",
            "email": "test@example.com",
            "password": "testpassword123",
            "role": "staff"
        }
    )
    assert response.status_code == 201
    assert response.json()["role"] == "admin"


def test_signup_requires_admin_after_bootstrap(client, admin_headers):
    response = client.post(
        "/api/auth/signup",
        json={"username": "intruder", "email": "intruder@example.com", "password": "password123"}
    )
    assert response.status_code == 403


def test_admin_creates_staff_account(client, admin_headers):
    response = client.post(
        "/api/auth/signup",
        json={"username": "cashier", "email": "cashier@example.com", "password": "password123", "role": "staff"},
        headers=admin_headers
    )
    assert response.status_code == 201
    assert response.json()["role"] == "staff"


def test_duplicate_username_rejected(client, admin_headers):
    response = client.post(
        "/api/auth/signup",
        json={"username": "admin", "email": "other@example.com", "password": "password123"},
        headers=admin_headers
    )
    assert response.status_code == 400


def test_login(client, admin_headers):
    """Test user login."""
    response = client.post(
        "/api/auth/login",
        json={"username": "admin", "password": "adminpassword"}
    )
    assert response.status_code == 200
    assert "access_token" in response.json()
    assert response.json()["role"] == "admin"


def test_login_invalid_credentials(client):
    """Test login with invalid credentials."""
    response = client.post(
        "/api/auth/login",
        json={
            "username": "nonexistent",
            "password": "wrongpassword"
        }
    )
    assert response.status_code == 401


def test_me_requires_token(client):
    assert client.get("/api/users/me").status_code == 401


def test_me_returns_current_user(client, admin_headers):
    response = client.get("/api/users/me", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["username"] == "admin"


def test_staff_cannot_list_users(client, make_user):
    headers = make_user("floor", "staff")
    assert client.get("/api/users", headers=headers).status_code == 403


def test_invalid_token_rejected(client):
    response = client.get("/api/users/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_create_initial_admin_is_idempotent(db_session):
    from junket.db.init_db import create_initial_admin

    db = db_session()
    try:
        first = create_initial_admin(db, "root", "rootpassword", "root@example.com")
        second = create_initial_admin(db, "root", "other", "root@example.com")
        assert first.id == second.id
        assert first.role.value == "admin"
    finally:
        db.close()
