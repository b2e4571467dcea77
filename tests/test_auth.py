"""Tests for authentication endpoints."""
from fastapi.testclient import TestClient

from conftest import ADMIN_EMAIL, USER_PASSWORD, login_headers, register_user


def test_register_user(client: TestClient):
    """Test user registration."""
    response = client.post(
        "/api/v1/auth/register",
        json={
            "email": "newuser@example.com",
            "username": "newuser",
            "password": USER_PASSWORD,
            "name": "New User",
        }
    )

    assert response.status_code == 201
    data = response.json()
    assert data["session_token"]
    assert data["token"]
    assert data["user"]["email"] == "newuser@example.com"
    assert data["user"]["role"] == "USER"
    assert "session_token" in response.cookies


def test_register_duplicate_email(client: TestClient, user_headers):
    """Test registration with duplicate email."""
    response = client.post(
        "/api/v1/auth/register",
        json={
            "email": "newuser@example.com",
            "username": "someoneelse",
            "password": USER_PASSWORD,
        }
    )

    assert response.status_code == 409
    assert "already exists" in response.json()["error"]


def test_register_duplicate_username(client: TestClient, user_headers):
    response = client.post(
        "/api/v1/auth/register",
        json={
            "email": "other@example.com",
            "username": "newuser",
            "password": USER_PASSWORD,
        }
    )

    assert response.status_code == 409
    assert response.json()["error_code"] == "CONFLICT_ERROR"


def test_register_weak_password(client: TestClient):
    response = client.post(
        "/api/v1/auth/register",
        json={
            "email": "weak@example.com",
            "username": "weakling",
            "password": "alllowercase",
        }
    )

    assert response.status_code == 422
    errors = response.json()["details"]["errors"]
    assert len(errors) == 3


def test_login_success(client: TestClient, user_headers):
    """Test successful login."""
    response = client.post(
        "/api/v1/auth/login",
        json={
            "email": "newuser@example.com",
            "password": USER_PASSWORD
        }
    )

    assert response.status_code == 200
    data = response.json()
    assert data["session_token"]
    assert data["token"]
    assert data["user"]["username"] == "newuser"


def test_login_wrong_password(client: TestClient, user_headers):
    """Test login with wrong password."""
    response = client.post(
        "/api/v1/auth/login",
        json={
            "email": "newuser@example.com",
            "password": "Wrongpassword1!"
        }
    )

    assert response.status_code == 401
    assert response.json()["error_code"] == "INVALID_CREDENTIALS"


def test_login_nonexistent_user(client: TestClient):
    """Unknown email is answered exactly like a wrong password."""
    response = client.post(
        "/api/v1/auth/login",
        json={
            "email": "nonexistent@example.com",
            "password": USER_PASSWORD
        }
    )

    assert response.status_code == 401
    assert response.json()["error_code"] == "INVALID_CREDENTIALS"


def test_get_current_user(client: TestClient, user_headers):
    """Test getting current user info."""
    response = client.get("/api/v1/auth/me", headers=user_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["email"] == "newuser@example.com"
    assert data["role"] == "USER"


def test_get_current_user_with_cookie(client: TestClient):
    client.post(
        "/api/v1/auth/register",
        json={
            "email": "cookie@example.com",
            "username": "cookieuser",
            "password": USER_PASSWORD,
        }
    )

    response = client.get("/api/v1/auth/me")

    assert response.status_code == 200
    assert response.json()["username"] == "cookieuser"


def test_get_current_user_unauthorized(client: TestClient):
    """Test getting current user without auth."""
    response = client.get("/api/v1/auth/me")

    assert response.status_code == 401
    assert response.json()["error_code"] == "AUTHENTICATION_ERROR"


def test_get_current_user_bad_token(client: TestClient):
    response = client.get(
        "/api/v1/auth/me",
        headers={"Authorization": "Bearer not-a-session"}
    )

    assert response.status_code == 401


def test_logout_invalidates_session(client: TestClient, user_headers):
    response = client.post("/api/v1/auth/logout", headers=user_headers)
    assert response.status_code == 200
    assert response.json()["success"] is True

    response = client.get("/api/v1/auth/me", headers=user_headers)
    assert response.status_code == 401


def test_logout_without_session_is_noop(client: TestClient):
    response = client.post("/api/v1/auth/logout")

    assert response.status_code == 200


def test_update_profile(client: TestClient, user_headers):
    response = client.patch(
        "/api/v1/auth/me",
        headers=user_headers,
        json={"name": "<b>Neo</b>", "bio": "Hello"}
    )

    assert response.status_code == 200
    assert response.json()["name"] == "bNeo/b"
    assert response.json()["bio"] == "Hello"


def test_change_password(client: TestClient, user_headers):
    """Test changing password."""
    response = client.post(
        "/api/v1/auth/change-password",
        headers=user_headers,
        json={
            "current_password": USER_PASSWORD,
            "new_password": "N3w!Password"
        }
    )

    assert response.status_code == 200
    assert response.json()["success"] is True
    login_headers(client, "newuser@example.com", "N3w!Password")


def test_change_password_wrong_current(client: TestClient, user_headers):
    """Test changing password with wrong current password."""
    response = client.post(
        "/api/v1/auth/change-password",
        headers=user_headers,
        json={
            "current_password": "Wrongpassword1!",
            "new_password": "N3w!Password"
        }
    )

    assert response.status_code == 401


def test_password_reset_flow(client: TestClient, user_headers):
    response = client.post(
        "/api/v1/auth/password-reset/request",
        json={"email": "newuser@example.com"}
    )
    assert response.status_code == 200
    token = response.json()["data"]["token"]

    response = client.post(
        "/api/v1/auth/password-reset/confirm",
        json={"token": token, "new_password": "R3set!Password"}
    )
    assert response.status_code == 200

    # Token is single use
    response = client.post(
        "/api/v1/auth/password-reset/confirm",
        json={"token": token, "new_password": "An0ther!Password"}
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "INVALID_RESET_TOKEN"

    # Sessions opened before the reset are gone
    assert client.get("/api/v1/auth/me", headers=user_headers).status_code == 401
    login_headers(client, "newuser@example.com", "R3set!Password")


def test_password_reset_unknown_email_does_not_leak(client: TestClient):
    response = client.post(
        "/api/v1/auth/password-reset/request",
        json={"email": "ghost@example.com"}
    )

    assert response.status_code == 200
    assert response.json()["data"] is None


def test_admin_bootstrapped(client: TestClient, admin_headers):
    response = client.get("/api/v1/auth/me", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["email"] == ADMIN_EMAIL
    assert response.json()["role"] == "ADMIN"


def test_security_headers_present(client: TestClient):
    response = client.get("/health")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert "frame-ancestors 'none'" in response.headers["Content-Security-Policy"]
    assert "X-Request-ID" in response.headers


def test_register_helper_creates_distinct_sessions(client: TestClient):
    first = register_user(client, "a@example.com", "alpha")
    second = register_user(client, "b@example.com", "bravo")

    assert client.get("/api/v1/auth/me", headers=first).json()["username"] == "alpha"
    assert client.get("/api/v1/auth/me", headers=second).json()["username"] == "bravo"


def test_bearer_wins_over_stale_cookie(client: TestClient, user_headers):
    response = client.get(
        "/api/v1/auth/me",
        headers={**user_headers, "Cookie": "session_token=stale-token"}
    )

    assert response.status_code == 200
    assert response.json()["username"] == "newuser"


def test_request_validation_lists_every_error(client: TestClient):
    response = client.post(
        "/api/v1/auth/register",
        json={"email": "bad", "username": "ab", "password": "x"}
    )

    assert response.status_code == 422
    data = response.json()
    assert data["error_code"] == "VALIDATION_ERROR"
    assert "timestamp" in data
    fields = [error.split(":")[0] for error in data["details"]["errors"]]
    assert fields == ["email", "username", "password"]


def test_query_validation_uses_error_shape(client: TestClient):
    response = client.get("/api/v1/posts", params={"page": 0})

    assert response.status_code == 422
    data = response.json()
    assert data["error_code"] == "VALIDATION_ERROR"
    assert data["details"]["errors"][0].startswith("page:")
