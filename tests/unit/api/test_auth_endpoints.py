"""
Tests for authentication endpoints.

Tests:
- Registration
- Login
- Current user and admin check
"""

import pytest

from tests.helpers import API, PASSWORD, auth_headers, login, register, set_role


class TestRegister:

    def test_register_success(self, client):
        response = client.post(
            f"{API}/auth/register",
            json={"name": "Jane Doe", "email": "Jane@Example.com", "password": PASSWORD},
        )
        assert response.status_code == 201
        user = response.json()
        assert user["email"] == "jane@example.com"
        assert user["role"] == "user"
        assert user["status"] == "active"
        assert "passwordHash" not in user
        assert "createdAt" in user

    def test_register_duplicate_email(self, client):
        register(client, "jane@example.com")
        response = client.post(
            f"{API}/auth/register",
            json={"name": "Jane Again", "email": "JANE@example.com", "password": PASSWORD},
        )
        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICT"

    @pytest.mark.parametrize("payload", [
        {"name": "J", "email": "jane@example.com", "password": PASSWORD},
        {"name": "Jane", "email": "not-an-email", "password": PASSWORD},
        {"name": "Jane", "email": "jane@example.com", "password": "short"},
    ])
    def test_register_validation(self, client, payload):
        response = client.post(f"{API}/auth/register", json=payload)
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"


class TestLogin:

    def test_login_success(self, client):
        register(client, "jane@example.com", name="Jane Doe")
        data = login(client, "jane@example.com")
        assert data["tokenType"] == "bearer"
        assert data["expiresIn"] > 0
        assert data["user"]["email"] == "jane@example.com"
        assert data["accessToken"]

    def test_login_wrong_password(self, client):
        register(client, "jane@example.com")
        response = client.post(
            f"{API}/auth/login", json={"email": "jane@example.com", "password": "WrongPass123!"}
        )
        assert response.status_code == 401

    def test_login_unknown_email(self, client):
        response = client.post(
            f"{API}/auth/login", json={"email": "ghost@example.com", "password": PASSWORD}
        )
        assert response.status_code == 401

    def test_login_inactive_account(self, client, admin):
        user = register(client, "jane@example.com")
        client.patch(
            f"{API}/admin/users/{user['id']}", json={"status": "inactive"}, headers=admin["headers"]
        )
        response = client.post(
            f"{API}/auth/login", json={"email": "jane@example.com", "password": PASSWORD}
        )
        assert response.status_code == 403


class TestCurrentUser:

    def test_me(self, client, applicant):
        response = client.get(f"{API}/auth/me", headers=applicant["headers"])
        assert response.status_code == 200
        assert response.json()["id"] == applicant["id"]

    def test_me_requires_token(self, client):
        assert client.get(f"{API}/auth/me").status_code == 401

    def test_check_admin_for_applicant(self, client, applicant):
        response = client.get(f"{API}/auth/check-admin", headers=applicant["headers"])
        assert response.json() == {"isAdmin": False}

    def test_check_admin_reads_role_from_database(self, client):
        register(client, "staff@example.com")
        token = login(client, "staff@example.com")["accessToken"]
        # Token was issued while the account was still a plain user
        set_role(client, "staff@example.com", "admin")
        response = client.get(f"{API}/auth/check-admin", headers=auth_headers(token))
        assert response.json() == {"isAdmin": True}
