"""
Tests for authentication middleware.

Tests:
- Token validation from Authorization header
- Public endpoint and read-only prefix exemptions
- Expired and invalid tokens
"""

import pytest
from datetime import timedelta
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from core.middleware.authentication import AuthenticationMiddleware, get_current_session
from core.security import create_access_token

SECRET = "middleware-test-secret-key-long-enough"


@pytest.fixture
def app():
    app = FastAPI()
    app.add_middleware(AuthenticationMiddleware, jwt_secret=SECRET)

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    @app.get("/api/v1/vacancies")
    async def vacancies(request: Request):
        return {"session": get_current_session(request)}

    @app.post("/api/v1/vacancies")
    async def post_vacancies():
        return {"ok": True}

    @app.get("/api/v1/applications")
    async def protected(request: Request):
        return {"session": get_current_session(request)}

    return app


@pytest.fixture
def client(app):
    return TestClient(app)


def bearer(claims: dict, **kwargs) -> dict:
    return {"Authorization": f"Bearer {create_access_token(claims, SECRET, **kwargs)}"}


class TestPublicEndpoints:

    def test_health_is_public(self, client):
        assert client.get("/health").status_code == 200

    def test_vacancy_reads_are_public(self, client):
        response = client.get("/api/v1/vacancies")
        assert response.status_code == 200
        assert response.json()["session"] is None

    def test_vacancy_writes_need_a_token(self, client):
        assert client.post("/api/v1/vacancies").status_code == 401


class TestProtectedEndpoints:

    def test_missing_token(self, client):
        response = client.get("/api/v1/applications")
        assert response.status_code == 401
        body = response.json()
        assert body["code"] == "UNAUTHORIZED"
        assert body["path"] == "/api/v1/applications"
        assert response.headers["www-authenticate"] == "Bearer"

    def test_valid_token_sets_session(self, client):
        response = client.get("/api/v1/applications", headers=bearer({"sub": "u-1"}))
        assert response.status_code == 200
        assert response.json()["session"]["sub"] == "u-1"

    def test_session_shape_is_passed_through(self, client):
        claims = {"user": {"email": "jane@example.com"}}
        response = client.get("/api/v1/applications", headers=bearer(claims))
        assert response.json()["session"]["user"] == {"email": "jane@example.com"}

    def test_expired_token(self, client):
        headers = bearer({"sub": "u-1"}, expires_delta=timedelta(seconds=-5))
        response = client.get("/api/v1/applications", headers=headers)
        assert response.status_code == 401
        assert response.json()["code"] == "TOKEN_EXPIRED"

    def test_wrong_signature(self, client):
        token = create_access_token({"sub": "u-1"}, "some-other-secret-key-long-enough")
        response = client.get("/api/v1/applications", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    @pytest.mark.parametrize("header", ["Basic abc", "Bearer", "token"])
    def test_malformed_header(self, client, header):
        response = client.get("/api/v1/applications", headers={"Authorization": header})
        assert response.status_code == 401

    def test_options_skips_authentication(self, client):
        # No OPTIONS route is defined, but the middleware must not answer 401
        assert client.options("/api/v1/applications").status_code != 401


class TestApiPrefix:

    @pytest.fixture
    def prefixed_client(self):
        app = FastAPI()
        app.add_middleware(AuthenticationMiddleware, jwt_secret=SECRET, api_prefix="/api/v2/")

        @app.get("/api/v2/vacancies")
        async def vacancies():
            return {"ok": True}

        @app.post("/api/v2/auth/login")
        async def login():
            return {"ok": True}

        @app.get("/api/v1/vacancies")
        async def old_vacancies():
            return {"ok": True}

        @app.get("/api/v2/applications")
        async def applications(request: Request):
            return {"keys": sorted(k for k in ("session", "jwt_payload") if k in request.scope)}

        return TestClient(app)

    def test_public_routes_follow_prefix(self, prefixed_client):
        assert prefixed_client.get("/api/v2/vacancies").status_code == 200
        assert prefixed_client.post("/api/v2/auth/login").status_code == 200

    def test_other_prefix_is_protected(self, prefixed_client):
        assert prefixed_client.get("/api/v1/vacancies").status_code == 401

    def test_claims_only_on_session(self, prefixed_client):
        response = prefixed_client.get("/api/v2/applications", headers=bearer({"sub": "u-1"}))
        assert response.json()["keys"] == ["session"]
