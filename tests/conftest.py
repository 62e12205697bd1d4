"""Shared fixtures and utilities for tests."""

import os
import tempfile

# Settings are read at import time, so the environment is prepared first
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-min-32-chars-long-for-security")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("ACCESS_TOKEN_EXPIRE_MINUTES", "60")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="recruitment-uploads-"))
os.environ.setdefault("JSON_LOGS", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from tests.helpers import auth_headers, create_vacancy, login, register, set_role


@pytest.fixture
def client():
    """
    Test client with a fresh in-memory database.

    The lifespan creates the tables on enter and disposes the engine on exit,
    which discards the database.
    """
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


def _account(client, email: str, name: str) -> dict:
    user = register(client, email, name=name)
    token = login(client, email)["accessToken"]
    return {"id": user["id"], "email": user["email"], "headers": auth_headers(token)}


@pytest.fixture
def applicant(client):
    """A registered applicant: ``{"id", "email", "headers"}``."""
    return _account(client, "applicant@example.com", "Jane Applicant")


@pytest.fixture
def other_applicant(client):
    return _account(client, "other@example.com", "Other Applicant")


@pytest.fixture
def admin(client):
    account = _account(client, "admin@example.com", "Recruitment Admin")
    # Roles are read from the database on every request
    set_role(client, "admin@example.com", "admin")
    return account


@pytest.fixture
def vacancy(client, admin):
    """An active vacancy."""
    return create_vacancy(client, admin["headers"])
