"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any application import so the global
settings object is built for the test profile (in-memory SQLite, fixed JWT
secret, plain logs).
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENVIRONMENT"] = "test"
os.environ["DB_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret-key-with-at-least-32-chars"
os.environ.setdefault("LOG_FORMAT", "plain")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Callable, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.app_factory import create_app
from app.core.auth import create_test_token
from app.core.config import Settings

TEST_JWT_SECRET = os.environ["JWT_SECRET"]


@pytest.fixture
def test_settings() -> Settings:
    return Settings()


@pytest.fixture
def app(test_settings: Settings) -> FastAPI:
    """A fresh application with its own in-memory database and limiter."""
    return create_app(test_settings)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """Test client with the lifespan running (schema created, sweeper started)."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_token() -> Callable[[int], str]:
    def _make(user_id: int) -> str:
        return create_test_token(user_id, TEST_JWT_SECRET)

    return _make


@pytest.fixture
def auth_headers(make_token: Callable[[int], str]) -> Callable[[int], dict]:
    """Build an Authorization header for ``user_id``."""

    def _headers(user_id: int) -> dict:
        return {"Authorization": f"Bearer {make_token(user_id)}"}

    return _headers
