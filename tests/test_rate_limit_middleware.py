"""Tests for the application-wide rate limit middleware."""

from unittest.mock import Mock

from fastapi import FastAPI
import pytest
from fastapi.testclient import TestClient

from app.adapters.rate_limit import LimiterRegistry
from app.core.rate_limit import RATE_LIMIT_MESSAGE

MS = 1_000_000


def _frozen_registry(app: FastAPI, **kwargs) -> Mock:
    clock = Mock(return_value=0)
    app.state.limiter_registry = LimiterRegistry(clock=clock, **kwargs)
    return clock


def test_registry_is_per_application(app: FastAPI) -> None:
    assert isinstance(app.state.limiter_registry, LimiterRegistry)
    assert app.state.limiter_sweeper.running is False


def test_sweeper_runs_with_lifespan(app: FastAPI) -> None:
    with TestClient(app):
        assert app.state.limiter_sweeper.running is True
    assert app.state.limiter_sweeper.running is False


def test_burst_of_100_then_429(client: TestClient, app: FastAPI) -> None:
    _frozen_registry(app)

    statuses = [client.get("/health").status_code for _ in range(100)]
    assert statuses == [200] * 100

    resp = client.get("/health")
    assert resp.status_code == 429
    assert resp.json() == {"error": RATE_LIMIT_MESSAGE}


def test_refill_after_interval(client: TestClient, app: FastAPI) -> None:
    clock = _frozen_registry(app, capacity=1)

    assert client.get("/health").status_code == 200
    assert client.get("/health").status_code == 429

    clock.return_value = 100 * MS
    assert client.get("/health").status_code == 200


def test_rate_limit_runs_before_auth(client: TestClient, app: FastAPI) -> None:
    _frozen_registry(app, capacity=1)
    client.get("/health")

    resp = client.post("/api/articles", json={"title": "t", "content": "c"})

    assert resp.status_code == 429


def test_limited_client_is_keyed_by_address(client: TestClient, app: FastAPI) -> None:
    _frozen_registry(app, capacity=1)

    client.get("/health")

    assert "testclient" in app.state.limiter_registry


def _exhaust(client: TestClient, app: FastAPI) -> None:
    _frozen_registry(app, capacity=1)
    assert client.get("/health").status_code == 200


def test_malformed_json_is_limited(client: TestClient, app: FastAPI) -> None:
    _exhaust(client, app)

    resp = client.post(
        "/api/articles",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 429
    assert resp.json() == {"error": RATE_LIMIT_MESSAGE}


def test_malformed_json_consumes_tokens(client: TestClient, app: FastAPI) -> None:
    _frozen_registry(app, capacity=2)

    statuses = [
        client.post(
            "/api/articles",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        ).status_code
        for _ in range(4)
    ]

    assert statuses[2:] == [429, 429]
    assert "testclient" in app.state.limiter_registry


@pytest.mark.parametrize(
    "method, path",
    [
        ("GET", "/nope"),
        ("PATCH", "/api/articles/1"),
        ("GET", "/openapi.json"),
        ("GET", "/docs"),
    ],
)
def test_unrouted_and_docs_requests_are_limited(
    client: TestClient, app: FastAPI, method: str, path: str
) -> None:
    _exhaust(client, app)

    resp = client.request(method, path)

    assert resp.status_code == 429
    assert resp.json() == {"error": RATE_LIMIT_MESSAGE}


def test_preflight_is_limited(client: TestClient, app: FastAPI) -> None:
    _exhaust(client, app)

    resp = client.options(
        "/api/articles",
        headers={
            "Origin": "http://example.com",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert resp.status_code == 429


def test_limited_response_keeps_request_id(client: TestClient, app: FastAPI) -> None:
    _exhaust(client, app)

    resp = client.get("/health", headers={"X-Request-ID": "req-429"})

    assert resp.status_code == 429
    assert resp.headers["X-Request-ID"] == "req-429"
