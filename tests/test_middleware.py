"""Tests for the security middleware chain."""

import os
import sys

import pytest
from fastapi.testclient import TestClient

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from conftest import INITIALIZE_REQUEST, FakeEngineFactory, make_provider
from vibeco_mcp.main import create_app
from vibeco_mcp.modules.middleware import (
    CorsMiddleware,
    FixedWindowRateLimiter,
    NO_CACHE_HEADERS,
)

ORIGIN = "https://app.example.com"


class TestRateLimiter:
    """Fixed-window limiter with a manual clock."""

    def test_admits_up_to_ceiling(self, clock):
        limiter = FixedWindowRateLimiter(3, 60, clock=clock)

        states = [limiter.hit("client") for _ in range(4)]

        assert [s.allowed for s in states] == [True, True, True, False]
        assert [s.remaining for s in states] == [2, 1, 0, 0]
        assert states[0].limit == 3
        assert states[0].reset_seconds == 60

    def test_window_resets(self, clock):
        limiter = FixedWindowRateLimiter(1, 60, clock=clock)
        limiter.hit("client")
        assert not limiter.hit("client").allowed

        clock.advance(60)

        assert limiter.hit("client").allowed

    def test_keys_are_independent(self, clock):
        limiter = FixedWindowRateLimiter(1, 60, clock=clock)

        assert limiter.hit("a").allowed
        assert limiter.hit("b").allowed
        assert not limiter.hit("a").allowed

    def test_reset_seconds_counts_down(self, clock):
        limiter = FixedWindowRateLimiter(5, 60, clock=clock)
        limiter.hit("client")
        clock.advance(20.5)

        assert limiter.hit("client").reset_seconds == 40

    def test_expired_windows_are_pruned(self, clock):
        limiter = FixedWindowRateLimiter(5, 10, clock=clock)
        limiter.hit("old")
        clock.advance(11)
        limiter.hit("new")

        assert set(limiter._windows) == {"new"}


class TestRateLimitMiddleware:
    """Rate limiting on the protocol path."""

    @pytest.fixture
    def limited_client(self):
        app = create_app(make_provider(max_requests=2), FakeEngineFactory())
        with TestClient(app) as client:
            yield client

    def test_rejects_over_ceiling(self, limited_client):
        for remaining in ("1", "0"):
            response = limited_client.post("/mcp", json=INITIALIZE_REQUEST)
            assert response.status_code == 200
            assert response.headers["RateLimit-Limit"] == "2"
            assert response.headers["RateLimit-Remaining"] == remaining

        response = limited_client.post("/mcp", json=INITIALIZE_REQUEST)

        assert response.status_code == 429
        assert response.json() == {"error": "Too many requests, please try again later"}
        assert response.headers["RateLimit-Remaining"] == "0"
        assert "RateLimit-Reset" in response.headers
        # Cache suppression still applies to rejected protocol responses
        assert response.headers["Cache-Control"] == NO_CACHE_HEADERS["Cache-Control"]

    def test_health_is_not_limited(self, limited_client):
        for _ in range(5):
            response = limited_client.get("/health")
            assert response.status_code == 200
            assert "RateLimit-Limit" not in response.headers


class TestCors:
    """Cross-origin policy."""

    def test_same_origin_request_gets_no_cors_headers(self, client):
        response = client.post("/mcp", json=INITIALIZE_REQUEST)

        assert response.status_code == 200
        assert "access-control-allow-origin" not in response.headers

    def test_allowed_path_gets_cors_headers(self, client):
        response = client.post("/mcp", json=INITIALIZE_REQUEST, headers={"Origin": ORIGIN})

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == ORIGIN
        assert response.headers["access-control-allow-methods"] == "GET, POST, DELETE, OPTIONS"
        assert response.headers["access-control-allow-headers"] == "Content-Type, mcp-session-id"
        assert response.headers["access-control-expose-headers"] == "mcp-session-id"
        assert response.headers["access-control-max-age"] == "86400"

    def test_preflight_bypasses_dispatch(self, client, engine_factory):
        response = client.options(
            "/mcp",
            headers={"Origin": ORIGIN, "Access-Control-Request-Method": "POST"},
        )

        assert response.status_code == 204
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == ORIGIN
        assert engine_factory.engines == []

    @pytest.mark.parametrize("path", ["/mcp-admin", "/health", "/mcpx"])
    def test_other_paths_are_forbidden(self, client, path):
        response = client.get(path, headers={"Origin": ORIGIN})

        assert response.status_code == 403
        assert response.json() == {"error": "Cross-origin requests not allowed"}
        assert "access-control-allow-origin" not in response.headers

    def test_malformed_origin_is_forbidden(self, client, engine_factory):
        response = client.post(
            "/mcp", json=INITIALIZE_REQUEST, headers={"Origin": "not an origin"}
        )

        assert response.status_code == 403
        assert engine_factory.engines == []

    @pytest.mark.parametrize(
        "origin,expected",
        [
            ("https://example.com", True),
            ("http://localhost:3000", True),
            ("null", True),
            ("https://example.com/path", False),
            ("example.com", False),
            ("garbage", False),
        ],
    )
    def test_origin_shape(self, origin, expected):
        assert CorsMiddleware.is_well_formed_origin(origin) is expected


class TestResponseHeaders:
    """Cache suppression and security headers."""

    def test_no_cache_on_protocol_errors(self, client):
        response = client.post("/mcp", json={"jsonrpc": "2.0", "id": 1, "method": "ping"})

        assert response.status_code == 400
        for name, value in NO_CACHE_HEADERS.items():
            assert response.headers[name] == value

    def test_no_cache_not_applied_to_health(self, client):
        response = client.get("/health")
        assert "pragma" not in response.headers

    @pytest.mark.parametrize("path", ["/health", "/mcp"])
    def test_security_headers_everywhere(self, client, path):
        response = client.get(path)

        csp = response.headers["content-security-policy"]
        assert "script-src 'none'" in csp
        assert "object-src 'none'" in csp
        assert "frame-ancestors 'none'" in csp
        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["x-frame-options"] == "SAMEORIGIN"
        assert response.headers["referrer-policy"] == "no-referrer"
