"""
Shared pytest fixtures for Vibeco MCP tests.

This module provides common fixtures including:
- FakeEngine: in-process protocol engine speaking just enough JSON-RPC
- ManualClock: controllable monotonic clock for session timing
- FastAPI test client utilities
"""

import os
import sys
import time
from typing import Any, Callable, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from vibeco_mcp.config import (
    HttpServerConfig,
    RateLimitConfig,
    SessionConfig,
    ShutdownConfig,
    StaticConfigProvider,
)
from vibeco_mcp.constants import MCP_SESSION_ID_HEADER
from vibeco_mcp.main import create_app


INITIALIZE_REQUEST: Dict[str, Any] = {
    "jsonrpc": "2.0",
    "id": 1,
    "method": "initialize",
    "params": {
        "protocolVersion": "2025-03-26",
        "capabilities": {},
        "clientInfo": {"name": "pytest-client", "version": "0.0.1"},
    },
}

PING_REQUEST: Dict[str, Any] = {"jsonrpc": "2.0", "id": 2, "method": "ping"}


# =============================================================================
# Fake Protocol Engine
# =============================================================================

class FakeEngine:
    """
    Protocol engine double.

    Answers every request with a JSON body carrying its session ID.
    Behaviour switches let tests simulate handshake rejection and
    failures before or after the response has started.
    """

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.on_close: Optional[Callable[[], None]] = None
        self.started = False
        self.requests: List[str] = []
        self.close_calls = 0
        self.status_code = 200
        self.start_error: Optional[Exception] = None
        self.fail_before_headers = False
        self.fail_after_headers = False
        self.close_error: Optional[Exception] = None

    @property
    def closed(self) -> bool:
        return self.close_calls > 0

    async def start(self) -> None:
        if self.start_error is not None:
            raise self.start_error
        self.started = True

    async def handle_request(self, scope, receive, send) -> None:
        request = Request(scope, receive)
        self.requests.append(request.method)

        if self.fail_before_headers:
            raise RuntimeError("engine exploded")

        if self.fail_after_headers:
            await send(
                {"type": "http.response.start", "status": 200, "headers": [(b"content-type", b"text/event-stream")]}
            )
            raise RuntimeError("stream broke")

        if request.method == "POST":
            payload = await request.json()
            request_id = payload.get("id") if isinstance(payload, dict) else None
            response: Response = JSONResponse(
                {"jsonrpc": "2.0", "id": request_id, "result": {"engine": self.session_id}},
                status_code=self.status_code,
                headers={MCP_SESSION_ID_HEADER: self.session_id},
            )
        else:
            response = JSONResponse({"method": request.method}, status_code=self.status_code)
        await response(scope, receive, send)

    async def close(self) -> None:
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error
        if self.on_close is not None:
            self.on_close()


class FakeEngineFactory:
    """Engine factory recording every engine it builds."""

    def __init__(self, configure: Optional[Callable[[FakeEngine], None]] = None):
        self.engines: List[FakeEngine] = []
        self.configure = configure

    def __call__(self, session_id: str) -> FakeEngine:
        engine = FakeEngine(session_id)
        if self.configure is not None:
            self.configure(engine)
        self.engines.append(engine)
        return engine

    def by_id(self, session_id: str) -> FakeEngine:
        return next(e for e in self.engines if e.session_id == session_id)


class ManualClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_provider(
    max_sessions: int = 10,
    idle_timeout: float = 60.0,
    sweep_interval: float = 30.0,
    max_requests: int = 1000,
    window_seconds: float = 60.0,
    grace_period: float = 1.0,
) -> StaticConfigProvider:
    """Build a static configuration provider for HTTP tests."""
    return StaticConfigProvider(
        server=HttpServerConfig(transport="http"),
        session=SessionConfig(
            max_sessions=max_sessions,
            idle_timeout=idle_timeout,
            sweep_interval=sweep_interval,
        ),
        rate_limit=RateLimitConfig(max_requests=max_requests, window_seconds=window_seconds),
        shutdown=ShutdownConfig(grace_period=grace_period),
    )


def initialize(client: TestClient) -> str:
    """Open a session and return its ID."""
    response = client.post("/mcp", json=INITIALIZE_REQUEST)
    assert response.status_code == 200
    return response.headers[MCP_SESSION_ID_HEADER]


def wait_for(predicate: Callable[[], bool], timeout: float = 1.0) -> bool:
    """Poll until a condition holds; background close tasks run on the app loop."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def clock():
    """Manual monotonic clock."""
    return ManualClock()


@pytest.fixture
def engine_factory():
    """Fake engine factory."""
    return FakeEngineFactory()


@pytest.fixture
def app(engine_factory):
    """Application wired with fake engines."""
    return create_app(make_provider(), engine_factory)


@pytest.fixture
def client(app):
    """Test client with lifespan running."""
    with TestClient(app) as test_client:
        yield test_client


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests that wait on real timers"
    )
