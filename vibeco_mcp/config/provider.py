"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from ..constants import (
    DEFAULT_MAX_SESSIONS,
    DEFAULT_RATE_LIMIT_MAX,
    DEFAULT_RATE_LIMIT_WINDOW,
    DEFAULT_SERVER_HOST,
    DEFAULT_SERVER_PORT,
    DEFAULT_SESSION_CLEANUP_INTERVAL,
    DEFAULT_SESSION_IDLE_TIMEOUT,
    DEFAULT_SHUTDOWN_GRACE,
    MCP_ENDPOINT,
)

TRANSPORTS = ("stdio", "http")


@dataclass
class HttpServerConfig:
    """HTTP server configuration."""
    host: str = DEFAULT_SERVER_HOST
    port: int = DEFAULT_SERVER_PORT
    transport: str = "stdio"
    json_response: bool = False
    log_level: str = "INFO"

    def __post_init__(self):
        if self.transport not in TRANSPORTS:
            raise ValueError(
                f"Unsupported transport '{self.transport}', expected one of {', '.join(TRANSPORTS)}"
            )
        if not 0 < self.port < 65536:
            raise ValueError(f"Port out of range: {self.port}")


@dataclass
class SessionConfig:
    """Session capacity and idle expiry configuration."""
    max_sessions: int = DEFAULT_MAX_SESSIONS
    idle_timeout: float = DEFAULT_SESSION_IDLE_TIMEOUT
    sweep_interval: float = DEFAULT_SESSION_CLEANUP_INTERVAL

    def __post_init__(self):
        if self.max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        if self.idle_timeout <= 0 or self.sweep_interval <= 0:
            raise ValueError("idle_timeout and sweep_interval must be positive")


@dataclass
class RateLimitConfig:
    """Rate limiting configuration for the protocol endpoint."""
    max_requests: int = DEFAULT_RATE_LIMIT_MAX
    window_seconds: float = DEFAULT_RATE_LIMIT_WINDOW

    def __post_init__(self):
        if self.max_requests < 1 or self.window_seconds <= 0:
            raise ValueError("Rate limit ceiling and window must be positive")


@dataclass
class CorsConfig:
    """Paths allowed to receive cross-origin headers."""
    allowed_paths: List[str] = field(default_factory=lambda: [MCP_ENDPOINT])


@dataclass
class ShutdownConfig:
    """Shutdown configuration."""
    grace_period: float = DEFAULT_SHUTDOWN_GRACE


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_server_config(self) -> HttpServerConfig:
        """Get HTTP server configuration."""
        ...

    def get_session_config(self) -> SessionConfig:
        """Get session management configuration."""
        ...

    def get_rate_limit_config(self) -> RateLimitConfig:
        """Get rate limiting configuration."""
        ...

    def get_cors_config(self) -> CorsConfig:
        """Get CORS configuration."""
        ...

    def get_shutdown_config(self) -> ShutdownConfig:
        """Get shutdown configuration."""
        ...


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got '{raw}'") from None


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_server_config(self) -> HttpServerConfig:
        """Get HTTP server configuration from environment variables."""
        return HttpServerConfig(
            host=os.getenv("MCP_SERVER_HOST", DEFAULT_SERVER_HOST),
            port=_env_int("MCP_SERVER_PORT", DEFAULT_SERVER_PORT),
            transport=os.getenv("MCP_TRANSPORT", "stdio").lower(),
            json_response=_env_bool("MCP_JSON_RESPONSE"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def get_session_config(self) -> SessionConfig:
        """Get session configuration from environment variables."""
        return SessionConfig(
            max_sessions=_env_int("MCP_MAX_SESSIONS", DEFAULT_MAX_SESSIONS),
            idle_timeout=_env_float("MCP_SESSION_IDLE_TIMEOUT", DEFAULT_SESSION_IDLE_TIMEOUT),
            sweep_interval=_env_float(
                "MCP_SESSION_CLEANUP_INTERVAL", DEFAULT_SESSION_CLEANUP_INTERVAL
            ),
        )

    def get_rate_limit_config(self) -> RateLimitConfig:
        """Get rate limiting configuration from environment variables."""
        return RateLimitConfig(
            max_requests=_env_int("MCP_RATE_LIMIT_MAX", DEFAULT_RATE_LIMIT_MAX),
            window_seconds=_env_float("MCP_RATE_LIMIT_WINDOW", DEFAULT_RATE_LIMIT_WINDOW),
        )

    def get_cors_config(self) -> CorsConfig:
        """Get CORS configuration from environment variables."""
        raw: Optional[str] = os.getenv("MCP_CORS_ALLOWED_PATHS")
        if not raw:
            return CorsConfig()
        return CorsConfig(allowed_paths=[p.strip() for p in raw.split(",") if p.strip()])

    def get_shutdown_config(self) -> ShutdownConfig:
        """Get shutdown configuration from environment variables."""
        return ShutdownConfig(grace_period=_env_float("MCP_SHUTDOWN_GRACE", DEFAULT_SHUTDOWN_GRACE))


@dataclass
class StaticConfigProvider:
    """Configuration provider holding fixed values (tests, embedding)."""
    server: HttpServerConfig = field(default_factory=HttpServerConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    cors: CorsConfig = field(default_factory=CorsConfig)
    shutdown: ShutdownConfig = field(default_factory=ShutdownConfig)

    def get_server_config(self) -> HttpServerConfig:
        return self.server

    def get_session_config(self) -> SessionConfig:
        return self.session

    def get_rate_limit_config(self) -> RateLimitConfig:
        return self.rate_limit

    def get_cors_config(self) -> CorsConfig:
        return self.cors

    def get_shutdown_config(self) -> ShutdownConfig:
        return self.shutdown
