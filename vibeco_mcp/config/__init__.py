"""
Config Module - Black Box Interface

Purpose: Application configuration management
Interface: ConfigProvider, EnvConfigProvider, StaticConfigProvider
Hidden: Config sources, validation logic, environment parsing
"""

from .provider import (
    ConfigProvider,
    CorsConfig,
    EnvConfigProvider,
    HttpServerConfig,
    RateLimitConfig,
    SessionConfig,
    ShutdownConfig,
    StaticConfigProvider,
)

__all__ = [
    "ConfigProvider",
    "EnvConfigProvider",
    "StaticConfigProvider",
    "HttpServerConfig",
    "SessionConfig",
    "RateLimitConfig",
    "CorsConfig",
    "ShutdownConfig",
]
