#!/usr/bin/env python3
"""
Vibeco MCP - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes modules
3. Runs the MCP server over stdio or the session-managed HTTP transport

All session logic is in the modules, following black box principles.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

import anyio
import uvicorn
from fastapi import FastAPI, Request
from mcp.server.stdio import stdio_server

from vibeco_mcp import __version__
from vibeco_mcp.config import ConfigProvider, EnvConfigProvider
from vibeco_mcp.constants import HEALTH_ENDPOINT, MCP_ENDPOINT, SERVER_NAME
from vibeco_mcp.logging_config import configure_logging, get_logging_config

# Import modules through their black box interfaces
from vibeco_mcp.modules.api import HealthResponse, internal_error
from vibeco_mcp.modules.cors import PathAllowList
from vibeco_mcp.modules.engine import EngineFactory, McpEngineFactory, create_mcp_server
from vibeco_mcp.modules.middleware import FixedWindowRateLimiter, install_security_middleware
from vibeco_mcp.modules.session import SessionModule
from vibeco_mcp.modules.shutdown import GracefulServer, ShutdownCoordinator
from vibeco_mcp.modules.transport import McpTransport

logger = logging.getLogger(__name__)


def create_app(
    config_provider: Optional[ConfigProvider] = None,
    engine_factory: Optional[EngineFactory] = None,
) -> FastAPI:
    """
    Build the HTTP application with every module wired in.

    Args:
        config_provider: Configuration source (environment by default)
        engine_factory: Builds a protocol engine per session (MCP SDK by default)
    """
    config_provider = config_provider or EnvConfigProvider()
    server_config = config_provider.get_server_config()
    session_config = config_provider.get_session_config()
    rate_limit_config = config_provider.get_rate_limit_config()

    if engine_factory is None:
        engine_factory = McpEngineFactory(
            create_mcp_server, json_response=server_config.json_response
        )

    session_module = SessionModule(
        max_sessions=session_config.max_sessions,
        idle_timeout=session_config.idle_timeout,
        sweep_interval=session_config.sweep_interval,
    )
    coordinator = ShutdownCoordinator(
        session_module, grace_period=config_provider.get_shutdown_config().grace_period
    )
    transport = McpTransport(session_module, engine_factory)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Manage application lifecycle - start the idle sweep, drain sessions on exit.
        """
        logger.info(f"Starting {SERVER_NAME} HTTP transport...")
        coordinator.bind(asyncio.get_running_loop())
        session_module.start_sweeper()
        logger.info(
            f"Session limits: max={session_config.max_sessions}, "
            f"idle timeout={session_config.idle_timeout}s, "
            f"sweep every {session_config.sweep_interval}s"
        )

        yield

        logger.info(f"Shutting down {SERVER_NAME} HTTP transport...")
        await coordinator.drain()
        coordinator.complete()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="Vibeco MCP",
        description="Session-managed MCP server",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.session_module = session_module
    app.state.coordinator = coordinator

    install_security_middleware(
        app,
        FixedWindowRateLimiter(
            rate_limit_config.max_requests, rate_limit_config.window_seconds
        ),
        PathAllowList(config_provider.get_cors_config().allowed_paths),
    )

    app.add_route(MCP_ENDPOINT, transport, methods=["GET", "POST", "DELETE"])

    @app.get(HEALTH_ENDPOINT, response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """
        Health check endpoint.

        Returns:
            200: Service healthy, with the live session count
        """
        return HealthResponse(sessions=session_module.size)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        """Map stray errors to the internal-error envelope."""
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return internal_error()

    return app


def run_http(config_provider: ConfigProvider) -> None:
    """Serve the session-managed HTTP transport until a termination signal."""
    server_config = config_provider.get_server_config()
    app = create_app(config_provider)

    config = uvicorn.Config(
        app,
        host=server_config.host,
        port=server_config.port,
        log_level=server_config.log_level.lower(),
        log_config=get_logging_config(server_config.log_level),
    )
    server = GracefulServer(config, app.state.coordinator)
    logger.info(
        f"MCP endpoint: http://{server_config.host}:{server_config.port}{MCP_ENDPOINT}"
    )
    server.run()


async def run_stdio() -> None:
    """Serve a single MCP session over stdin/stdout."""
    server = create_mcp_server()
    logger.info(f"{SERVER_NAME} running on stdio")
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    config_provider = EnvConfigProvider()
    server_config = config_provider.get_server_config()
    configure_logging(server_config.log_level)

    if server_config.transport == "http":
        run_http(config_provider)
    else:
        anyio.run(run_stdio)


if __name__ == "__main__":
    main()
