"""
MCP SDK backed protocol engine.

Each engine pairs one ``StreamableHTTPServerTransport`` with one MCP
server instance running in a background task. The transport owns the
wire grammar (JSON-RPC framing, SSE streams, session header validation);
this adapter only manages the task that connects the two.
"""

import asyncio
import logging
from typing import Callable, Optional

from mcp.server.lowlevel import Server
from mcp.server.streamable_http import StreamableHTTPServerTransport
from starlette.types import Receive, Scope, Send

from ...constants import short_session_id

logger = logging.getLogger(__name__)

# Seconds to wait for the server task after terminating the transport
ENGINE_CLOSE_TIMEOUT = 2.0


class EngineStartError(RuntimeError):
    """Raised when the protocol loop exits before it became ready."""


class McpProtocolEngine:
    """Protocol engine driving an MCP server over streamable HTTP."""

    def __init__(self, server: Server, session_id: str, json_response: bool = False):
        """
        Initialize engine.

        Args:
            server: MCP server instance owned by this engine
            session_id: Session ID the transport will issue and validate
            json_response: Answer POSTs with JSON bodies instead of SSE streams
        """
        self.session_id = session_id
        self.on_close: Optional[Callable[[], None]] = None
        self._server = server
        self._transport = StreamableHTTPServerTransport(
            mcp_session_id=session_id,
            is_json_response_enabled=json_response,
        )
        self._task: Optional[asyncio.Task] = None
        self._ready = asyncio.Event()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self) -> None:
        """Start the server loop and wait until the transport streams are bound."""
        if self._task is not None:
            return
        self._task = asyncio.create_task(
            self._run(), name=f"mcp-session-{short_session_id(self.session_id)}"
        )
        await self._ready.wait()
        if self._closed:
            raise EngineStartError(
                f"MCP session {short_session_id(self.session_id)} exited during startup"
            )

    async def _run(self) -> None:
        try:
            async with self._transport.connect() as (read_stream, write_stream):
                self._ready.set()
                await self._server.run(
                    read_stream,
                    write_stream,
                    self._server.create_initialization_options(),
                    stateless=False,
                )
        except Exception:
            logger.exception(
                f"MCP server loop failed for session {short_session_id(self.session_id)}"
            )
        finally:
            self._closed = True
            self._ready.set()
            logger.debug(f"MCP session {short_session_id(self.session_id)} loop ended")
            if self.on_close is not None:
                self.on_close()

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self._transport.handle_request(scope, receive, send)

    async def close(self) -> None:
        """Terminate the transport and stop the server loop."""
        await self._transport.terminate()
        if self._task is None or self._task.done():
            return
        done, _ = await asyncio.wait({self._task}, timeout=ENGINE_CLOSE_TIMEOUT)
        if not done:
            self._task.cancel()


class McpEngineFactory:
    """Builds one engine, with its own MCP server, per session."""

    def __init__(self, server_factory: Callable[[], Server], json_response: bool = False):
        self._server_factory = server_factory
        self._json_response = json_response

    def __call__(self, session_id: str) -> McpProtocolEngine:
        return McpProtocolEngine(
            self._server_factory(), session_id, json_response=self._json_response
        )
