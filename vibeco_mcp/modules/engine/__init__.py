"""
Engine Module - Black Box Interface

Purpose: Per-session protocol engines
Interface: ProtocolEngine, EngineFactory, McpEngineFactory, create_mcp_server()
Hidden: MCP SDK transport wiring, server task management

Any object honouring ProtocolEngine can replace the MCP SDK adapter.
"""

from .interfaces import EngineFactory, ProtocolEngine
from .mcp_engine import EngineStartError, McpEngineFactory, McpProtocolEngine
from .server import PING_TOOL, create_mcp_server

__all__ = [
    "ProtocolEngine",
    "EngineFactory",
    "EngineStartError",
    "McpEngineFactory",
    "McpProtocolEngine",
    "PING_TOOL",
    "create_mcp_server",
]
