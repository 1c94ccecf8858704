"""
MCP server factory.

A fresh server is built for every session so that no protocol state is
shared between peers.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List

from mcp import types
from mcp.server.lowlevel import Server

from ... import __version__
from ...constants import SERVER_NAME

PING_TOOL = "vibe.ping"

SERVER_INSTRUCTIONS = (
    "Vibe MCP server for CTV/streaming advertising analytics. "
    f"Start with {PING_TOOL} to verify connectivity."
)


def create_mcp_server() -> Server:
    """Create an MCP server with all handlers registered."""
    server = Server(SERVER_NAME, version=__version__, instructions=SERVER_INSTRUCTIONS)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return [
            types.Tool(
                name=PING_TOOL,
                description="Check that the MCP server is reachable and responding.",
                inputSchema={"type": "object", "properties": {}},
            )
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: Dict[str, Any]) -> List[types.TextContent]:
        if name != PING_TOOL:
            raise ValueError(f"Unknown tool: {name}")
        payload = {
            "status": "ok",
            "server": SERVER_NAME,
            "version": __version__,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        return [types.TextContent(type="text", text=json.dumps(payload))]

    return server
