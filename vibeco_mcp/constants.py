"""
Shared constants used across the server.
"""

SERVER_NAME = "vibeco-mcp"

# HTTP transport

MCP_ENDPOINT = "/mcp"
MCP_SESSION_ID_HEADER = "mcp-session-id"
HEALTH_ENDPOINT = "/health"

DEFAULT_SERVER_HOST = "127.0.0.1"
DEFAULT_SERVER_PORT = 3000

# Number of characters of a session ID that may appear in logs
SESSION_ID_DISPLAY_LENGTH = 8

# Largest accepted JSON request body (100 KiB)
MAX_BODY_BYTES = 100 * 1024

# Session management

DEFAULT_MAX_SESSIONS = 1000
DEFAULT_SESSION_IDLE_TIMEOUT = 30 * 60
DEFAULT_SESSION_CLEANUP_INTERVAL = 5 * 60

# Rate limiting

DEFAULT_RATE_LIMIT_MAX = 100
DEFAULT_RATE_LIMIT_WINDOW = 60

# Shutdown

DEFAULT_SHUTDOWN_GRACE = 5.0

# JSON-RPC error codes

JSONRPC_ERROR_PARSE = -32700
JSONRPC_ERROR_INVALID_REQUEST = -32600
JSONRPC_ERROR_INTERNAL = -32603


def short_session_id(session_id: str) -> str:
    """Truncate a session ID for log output."""
    return f"{session_id[:SESSION_ID_DISPLAY_LENGTH]}..."
