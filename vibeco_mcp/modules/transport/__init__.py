"""
Transport Module - Black Box Interface

Purpose: HTTP front door for the session-oriented protocol endpoint
Interface: McpTransport (ASGI app), ResponseTracker, replay_body()
Hidden: Request classification, body replay, session creation handshake
"""

from .asgi import ResponseTracker, replay_body
from .transport import McpTransport

__all__ = ["McpTransport", "ResponseTracker", "replay_body"]
