"""
Vibeco MCP - Session-managed MCP server

Hosts the Model Context Protocol over a stateless HTTP server by
multiplexing many long-lived protocol sessions in one process.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- cache: Bounded, access-ordered session cache
- cors: Path-boundary matching for cross-origin policy
- session: Session lifecycle (create, reuse, idle sweep, close)
- transport: HTTP front door routing requests to session engines
- middleware: Security middleware chain
- engine: Protocol engine interface and MCP SDK adapter
- api: Wire models
- shutdown: Graceful shutdown coordination
"""

__version__ = "1.0.0"
