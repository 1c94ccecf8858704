"""Protocol engine interfaces following Black Box Design principles."""
from typing import Callable, Optional, Protocol

from starlette.types import Receive, Scope, Send


class ProtocolEngine(Protocol):
    """
    One protocol engine instance, exclusively owned by one session.

    The engine understands the wire grammar of the control protocol; the
    transport layer only hands it raw ASGI requests.
    """

    session_id: str

    # Set by the session owner; invoked once when the engine closes on
    # its own (peer disconnect, protocol-level termination).
    on_close: Optional[Callable[[], None]]

    async def start(self) -> None:
        """Bind the engine to its background protocol loop."""
        ...

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        """
        Handle one HTTP request addressed to this session.

        Args:
            scope: ASGI scope
            receive: ASGI receive channel (body replayed by the caller)
            send: ASGI send channel
        """
        ...

    async def close(self) -> None:
        """Terminate the engine and release its resources."""
        ...


EngineFactory = Callable[[str], ProtocolEngine]
"""Build a new engine bound to the given session ID."""
