"""ASGI plumbing shared by the transport front door."""

from typing import Callable, Optional

from starlette.types import Message, Receive, Send


class ResponseTracker:
    """
    Wraps an ASGI send channel and records whether headers went out.

    Once ``http.response.start`` has been sent no second response may be
    written on the connection.
    """

    def __init__(self, send: Send, on_response_start: Optional[Callable[[int], None]] = None):
        self._send = send
        self.on_response_start = on_response_start
        self.headers_sent = False
        self.status_code: Optional[int] = None

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self.headers_sent = True
            self.status_code = message["status"]
            if self.on_response_start is not None:
                self.on_response_start(self.status_code)
        await self._send(message)


def replay_body(body: bytes, receive: Receive) -> Receive:
    """
    Build a receive channel that yields an already-read body once.

    Later calls fall through to the real channel so that disconnects
    still reach long-lived streams.
    """
    delivered = False

    async def replay() -> Message:
        nonlocal delivered
        if not delivered:
            delivered = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay
