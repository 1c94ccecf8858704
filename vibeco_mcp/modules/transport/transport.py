"""
HTTP front door for the MCP endpoint.

Classifies every request as reuse, create or reject, and hands the raw
ASGI request to the owning session's protocol engine.

POST   initiate or continue; may create a session
GET    server-push stream; never creates
DELETE explicit termination; never creates
"""

import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.types import Receive, Scope, Send

from ...constants import (
    JSONRPC_ERROR_INVALID_REQUEST,
    MAX_BODY_BYTES,
    MCP_SESSION_ID_HEADER,
    short_session_id,
)
from ..api import (
    bad_request,
    extract_request_id,
    internal_error,
    is_initialize_request,
    jsonrpc_error_response,
    parse_error,
    session_not_found,
)
from ..engine import EngineFactory, ProtocolEngine
from ..session import SessionInfo, SessionModule
from .asgi import ResponseTracker, replay_body

logger = logging.getLogger(__name__)

Handler = Callable[[Request, ResponseTracker], Awaitable[Optional[Response]]]

ALLOWED_METHODS = "GET, POST, DELETE"

FAILURE_MESSAGES = {
    "POST": "Internal server error",
    "GET": "Internal server error",
    "DELETE": "Error processing session termination",
}


class McpTransport:
    """
    ASGI application serving the protocol endpoint.

    Handlers either dispatch to an engine, which writes its own
    response, or return an error Response for the front door to write.
    """

    def __init__(self, session_module: SessionModule, engine_factory: EngineFactory):
        """
        Initialize transport.

        Args:
            session_module: Owner of all live sessions
            engine_factory: Builds an engine for a new session ID
        """
        self.sessions = session_module
        self.engine_factory = engine_factory
        self._handlers: Dict[str, Handler] = {
            "POST": self._handle_post,
            "GET": self._handle_get,
            "DELETE": self._handle_delete,
        }

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        tracker = ResponseTracker(send)
        handler = self._handlers.get(request.method)

        if handler is None:
            response: Optional[Response] = PlainTextResponse(
                "Method Not Allowed", status_code=405, headers={"Allow": ALLOWED_METHODS}
            )
        else:
            try:
                response = await handler(request, tracker)
            except Exception:
                logger.exception(f"Error handling MCP {request.method} request")
                if tracker.headers_sent:
                    # Connection already carries a response; nothing more can be written.
                    return
                payload = getattr(request.state, "payload", None)
                response = internal_error(
                    FAILURE_MESSAGES[request.method], extract_request_id(payload)
                )

        if response is not None:
            await response(scope, receive, tracker)

    async def _handle_post(self, request: Request, tracker: ResponseTracker) -> Optional[Response]:
        session_id = _session_id(request)

        body = await _read_body(request)
        if body is None:
            return jsonrpc_error_response(
                413, JSONRPC_ERROR_INVALID_REQUEST, "Request body too large"
            )
        try:
            payload: Any = json.loads(body)
        except ValueError:
            return parse_error()
        request.state.payload = payload
        request_id = extract_request_id(payload)
        receive = replay_body(body, request.receive)

        if session_id:
            info = self._resolve(session_id)
            if info is None:
                return session_not_found(request_id)
            await info.engine.handle_request(request.scope, receive, tracker)
            return None

        if is_initialize_request(payload):
            await self._create_session(request.scope, receive, tracker)
            return None

        return bad_request("Bad Request: No valid session ID provided", request_id)

    async def _handle_get(self, request: Request, tracker: ResponseTracker) -> Optional[Response]:
        session_id = _session_id(request)
        if not session_id:
            return bad_request("Bad Request: Missing session ID")
        info = self._resolve(session_id)
        if info is None:
            return session_not_found()
        await info.engine.handle_request(request.scope, request.receive, tracker)
        return None

    async def _handle_delete(self, request: Request, tracker: ResponseTracker) -> Optional[Response]:
        session_id = _session_id(request)
        if not session_id:
            return bad_request("Bad Request: Missing session ID")
        info = self._resolve(session_id)
        if info is None:
            return session_not_found()
        await info.engine.handle_request(request.scope, request.receive, tracker)
        if tracker.status_code is not None and tracker.status_code < 400:
            logger.info(f"Session {short_session_id(session_id)} terminated by client")
            self.sessions.close_session(session_id)
        return None

    def _resolve(self, session_id: str) -> Optional[SessionInfo]:
        """Look up a live session and refresh its activity."""
        info = self.sessions.lookup(session_id)
        if info is not None:
            self.sessions.touch(session_id)
        return info

    async def _create_session(self, scope: Scope, receive: Receive, tracker: ResponseTracker) -> None:
        """
        Open a new session for an initialize request.

        The session is registered only once the engine starts a
        successful response, so a failed handshake never leaves a hollow
        entry behind.
        """
        session_id = self.sessions.generate_session_id()
        engine = self.engine_factory(session_id)
        registered = False

        def on_response_start(status_code: int) -> None:
            nonlocal registered
            if status_code < 400 and not registered:
                self.sessions.register(session_id, engine)
                registered = True

        engine.on_close = lambda: self.sessions.discard(session_id)
        tracker.on_response_start = on_response_start

        try:
            await engine.start()
            await engine.handle_request(scope, receive, tracker)
        finally:
            if not registered:
                logger.warning(
                    f"Session {short_session_id(session_id)} handshake failed, discarding engine"
                )
                await _close_quietly(engine)


def _session_id(request: Request) -> Optional[str]:
    return request.headers.get(MCP_SESSION_ID_HEADER) or None


async def _read_body(request: Request) -> Optional[bytes]:
    """Read the request body, or None if it exceeds MAX_BODY_BYTES."""
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > MAX_BODY_BYTES:
        return None
    chunks = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > MAX_BODY_BYTES:
            return None
        chunks.append(chunk)
    return b"".join(chunks)


async def _close_quietly(engine: ProtocolEngine) -> None:
    try:
        await engine.close()
    except Exception as e:
        logger.error(f"Error closing engine {short_session_id(engine.session_id)}: {e}")
