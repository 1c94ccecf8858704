"""
Vibeco MCP wire models.

These models define the JSON shapes the HTTP transport produces or
inspects itself. Everything else on the wire belongs to the protocol
engine.
"""

from typing import Any, Dict, Literal, Optional, Union

from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ...constants import (
    JSONRPC_ERROR_INTERNAL,
    JSONRPC_ERROR_INVALID_REQUEST,
    JSONRPC_ERROR_PARSE,
)

RequestId = Union[str, int]


# Error envelope


class JsonRpcError(BaseModel):
    """JSON-RPC error object."""

    code: int = Field(..., description="JSON-RPC error code")
    message: str = Field(..., description="Human-readable error message")


class JsonRpcErrorResponse(BaseModel):
    """JSON-RPC error response envelope."""

    jsonrpc: Literal["2.0"] = "2.0"
    error: JsonRpcError
    id: Optional[RequestId] = Field(
        None, description="Request ID, or null when none could be parsed"
    )


class PlainErrorResponse(BaseModel):
    """Plain error body used by the security middleware."""

    error: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["ok"] = "ok"
    sessions: int = Field(..., ge=0, description="Number of live sessions")


# Initialize request recognition


class ClientInfo(BaseModel):
    """Identity of the connecting client."""

    name: str
    version: str


class InitializeParams(BaseModel):
    """Parameters of an initialize request."""

    model_config = ConfigDict(populate_by_name=True)

    protocol_version: str = Field(..., alias="protocolVersion")
    capabilities: Dict[str, Any]
    client_info: ClientInfo = Field(..., alias="clientInfo")


class InitializeRequest(BaseModel):
    """Session-initiating request. Extra envelope fields are ignored."""

    method: Literal["initialize"]
    params: InitializeParams


def is_initialize_request(payload: Any) -> bool:
    """
    Check whether a parsed request body opens a new session.

    Batches are never initiating.
    """
    if not isinstance(payload, dict):
        return False
    try:
        InitializeRequest.model_validate(payload)
    except ValidationError:
        return False
    return True


def extract_request_id(payload: Any) -> Optional[RequestId]:
    """Get the JSON-RPC request ID from a parsed body, if it has a usable one."""
    if not isinstance(payload, dict):
        return None
    request_id = payload.get("id")
    if isinstance(request_id, bool) or not isinstance(request_id, (str, int)):
        return None
    return request_id


def jsonrpc_error_response(
    status_code: int,
    code: int,
    message: str,
    request_id: Optional[RequestId] = None,
) -> JSONResponse:
    """Build a JSON-RPC error envelope response."""
    envelope = JsonRpcErrorResponse(
        error=JsonRpcError(code=code, message=message), id=request_id
    )
    return JSONResponse(status_code=status_code, content=envelope.model_dump())


def parse_error(message: str = "Parse error") -> JSONResponse:
    return jsonrpc_error_response(400, JSONRPC_ERROR_PARSE, message)


def bad_request(message: str, request_id: Optional[RequestId] = None) -> JSONResponse:
    return jsonrpc_error_response(400, JSONRPC_ERROR_INVALID_REQUEST, message, request_id)


def session_not_found(request_id: Optional[RequestId] = None) -> JSONResponse:
    return jsonrpc_error_response(
        404, JSONRPC_ERROR_INVALID_REQUEST, "Session not found", request_id
    )


def internal_error(
    message: str = "Internal server error", request_id: Optional[RequestId] = None
) -> JSONResponse:
    return jsonrpc_error_response(500, JSONRPC_ERROR_INTERNAL, message, request_id)
