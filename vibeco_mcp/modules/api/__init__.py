"""
API Module - Black Box Interface

Purpose: Wire models shared by the transport and middleware
Interface: JSON-RPC error envelope builders, initialize-request recognition
Hidden: Validation rules, serialization

Holds no business logic.
"""

from .models import (
    HealthResponse,
    InitializeRequest,
    JsonRpcError,
    JsonRpcErrorResponse,
    PlainErrorResponse,
    bad_request,
    extract_request_id,
    internal_error,
    is_initialize_request,
    jsonrpc_error_response,
    parse_error,
    session_not_found,
)

__all__ = [
    "HealthResponse",
    "InitializeRequest",
    "JsonRpcError",
    "JsonRpcErrorResponse",
    "PlainErrorResponse",
    "bad_request",
    "extract_request_id",
    "internal_error",
    "is_initialize_request",
    "jsonrpc_error_response",
    "parse_error",
    "session_not_found",
]
