"""
Security Middleware Module - Black Box Interface

Purpose: Harden the HTTP surface before any session logic runs
Interface: Middleware classes plus install_security_middleware()
Hidden: Header sets, rate limit bookkeeping, origin policy

Chain, outermost first:
1. SecurityHeadersMiddleware - strict content policy on every response
2. NoCacheMiddleware        - cache suppression on protocol responses
3. RateLimitMiddleware      - admission control on the protocol path
4. CorsMiddleware           - cross-origin policy by path allow-list
"""

import logging
from typing import Dict, Optional
from urllib.parse import urlsplit

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from ...constants import MCP_ENDPOINT, MCP_SESSION_ID_HEADER
from ..api import PlainErrorResponse
from ..cors import PathAllowList, matches_allowed_path_boundary
from .rate_limit import FixedWindowRateLimiter, RateLimitState

logger = logging.getLogger(__name__)

CONTENT_SECURITY_POLICY = "; ".join(
    [
        "default-src 'self'",
        "base-uri 'self'",
        "font-src 'self' https: data:",
        "form-action 'self'",
        "frame-ancestors 'none'",
        "img-src 'self' data:",
        "object-src 'none'",
        "script-src 'none'",
        "script-src-attr 'none'",
        "style-src 'self' https: 'unsafe-inline'",
        "upgrade-insecure-requests",
    ]
)

SECURITY_HEADERS: Dict[str, str] = {
    "Content-Security-Policy": CONTENT_SECURITY_POLICY,
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}

NO_CACHE_HEADERS: Dict[str, str] = {
    "Cache-Control": "no-store, no-cache, must-revalidate, private",
    "Pragma": "no-cache",
    "Expires": "0",
}

CORS_HEADERS: Dict[str, str] = {
    "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": f"Content-Type, {MCP_SESSION_ID_HEADER}",
    "Access-Control-Expose-Headers": MCP_SESSION_ID_HEADER,
    "Access-Control-Max-Age": "86400",
}

RATE_LIMIT_MESSAGE = "Too many requests, please try again later"
CORS_REJECTED_MESSAGE = "Cross-origin requests not allowed"


class SecurityHeadersMiddleware:
    """Apply strict content security headers to every response."""

    def __init__(self, headers: Optional[Dict[str, str]] = None):
        self.headers = headers or SECURITY_HEADERS

    async def __call__(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.update(self.headers)
        return response


class NoCacheMiddleware:
    """Suppress caching of every response on the protocol path."""

    def __init__(self, path: str = MCP_ENDPOINT):
        self.path = path

    async def __call__(self, request: Request, call_next):
        response = await call_next(request)
        if matches_allowed_path_boundary(request.url.path, self.path):
            response.headers.update(NO_CACHE_HEADERS)
        return response


class RateLimitMiddleware:
    """
    Per-client request admission on the protocol path.

    Emits the standard RateLimit-* headers on admitted and rejected
    requests alike.
    """

    def __init__(self, limiter: FixedWindowRateLimiter, path: str = MCP_ENDPOINT):
        self.limiter = limiter
        self.path = path

    @staticmethod
    def client_key(request: Request) -> str:
        return request.client.host if request.client else "unknown"

    @staticmethod
    def rate_limit_headers(state: RateLimitState) -> Dict[str, str]:
        return {
            "RateLimit-Limit": str(state.limit),
            "RateLimit-Remaining": str(state.remaining),
            "RateLimit-Reset": str(state.reset_seconds),
        }

    async def __call__(self, request: Request, call_next):
        if not matches_allowed_path_boundary(request.url.path, self.path):
            return await call_next(request)

        client = self.client_key(request)
        state = self.limiter.hit(client)
        headers = self.rate_limit_headers(state)

        if not state.allowed:
            logger.warning(f"Rate limit exceeded for client {client}")
            return JSONResponse(
                status_code=429,
                content=PlainErrorResponse(error=RATE_LIMIT_MESSAGE).model_dump(),
                headers=headers,
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response


class CorsMiddleware:
    """
    Cross-origin policy gated by a path allow-list.

    Requests without an Origin header pass untouched. Cross-origin
    requests to allow-listed paths get CORS headers (preflights are
    answered directly); all others are refused.
    """

    def __init__(self, allow_list: PathAllowList):
        self.allow_list = allow_list

    @staticmethod
    def is_well_formed_origin(origin: str) -> bool:
        if origin == "null":
            return True
        parts = urlsplit(origin)
        return bool(parts.scheme and parts.netloc) and not parts.path

    async def __call__(self, request: Request, call_next):
        origin = request.headers.get("origin")
        if not origin:
            return await call_next(request)

        path = request.url.path
        if not self.is_well_formed_origin(origin) or not self.allow_list.is_allowed(path):
            logger.warning(f"Rejected cross-origin {request.method} {path} from {origin!r}")
            return JSONResponse(
                status_code=403,
                content=PlainErrorResponse(error=CORS_REJECTED_MESSAGE).model_dump(),
            )

        if request.method == "OPTIONS":
            response = Response(status_code=204)
        else:
            response = await call_next(request)

        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Vary"] = "Origin"
        response.headers.update(CORS_HEADERS)
        return response


def install_security_middleware(
    app: FastAPI,
    limiter: FixedWindowRateLimiter,
    allow_list: PathAllowList,
    protocol_path: str = MCP_ENDPOINT,
) -> None:
    """
    Register the middleware chain on an application.

    Starlette wraps later registrations around earlier ones, so the
    chain is registered innermost first.
    """
    app.middleware("http")(CorsMiddleware(allow_list))
    app.middleware("http")(RateLimitMiddleware(limiter, protocol_path))
    app.middleware("http")(NoCacheMiddleware(protocol_path))
    app.middleware("http")(SecurityHeadersMiddleware())


# Module interface - what this module provides
__all__ = [
    "CorsMiddleware",
    "FixedWindowRateLimiter",
    "NoCacheMiddleware",
    "RateLimitMiddleware",
    "RateLimitState",
    "SecurityHeadersMiddleware",
    "install_security_middleware",
    "CORS_HEADERS",
    "NO_CACHE_HEADERS",
    "SECURITY_HEADERS",
]
