"""
CORS path allowlisting.

Cross-origin headers are only granted to the protocol endpoint. Matching
is boundary aware so that an allow-listed ``/mcp`` never admits
``/mcp-admin``.
"""

from typing import Iterable, Sequence, Tuple

from ...constants import MCP_ENDPOINT

CORS_ALLOWED_PATHS: Tuple[str, ...] = (MCP_ENDPOINT,)


def matches_allowed_path_boundary(request_path: str, allowed_path: str) -> bool:
    """
    Boundary-aware prefix match.

    True when the request path equals the allowed path or is a subpath
    of it. An allowed path ending in ``/`` is matched as a plain prefix.
    """
    if request_path == allowed_path:
        return True
    if allowed_path.endswith("/"):
        return request_path.startswith(allowed_path)
    return request_path.startswith(f"{allowed_path}/")


def is_cors_allowed_path(
    request_path: str, allowed_paths: Iterable[str] = CORS_ALLOWED_PATHS
) -> bool:
    """Check a request path against every allow-listed prefix."""
    return any(
        matches_allowed_path_boundary(request_path, allowed_path)
        for allowed_path in allowed_paths
    )


class PathAllowList:
    """Immutable set of path prefixes fixed at startup."""

    def __init__(self, allowed_paths: Sequence[str] = CORS_ALLOWED_PATHS):
        self._allowed_paths: Tuple[str, ...] = tuple(allowed_paths)

    @property
    def allowed_paths(self) -> Tuple[str, ...]:
        return self._allowed_paths

    def is_allowed(self, request_path: str) -> bool:
        return is_cors_allowed_path(request_path, self._allowed_paths)
