"""
CORS Module - Black Box Interface

Purpose: Decide which request paths may receive cross-origin headers
Interface: matches_allowed_path_boundary(), is_cors_allowed_path(), PathAllowList
Hidden: Boundary matching rules
"""

from .paths import (
    CORS_ALLOWED_PATHS,
    PathAllowList,
    is_cors_allowed_path,
    matches_allowed_path_boundary,
)

__all__ = [
    "CORS_ALLOWED_PATHS",
    "PathAllowList",
    "is_cors_allowed_path",
    "matches_allowed_path_boundary",
]
