"""
Session Module - Black Box Interface

Purpose: Manage protocol session lifecycle
Interface: register(), lookup(), touch(), close_session(), discard(),
           sweep_idle(), close_all(), start_sweeper(), stop_sweeper()
Hidden: Session storage, LRU eviction, idle tracking, engine closing

Sessions live in process memory only; the bounded cache is the single
source of truth for which session IDs are live.
"""

from .session import SessionInfo, SessionModule

__all__ = ["SessionModule", "SessionInfo"]
