import asyncio
import inspect
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Set

from ...constants import (
    DEFAULT_MAX_SESSIONS,
    DEFAULT_SESSION_CLEANUP_INTERVAL,
    DEFAULT_SESSION_IDLE_TIMEOUT,
    short_session_id,
)
from ..cache import LRUCache
from ..engine import ProtocolEngine

logger = logging.getLogger(__name__)


@dataclass
class SessionInfo:
    """A live session: its engine and when it was last used."""

    session_id: str
    engine: ProtocolEngine
    created_at: float
    last_activity: float


class SessionModule:
    def __init__(
        self,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        idle_timeout: float = DEFAULT_SESSION_IDLE_TIMEOUT,
        sweep_interval: float = DEFAULT_SESSION_CLEANUP_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize session module.

        Args:
            max_sessions: Maximum number of live sessions
            idle_timeout: Seconds of inactivity before a session is closed
            sweep_interval: Seconds between idle sweeps
            clock: Monotonic time source
        """
        self.max_sessions = max_sessions
        self.idle_timeout = idle_timeout
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._sessions: LRUCache[SessionInfo] = LRUCache(max_sessions, on_evict=self._on_evict)
        self._closing: Set[asyncio.Task] = set()
        self._sweeper: Optional[asyncio.Task] = None
        self._issued = 0

    @property
    def size(self) -> int:
        return self._sessions.size

    @property
    def issued_count(self) -> int:
        """Number of session IDs issued in this process."""
        return self._issued

    def generate_session_id(self) -> str:
        """
        Issue a new session ID.

        IDs come from a CSPRNG, never from client input, and are never
        reissued.
        """
        self._issued += 1
        return str(uuid.uuid4())

    def register(self, session_id: str, engine: ProtocolEngine) -> SessionInfo:
        """
        Admit a freshly established session.

        May evict the least recently used session when at capacity.

        Args:
            session_id: Session ID confirmed by the engine
            engine: Engine exclusively owned by this session

        Returns:
            The stored SessionInfo
        """
        now = self._clock()
        info = SessionInfo(
            session_id=session_id, engine=engine, created_at=now, last_activity=now
        )
        self._sessions.set(session_id, info)
        logger.info(
            f"Session {short_session_id(session_id)} created ({self._sessions.size} active)"
        )
        return info

    def lookup(self, session_id: str) -> Optional[SessionInfo]:
        """
        Get a live session, marking it as recently used.

        Returns:
            SessionInfo or None if the ID does not denote a live session
        """
        return self._sessions.get(session_id)

    def touch(self, session_id: str) -> bool:
        """
        Refresh a session's activity timestamp and recency.

        Returns:
            True if the session exists and was refreshed
        """
        info = self._sessions.get(session_id)
        if info is None:
            return False
        info.last_activity = max(info.last_activity, self._clock())
        self._sessions.set(session_id, info)
        return True

    def close_session(self, session_id: str) -> bool:
        """
        Close a session's engine and remove it.

        Returns:
            True if the session existed
        """
        info = self._sessions.get(session_id)
        if info is None:
            return False
        self._sessions.delete(session_id)
        self._schedule_close(info, "closed")
        return True

    def discard(self, session_id: str) -> bool:
        """
        Remove a session whose engine already closed.

        Safe to call any number of times; concurrent close paths (timeout,
        termination, peer disconnect) all funnel through here.
        """
        removed = self._sessions.delete(session_id)
        if removed:
            logger.debug(f"Session {short_session_id(session_id)} removed after engine close")
        return removed

    def sweep_idle(self) -> int:
        """
        Close every session idle for longer than the timeout.

        Iterates a snapshot so closures cannot disturb the walk.

        Returns:
            Number of sessions closed
        """
        now = self._clock()
        closed = 0
        for session_id, info in list(self._sessions.entries()):
            if now - info.last_activity > self.idle_timeout:
                logger.info(f"Closing idle session {short_session_id(session_id)}")
                if self._sessions.delete(session_id):
                    self._schedule_close(info, "idle")
                    closed += 1
        return closed

    def close_all(self) -> List[asyncio.Task]:
        """
        Close every live session and empty the cache.

        Returns:
            Pending close tasks, for callers that want to bound the wait
        """
        sessions = list(self._sessions.entries())
        logger.info(f"Closing {len(sessions)} active session(s)...")
        self._sessions.clear()
        for _, info in sessions:
            self._schedule_close(info, "shutdown")
        return list(self._closing)

    async def wait_closed(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for pending engine closures.

        Returns:
            True if all closures finished within the timeout
        """
        pending = list(self._closing)
        if not pending:
            return True
        _, still_pending = await asyncio.wait(pending, timeout=timeout)
        return not still_pending

    def start_sweeper(self) -> None:
        """Start the periodic idle sweep on the running loop."""
        if self._sweeper is not None and not self._sweeper.done():
            return
        self._sweeper = asyncio.create_task(self._sweep_loop(), name="session-idle-sweep")

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None

    async def _sweep_loop(self) -> None:
        # sweep_idle never awaits, so ticks cannot overlap
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                self.sweep_idle()
            except Exception:
                logger.exception("Idle session sweep failed")

    def _on_evict(self, session_id: str, info: SessionInfo) -> None:
        logger.warning(
            f"Evicting session {short_session_id(session_id)} (max sessions reached)"
        )
        self._schedule_close(info, "evicted")

    def _schedule_close(self, info: SessionInfo, reason: str) -> None:
        """Close an engine in the background; failures are logged, never raised."""
        try:
            closing = info.engine.close()
        except Exception as e:
            logger.error(f"Error closing {reason} session {short_session_id(info.session_id)}: {e}")
            return
        if not inspect.isawaitable(closing):
            return
        task = asyncio.ensure_future(self._await_close(info.session_id, closing, reason))
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    async def _await_close(self, session_id: str, closing: Awaitable[None], reason: str) -> None:
        try:
            await closing
        except Exception as e:
            logger.error(f"Error closing {reason} session {short_session_id(session_id)}: {e}")
