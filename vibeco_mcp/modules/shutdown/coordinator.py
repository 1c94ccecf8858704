"""
Process shutdown coordination.

On a termination signal every live session is closed in parallel, and a
forced exit is armed in case graceful completion stalls.
"""

import asyncio
import logging
import os
import signal
import threading
from typing import Callable, Optional

import uvicorn

from ...constants import DEFAULT_SHUTDOWN_GRACE
from ..session import SessionModule

logger = logging.getLogger(__name__)

# Exit status once the grace window runs out
FORCED_EXIT_CODE = 0


class ShutdownCoordinator:
    """Drains sessions on shutdown and enforces the grace window."""

    def __init__(
        self,
        session_module: SessionModule,
        grace_period: float = DEFAULT_SHUTDOWN_GRACE,
        exit_func: Callable[[int], None] = os._exit,
    ):
        """
        Initialize coordinator.

        Args:
            session_module: Owner of the sessions to close
            grace_period: Seconds allowed for graceful completion
            exit_func: Called with an exit status when the window expires
        """
        self.sessions = session_module
        self.grace_period = grace_period
        self._exit_func = exit_func
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._drain_task: Optional[asyncio.Task] = None
        self._timer: Optional[threading.Timer] = None
        self._requested = False
        self._completed = False

    @property
    def shutting_down(self) -> bool:
        return self._requested

    def bind(self, loop: asyncio.AbstractEventLoop) -> None:
        """Bind the loop that owns the sessions."""
        self._loop = loop

    def request_shutdown(self, signame: str = "SIGTERM") -> None:
        """
        Begin shutdown. Safe to call from a signal handler; repeats are ignored.
        """
        if self._requested:
            return
        self._requested = True
        logger.info(f"Received {signame}, shutting down gracefully...")

        # Daemon timer: never keeps the process alive on its own
        self._timer = threading.Timer(self.grace_period, self._force_exit)
        self._timer.daemon = True
        self._timer.start()

        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._start_drain)

    def complete(self) -> None:
        """Mark graceful completion and disarm the forced exit."""
        self._completed = True
        if self._timer is not None:
            self._timer.cancel()

    async def drain(self) -> bool:
        """
        Stop the idle sweep and close every session. Idempotent.

        Returns:
            True if all engines finished closing within the grace window
        """
        return await self._start_drain()

    def _start_drain(self) -> "asyncio.Task[bool]":
        if self._drain_task is None:
            self._drain_task = asyncio.ensure_future(self._drain())
        return self._drain_task

    async def _drain(self) -> bool:
        await self.sessions.stop_sweeper()
        self.sessions.close_all()
        finished = await self.sessions.wait_closed(self.grace_period)
        if finished:
            logger.info("All sessions closed")
        else:
            logger.warning(
                f"Some sessions did not close within {self.grace_period}s grace period"
            )
        return finished

    def _force_exit(self) -> None:
        if self._completed:
            return
        logger.error(
            f"Graceful shutdown did not finish within {self.grace_period}s, forcing exit"
        )
        self._exit_func(FORCED_EXIT_CODE)


class GracefulServer(uvicorn.Server):
    """uvicorn server that routes termination signals through a coordinator."""

    def __init__(self, config: uvicorn.Config, coordinator: ShutdownCoordinator):
        super().__init__(config)
        self.coordinator = coordinator

    def handle_exit(self, sig: int, frame) -> None:
        try:
            signame = signal.Signals(sig).name
        except ValueError:
            signame = str(sig)
        self.coordinator.request_shutdown(signame)
        super().handle_exit(sig, frame)
