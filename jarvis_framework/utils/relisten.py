"""
Cancellable delayed re-entry into listening for continuous mode.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from .logging_config import get_logger

logger = get_logger("relisten")

Spawner = Callable[[Awaitable[None]], asyncio.Task]

DEFAULT_RELISTEN_DELAY = 1.0


class RelistenTimer:
    """
    A single delayed trigger.

    cancel() may be called at any point, including after the timer fired but
    before its callback got to run; callbacks check ``cancelled`` themselves.
    The callback runs in a task created by ``spawn`` when given, so the owner
    can cancel and await it on shutdown.
    """

    def __init__(self,
                 delay: float,
                 callback: Callable[['RelistenTimer'], Awaitable[None]],
                 loop: Optional[asyncio.AbstractEventLoop] = None,
                 spawn: Optional[Spawner] = None):
        self.delay = delay
        self._callback = callback
        self._loop = loop or asyncio.get_running_loop()
        self._spawn = spawn or self._loop.create_task
        self._fired = False
        self._cancelled = False
        self._task: Optional[asyncio.Task] = None
        self._handle = self._loop.call_later(delay, self._fire)

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def pending(self) -> bool:
        return not self._fired and not self._cancelled

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._fired = True
        self._task = self._spawn(self._callback(self))

    def cancel(self) -> bool:
        """Cancel the trigger. Returns True if this call changed anything."""
        if self._cancelled:
            return False
        self._cancelled = True
        self._handle.cancel()
        return True


class RelistenScheduler:
    """Owns at most one outstanding RelistenTimer."""

    def __init__(self, delay: float = DEFAULT_RELISTEN_DELAY, spawn: Optional[Spawner] = None):
        if delay < 0:
            raise ValueError("Relisten delay must be non-negative")
        self.delay = delay
        self._spawn = spawn
        self._timer: Optional[RelistenTimer] = None

    @property
    def is_armed(self) -> bool:
        return self._timer is not None and self._timer.pending

    @property
    def current(self) -> Optional[RelistenTimer]:
        return self._timer

    def arm(self, callback: Callable[[RelistenTimer], Awaitable[None]]) -> RelistenTimer:
        """Arm a new timer, cancelling any previous one."""
        self.cancel()
        self._timer = RelistenTimer(self.delay, callback, spawn=self._spawn)
        logger.debug(f"Relisten armed ({self.delay:.1f}s)")
        return self._timer

    def cancel(self) -> bool:
        timer, self._timer = self._timer, None
        if timer is None:
            return False
        cancelled = timer.cancel()
        if cancelled:
            logger.debug("Relisten cancelled")
        return cancelled
