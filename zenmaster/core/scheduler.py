"""
Timer scheduling for Zen Master.

The session core never sleeps or spawns tasks itself. It asks a Scheduler for
one-shot and periodic callbacks and keeps the returned TimerHandle so it can
cancel them. Cancelling a handle guarantees its callback never runs again,
which is what makes stopping a session synchronous: a tick that was already
due but not yet dispatched is dropped instead of landing on a stopped session.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

TimerCallback = Callable[[], None]

logger = logging.getLogger(__name__)

class TimerHandle:
    """
    A scheduled one-shot or periodic callback.

    Schedulers call `fire()` when the handle is due; owners call `cancel()`.
    """

    def __init__(self, callback: TimerCallback, interval: Optional[float] = None):
        self.callback = callback
        self.interval = interval
        self._cancelled = False
        self._finished = False
        self._on_cancel: Optional[Callable[[], None]] = None

    @property
    def periodic(self) -> bool:
        return self.interval is not None

    @property
    def active(self) -> bool:
        """True while the callback may still run."""
        return not (self._cancelled or self._finished)

    def cancel(self) -> None:
        """Cancel the timer. Safe to call more than once."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()
            self._on_cancel = None

    def fire(self) -> None:
        """Run the callback if the handle is still active, absorbing its errors."""
        if not self.active:
            return
        if not self.periodic:
            self._finished = True
        try:
            self.callback()
        except Exception as e:
            logger.error(f"Error in timer callback {getattr(self.callback, '__qualname__', self.callback)}: {e}",
                         exc_info=True)

class Scheduler(ABC):
    """Source of one-shot and periodic timers."""

    @abstractmethod
    def call_later(self, delay: float, callback: TimerCallback) -> TimerHandle:
        """Run `callback` once after `delay` seconds."""

    @abstractmethod
    def call_every(self, interval: float, callback: TimerCallback) -> TimerHandle:
        """Run `callback` every `interval` seconds, first after one interval."""

class AsyncioScheduler(Scheduler):
    """
    Scheduler backed by an asyncio event loop.

    Periodic timers are scheduled against absolute loop deadlines so a slow
    callback does not push every later tick back.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        """
        Args:
            loop: Event loop to schedule on. Defaults to the running loop, so
                  construct the scheduler from inside a coroutine.
        """
        self._loop = loop or asyncio.get_running_loop()

    def call_later(self, delay: float, callback: TimerCallback) -> TimerHandle:
        handle = TimerHandle(callback)
        self._schedule(handle, self._loop.time() + max(delay, 0.0))
        return handle

    def call_every(self, interval: float, callback: TimerCallback) -> TimerHandle:
        if interval <= 0:
            raise ValueError("Timer interval must be positive")
        handle = TimerHandle(callback, interval)
        self._schedule(handle, self._loop.time() + interval)
        return handle

    def _schedule(self, handle: TimerHandle, deadline: float) -> None:
        loop_handle = self._loop.call_at(deadline, self._dispatch, handle, deadline)
        handle._on_cancel = loop_handle.cancel

    def _dispatch(self, handle: TimerHandle, deadline: float) -> None:
        if not handle.active:
            return
        if handle.periodic:
            # Reschedule first so the callback may cancel its own timer
            self._schedule(handle, deadline + handle.interval)
        handle.fire()
