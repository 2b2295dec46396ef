"""
Hardware lifecycle for Zen Master adapters.

Accelerometer sources and volume controls share one lifecycle: `initialize()`
opens the device and, for adapters that produce data on their own, starts a
background loop on the running event loop; `shutdown()` stops that loop and
releases the device. Both calls are idempotent and serialized by a lock, and
the adapters can also be used as async context managers.
"""

import asyncio
import structlog
from abc import ABC
from typing import Any, Coroutine, Optional

class BaseHardware(ABC):
    """
    Base class for the accelerometer and volume adapters.

    Subclasses override `_open()` / `_close()` to acquire and release the
    device, and `_background_loop()` when they need a long-running task (a
    queue pump, a sample generator).
    """

    def __init__(self, config: Optional[Any] = None, name: Optional[str] = None):
        """
        Args:
            config: Optional adapter-specific configuration
            name: Optional name for this adapter (defaults to the class name)
        """
        self.config = config
        self.name = name or self.__class__.__name__
        self.logger = structlog.get_logger(hardware=self.name)
        self._initialized = False
        self._loop_task: Optional[asyncio.Task] = None
        self._lifecycle_lock = asyncio.Lock()

    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Open the device and start its background loop, if it has one."""
        async with self._lifecycle_lock:
            if self._initialized:
                self.logger.debug("Already initialized")
                return
            try:
                await self._open()
            except Exception as e:
                self.logger.error(f"Could not open {self.name}: {e}")
                raise

            loop_coroutine = self._background_loop()
            if loop_coroutine is not None:
                self._loop_task = asyncio.create_task(loop_coroutine, name=f"{self.name}-loop")
                self._loop_task.add_done_callback(self._on_loop_done)
            self._initialized = True
            self.logger.info("Hardware initialized", background_loop=self._loop_task is not None)

    async def shutdown(self) -> None:
        """Stop the background loop and release the device."""
        async with self._lifecycle_lock:
            if not self._initialized:
                self.logger.debug("Not initialized, nothing to shut down")
                return
            self._initialized = False
            task, self._loop_task = self._loop_task, None
            # A loop that already crashed was reported by _on_loop_done
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
            await self._close()
            self.logger.info("Hardware shut down")

    async def __aenter__(self) -> "BaseHardware":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.shutdown()

    async def _open(self) -> None:
        """Acquire the device. Raise to abort initialization."""
        pass

    async def _close(self) -> None:
        """Release the device."""
        pass

    def _background_loop(self) -> Optional[Coroutine[Any, Any, None]]:
        """Coroutine to run for as long as the adapter is initialized, or None."""
        return None

    def _on_loop_done(self, task: asyncio.Task) -> None:
        # A loop that dies on its own stops the stream; make that visible
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.logger.error(f"Background loop of {self.name} crashed: {error}", exc_info=error)
