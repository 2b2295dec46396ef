"""
Activity base class for Zen Master.

An activity is a service with a second, inner lifecycle: the service may be
running (subscribed to the bus) while the activity itself is stopped. Commands
from the bus are acted on only while the activity is ACTIVE.

Activities wrap synchronous state machines whose callbacks fire from timers
and sensor streams. `publish_soon()` lets those callbacks publish without
awaiting, while keeping bus order identical to call order, and
`stop_activity()` flushes everything queued that way before it announces the
stop.
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Any, ClassVar, Dict, Optional, Sequence, Set

from zenmaster.core.events import BaseEvent, EventType
from zenmaster.core.service import BaseService
from zenmaster.events.activities import ActivityStartedEvent, ActivityStoppedEvent

class ActivityState(Enum):
    """Inner lifecycle of an activity."""
    INITIALIZING = auto()
    ACTIVE = auto()
    STOPPING = auto()
    STOPPED = auto()
    ERROR = auto()  # _initialize or _cleanup raised

class BaseActivity(BaseService, ABC):
    """
    Base class for activities.

    Subclasses set ACTIVITY_NAME and COMMANDS (EventType -> name of a plain or
    async method taking the event). CONSUMES_EVENTS is derived from COMMANDS,
    so every command is routed through `handle_event()` and its state check.
    """

    ACTIVITY_NAME: ClassVar[str] = ""
    COMMANDS: ClassVar[Dict[EventType, str]] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls.CONSUMES_EVENTS = {event_type: "handle_event" for event_type in cls.COMMANDS}

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.state = ActivityState.STOPPED
        self.params: Dict[str, Any] = {}
        self._activity_lock = asyncio.Lock()
        self._pending_publishes: Set[asyncio.Task] = set()
        self._last_publish: Optional[asyncio.Task] = None

    async def handle_event(self, event: BaseEvent) -> None:
        """Dispatch a command to its handler if the activity is active."""
        if self.state is not ActivityState.ACTIVE:
            self.logger.debug("Ignoring command while not active",
                              event_type=event.type, state=self.state.name)
            return
        handler_name = self.COMMANDS.get(event.event_type)
        if handler_name is None:
            return
        result = getattr(self, handler_name)(event)
        if inspect.isawaitable(result):
            await result

    async def start_activity(self, params: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the activity and announce it.

        Args:
            params: Activity parameters, available to `_initialize()` as `self.params`
        """
        async with self._activity_lock:
            if self.state is not ActivityState.STOPPED:
                self.logger.warning("Cannot start activity", state=self.state.name)
                return
            self.state = ActivityState.INITIALIZING
            self.params = dict(params or {})
            try:
                await self._initialize()
            except Exception as e:
                self.state = ActivityState.ERROR
                self.logger.error(f"Error starting activity {self.ACTIVITY_NAME}: {e}", exc_info=True)
                raise
            self.state = ActivityState.ACTIVE
            await self.publish(ActivityStartedEvent(activity=self.ACTIVITY_NAME, params=self.params))
            self.logger.info("Activity started", activity=self.ACTIVITY_NAME)

    async def stop_activity(self, reason: Optional[str] = None) -> None:
        """
        Tear the activity down, flush its queued events, then announce the stop.

        Args:
            reason: Why the activity stopped, carried on ActivityStoppedEvent
        """
        async with self._activity_lock:
            if self.state is ActivityState.STOPPED:
                self.logger.debug("Activity already stopped")
                return
            self.state = ActivityState.STOPPING
            try:
                await self._cleanup()
            except Exception as e:
                self.state = ActivityState.ERROR
                self.logger.error(f"Error stopping activity {self.ACTIVITY_NAME}: {e}", exc_info=True)
                raise
            finally:
                await self.flush()
            self.state = ActivityState.STOPPED
            await self.publish(ActivityStoppedEvent(activity=self.ACTIVITY_NAME, reason=reason))
            self.logger.info("Activity stopped", activity=self.ACTIVITY_NAME, reason=reason)

    async def stop(self) -> None:
        """Stop the activity if needed, then the service."""
        if self.state is not ActivityState.STOPPED:
            await self.stop_activity(reason="service_stopped")
        await super().stop()

    def publish_soon(self, events: Sequence[BaseEvent]) -> None:
        """
        Publish events from synchronous code.

        Must be called on the event loop. Batches reach the bus in the order
        this method was called.
        """
        previous = self._last_publish
        task = asyncio.get_running_loop().create_task(self._publish_after(previous, list(events)))
        self._last_publish = task
        self._pending_publishes.add(task)
        task.add_done_callback(self._pending_publishes.discard)

    async def flush(self) -> None:
        """Wait until every batch passed to `publish_soon()` so far has been published."""
        while self._pending_publishes:
            await asyncio.gather(*list(self._pending_publishes), return_exceptions=True)

    async def _publish_after(self, previous: Optional[asyncio.Task], events: Sequence[BaseEvent]) -> None:
        if previous is not None and not previous.done():
            await asyncio.wait([previous])
        for event in events:
            await self.publish(event)

    @abstractmethod
    async def _initialize(self) -> None:
        """Build the activity's resources from `self.params`."""
        pass

    @abstractmethod
    async def _cleanup(self) -> None:
        """Release the activity's resources. Called once per start."""
        pass
