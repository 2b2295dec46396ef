"""
Service base class for Zen Master.

A service is the unit that sits on the event bus: it declares the events it
publishes and the events it listens to, and announces its own lifecycle with
SERVICE_STATE_CHANGED events. Everything that talks to the bus (the Zen
Master activity today) derives from BaseService.
"""

import asyncio
import structlog
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from .bus import EventBus, EventHandler
from .events import BaseEvent, EventType
from .registry import ServiceRegistry

class ServiceState(str, Enum):
    """Lifecycle states announced on the bus and kept in the ServiceRegistry."""
    STARTED = "started"
    STOPPING = "stopping"
    STOPPED = "stopped"

class BaseService(ABC):
    """
    Base class for bus-connected services.

    Subclasses fill in:

    - PRODUCES_EVENTS: EventType -> {'schema': event class, 'description': str}.
      Schemas are registered with the bus registry at construction, so the
      service's own events validate from the first publish.
    - CONSUMES_EVENTS: EventType -> name of the coroutine method that handles it.
      Subscriptions exist only between start() and stop().
    """

    PRODUCES_EVENTS: ClassVar[Dict[EventType, Dict[str, Any]]] = {}
    CONSUMES_EVENTS: ClassVar[Dict[EventType, str]] = {}

    def __init__(self,
                 event_bus: EventBus,
                 service_registry: ServiceRegistry,
                 name: Optional[str] = None,
                 config: Optional[Any] = None):
        """
        Args:
            event_bus: Bus the service publishes to and subscribes on
            service_registry: Registry tracking the service and its state
            name: Service name used as producer and consumer name (defaults to class name)
            config: Service configuration
        """
        self.event_bus = event_bus
        self.service_registry = service_registry
        self.name = name or self.__class__.__name__
        self.config = config
        self.logger = structlog.get_logger(service=self.name)
        self._running = False
        self._lifecycle_lock = asyncio.Lock()
        self._subscriptions: List[Tuple[EventType, EventHandler]] = []

        self._register_events()
        service_registry.register_service(self.name, self)

    def _register_events(self) -> None:
        from zenmaster.events.system import ServiceStateChangedEvent

        registry = self.event_bus.registry
        produced = dict(self.PRODUCES_EVENTS)
        produced.setdefault(EventType.SERVICE_STATE_CHANGED, {
            'schema': ServiceStateChangedEvent,
            'description': "A service changed lifecycle state",
        })
        for event_type, info in produced.items():
            registry.register_event(event_type, info['schema'], info['description'])
            registry.register_producer(self.name, event_type)

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Subscribe to consumed events and announce the service as started."""
        async with self._lifecycle_lock:
            if self._running:
                self.logger.debug("Service already running")
                return
            for event_type, handler_name in self.CONSUMES_EVENTS.items():
                handler = getattr(self, handler_name)
                self.event_bus.subscribe(event_type, handler, self.name)
                self._subscriptions.append((event_type, handler))
            self._running = True
            await self._announce(ServiceState.STARTED)
            self.logger.info("Service started", consumes=[t.value for t, _ in self._subscriptions])

    async def stop(self) -> None:
        """Drop every subscription made by start() and announce the service as stopped."""
        async with self._lifecycle_lock:
            if not self._running:
                self.logger.debug("Service not running")
                return
            await self._announce(ServiceState.STOPPING)
            while self._subscriptions:
                event_type, handler = self._subscriptions.pop()
                self.event_bus.unsubscribe(event_type, handler)
            self._running = False
            await self._announce(ServiceState.STOPPED)
            self.logger.info("Service stopped")

    async def publish(self, event: BaseEvent) -> None:
        """
        Publish an event as this service.

        Events published while the service is not running are dropped; a
        stopped service has nobody left to answer its events.
        """
        if not self._running:
            self.logger.warning("Dropping event published while stopped", event_type=event.type)
            return
        if not event.producer_name:
            event.producer_name = self.name
        await self.event_bus.publish(event, self.name)

    async def _announce(self, state: ServiceState) -> None:
        from zenmaster.events.system import ServiceStateChangedEvent

        self.service_registry.set_service_state(self.name, state.value)
        await self.event_bus.publish(
            ServiceStateChangedEvent(producer_name=self.name, service_name=self.name, state=state.value),
            self.name
        )

    @abstractmethod
    async def handle_event(self, event: BaseEvent) -> None:
        """Handle an event delivered for one of the CONSUMES_EVENTS types."""
        pass
