"""
Event and service registry for Zen Master.

This module provides registration and validation for events, their producers and consumers.
It enables discovery and documentation of event flows through the system.
"""

import logging
from typing import Dict, Set, Type, Any, Optional
from .events import EventType, BaseEvent

class EventRegistry:
    """
    Central registry of all event types, producers, and consumers.

    This registry maintains information about:
    - Which services produce which events
    - Which services consume which events
    - The schema (event class) for each event type
    - Documentation about each event type
    """

    def __init__(self):
        self._producers: Dict[EventType, Set[str]] = {}
        self._consumers: Dict[EventType, Set[str]] = {}
        self._event_schemas: Dict[EventType, Dict[str, Any]] = {}
        self._logger = logging.getLogger(__name__)

    def register_event(self, event_type: EventType, event_schema: Type[BaseEvent], description: str):
        """
        Register a new event type with its schema and description.

        Args:
            event_type: The type of event being registered
            event_schema: The Pydantic model class for this event type
            description: Human-readable description of this event type
        """
        self._event_schemas[EventType(event_type)] = {
            'schema': event_schema,
            'description': description
        }
        self._logger.debug(f"Registered event type: {event_type}")

    def register_producer(self, service_name: str, event_type: EventType):
        """
        Register a service as an event producer.

        Args:
            service_name: Name of the service producing the event
            event_type: Type of event the service produces
        """
        self._producers.setdefault(EventType(event_type), set()).add(service_name)
        self._logger.debug(f"Registered producer {service_name} for {event_type}")

    def register_consumer(self, service_name: str, event_type: EventType):
        """
        Register a service as an event consumer.

        Args:
            service_name: Name of the service consuming the event
            event_type: Type of event the service consumes
        """
        self._consumers.setdefault(EventType(event_type), set()).add(service_name)
        self._logger.debug(f"Registered consumer {service_name} for {event_type}")

    def validate_schema(self, event: BaseEvent) -> bool:
        """
        Validate that an event matches its registered schema.

        Args:
            event: The event to validate

        Returns:
            bool: True if validation passes

        Raises:
            ValueError: If event type is unknown
            TypeError: If event doesn't match registered schema
        """
        event_type = event.event_type
        if event_type not in self._event_schemas:
            raise ValueError(f"Unknown event type: {event_type}")

        schema = self._event_schemas[event_type]['schema']
        if not isinstance(event, schema):
            raise TypeError(f"Event does not match schema for {event_type}")

        return True

    def get_event_flow(self, event_type: EventType) -> Dict[str, Set[str]]:
        """
        Get all producers and consumers for an event type.

        Returns:
            Dict containing producers and consumers sets
        """
        event_type = EventType(event_type)
        return {
            'producers': self._producers.get(event_type, set()),
            'consumers': self._consumers.get(event_type, set())
        }

    def get_event_schema(self, event_type: EventType) -> Optional[Type[BaseEvent]]:
        """Get the schema class for an event type, or None if not registered."""
        entry = self._event_schemas.get(EventType(event_type))
        return entry['schema'] if entry else None

    def get_all_event_types(self) -> Set[EventType]:
        """Get all registered event types."""
        return set(self._event_schemas.keys())

    def generate_documentation(self) -> Dict[str, Any]:
        """
        Generate documentation of the event system.

        Returns:
            Dictionary with description, producers, consumers and schema per event type
        """
        doc = {}
        for event_type in self.get_all_event_types():
            doc[event_type.value] = {
                'description': self._event_schemas[event_type]['description'],
                'producers': sorted(self._producers.get(event_type, set())),
                'consumers': sorted(self._consumers.get(event_type, set())),
                'schema': self._event_schemas[event_type]['schema'].__name__
            }
        return doc


class ServiceRegistry:
    """
    Registry for services and their lifecycle state.
    """

    def __init__(self):
        self._services = {}
        self._states = {}
        self._logger = logging.getLogger(__name__)

    def register_service(self, service_name: str, service_instance: Any):
        """Register a service with the registry."""
        self._services[service_name] = service_instance
        self._states[service_name] = "registered"
        self._logger.debug(f"Registered service: {service_name}")

    def get_service(self, service_name: str) -> Optional[Any]:
        """Get a service by name, or None if not found."""
        return self._services.get(service_name)

    def set_service_state(self, service_name: str, state: str):
        """
        Update a service's state.

        Args:
            service_name: Name of the service
            state: New state of the service
        """
        self._states[service_name] = state
        self._logger.debug(f"Service {service_name} state changed to {state}")

    def get_service_state(self, service_name: str) -> Optional[str]:
        """Get a service's state, or None if not found."""
        return self._states.get(service_name)

