"""
Event tracing for Zen Master.

Keeps a bounded buffer of recently published events so a session can be
inspected after the fact (which deadzone flips happened, when numbing kicked
in, how the timers ticked).
"""

import time
import logging
from typing import Dict, List, Optional, Any, Deque
from collections import Counter, deque
from .events import BaseEvent

class EventTracer:
    """
    Traces event flow through the system for debugging and observability.

    The tracer records events as they're published, keeping at most
    `max_events` of the most recent ones.
    """

    def __init__(self, max_events: int = 1000):
        """
        Initialize the event tracer.

        Args:
            max_events: Maximum number of events to keep in the buffer
        """
        self.max_events = max_events
        self.events: Deque[Dict[str, Any]] = deque(maxlen=max_events)
        self.logger = logging.getLogger(__name__)

    def record_event(self, event: BaseEvent) -> None:
        """
        Record an event in the trace buffer.

        Args:
            event: The event to record
        """
        self.events.append({
            'timestamp': time.time(),
            'trace_id': event.trace_id,
            'type': event.event_type.value,
            'producer': event.producer_name,
            'event_data': event.model_dump(exclude={'trace_id', 'type', 'producer_name'})
        })
        self.logger.debug(f"Recorded event {event.type} from {event.producer_name}")

    def get_trace(self, trace_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Get all events for a trace ID, or every recorded event if None."""
        if trace_id is None:
            return list(self.events)
        return [e for e in self.events if e['trace_id'] == trace_id]

    def get_events_by_type(self, event_type: str) -> List[Dict[str, Any]]:
        """Get all recorded events of a specific type."""
        return [e for e in self.events if e['type'] == event_type]

    def get_event_count(self) -> int:
        """Get the number of events currently in the buffer."""
        return len(self.events)

    def clear(self) -> None:
        """Clear all recorded events."""
        self.events.clear()

    def get_event_stats(self) -> Dict[str, Any]:
        """
        Get statistics about recorded events.

        Returns:
            Dictionary with the total count and counts per event type and producer
        """
        return {
            'total_events': len(self.events),
            'event_types': dict(Counter(e['type'] for e in self.events)),
            'producers': dict(Counter(e['producer'] for e in self.events)),
        }
