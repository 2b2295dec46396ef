"""
Activity events for Zen Master.

This module defines events related to activity lifecycle.
"""

from typing import Dict, Any, Optional, Literal
from zenmaster.core.events import BaseEvent, EventType

class ActivityStartedEvent(BaseEvent):
    """
    Event published when an activity has started.
    """
    type: Literal[EventType.ACTIVITY_STARTED] = EventType.ACTIVITY_STARTED
    activity: str  # Name of the activity ('zen_master')
    params: Optional[Dict[str, Any]] = None  # Additional activity parameters

class ActivityStoppedEvent(BaseEvent):
    """
    Event published when an activity has stopped.
    """
    type: Literal[EventType.ACTIVITY_STOPPED] = EventType.ACTIVITY_STOPPED
    activity: str
    reason: Optional[str] = None  # Reason for stopping ('completed', 'interrupted', 'error', etc.)
