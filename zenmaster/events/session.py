"""
Session events for Zen Master.

This module defines the commands a presentation layer sends to a meditation
session, and the events the session publishes as its state changes.
"""

from typing import Literal, Optional
from pydantic import Field
from zenmaster.core.events import BaseEvent, EventType

class SessionStartRequestedEvent(BaseEvent):
    """
    Event requesting that a session start its countdown.

    Ignored unless the session is idle and a positive duration is selected.
    """
    type: Literal[EventType.SESSION_START_REQUESTED] = EventType.SESSION_START_REQUESTED

class SessionStopRequestedEvent(BaseEvent):
    """
    Event requesting that the current session stop and return to idle.
    """
    type: Literal[EventType.SESSION_STOP_REQUESTED] = EventType.SESSION_STOP_REQUESTED

class SessionDurationSelectedEvent(BaseEvent):
    """
    Event carrying the session length picked by the user.
    """
    type: Literal[EventType.SESSION_DURATION_SELECTED] = EventType.SESSION_DURATION_SELECTED
    duration_seconds: int  # Whole seconds; zero or negative disables starting

class SessionStateChangedEvent(BaseEvent):
    """
    Event published whenever the observable session state changes.

    Carries a full snapshot so consumers never need to query the session.
    """
    type: Literal[EventType.SESSION_STATE_CHANGED] = EventType.SESSION_STATE_CHANGED
    phase: str  # 'idle', 'countdown' or 'running'
    countdown_remaining: int
    remaining_duration: int  # seconds
    selected_duration: int  # seconds
    is_in_deadzone: bool
    is_audio_numbed: bool
    status_label: str = ""
    outcome: Optional[str] = None  # 'completed' or 'stopped' once a session has ended

class DeadzoneChangedEvent(BaseEvent):
    """
    Event published when the user enters or leaves the deadzone (stillness).
    """
    type: Literal[EventType.DEADZONE_CHANGED] = EventType.DEADZONE_CHANGED
    is_in_deadzone: bool

class SessionCompletedEvent(BaseEvent):
    """
    Event published when a session runs its full duration without being stopped.
    """
    type: Literal[EventType.SESSION_COMPLETED] = EventType.SESSION_COMPLETED
    duration_seconds: int = Field(ge=0)
