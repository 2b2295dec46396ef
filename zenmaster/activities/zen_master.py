"""
Zen Master activity.

Owns one SessionManager per activity run and bridges it to the event bus:

- Consumes SESSION_DURATION_SELECTED, SESSION_START_REQUESTED and
  SESSION_STOP_REQUESTED and turns them into session commands.
- Publishes SESSION_STATE_CHANGED on every session change, DEADZONE_CHANGED
  when stillness flips, and SESSION_COMPLETED when a session runs its full
  length.

Session changes arrive synchronously from timer and sensor callbacks and are
handed to `publish_soon()`, so they reach the bus in session order.
"""

from typing import List, Optional

from zenmaster.activities.base import BaseActivity
from zenmaster.core.bus import EventBus
from zenmaster.core.config import ApplicationConfig
from zenmaster.core.events import BaseEvent, EventType
from zenmaster.core.registry import ServiceRegistry
from zenmaster.core.scheduler import AsyncioScheduler, Scheduler
from zenmaster.events.activities import ActivityStartedEvent, ActivityStoppedEvent
from zenmaster.events.session import (
    DeadzoneChangedEvent,
    SessionCompletedEvent,
    SessionDurationSelectedEvent,
    SessionStateChangedEvent,
)
from zenmaster.hardware.accelerometer import AccelerometerSource
from zenmaster.hardware.volume import VolumeControl
from zenmaster.managers.session_manager import (
    SessionManager, SessionOutcome, SessionPhase, SessionSnapshot
)

class ZenMasterActivity(BaseActivity):
    """Stillness meditation activity: countdown, timed session, motion-driven audio numbing."""

    ACTIVITY_NAME = "zen_master"

    PRODUCES_EVENTS = {
        EventType.ACTIVITY_STARTED: {
            'schema': ActivityStartedEvent,
            'description': "An activity has started"
        },
        EventType.ACTIVITY_STOPPED: {
            'schema': ActivityStoppedEvent,
            'description': "An activity has stopped"
        },
        EventType.SESSION_STATE_CHANGED: {
            'schema': SessionStateChangedEvent,
            'description': "Snapshot of the meditation session after a change"
        },
        EventType.DEADZONE_CHANGED: {
            'schema': DeadzoneChangedEvent,
            'description': "The user became still or started moving"
        },
        EventType.SESSION_COMPLETED: {
            'schema': SessionCompletedEvent,
            'description': "A meditation session ran its full duration"
        },
    }

    COMMANDS = {
        EventType.SESSION_DURATION_SELECTED: "_on_duration_selected",
        EventType.SESSION_START_REQUESTED: "_on_start_requested",
        EventType.SESSION_STOP_REQUESTED: "_on_stop_requested",
    }

    def __init__(self,
                 event_bus: EventBus,
                 service_registry: ServiceRegistry,
                 accelerometer: Optional[AccelerometerSource] = None,
                 volume_control: Optional[VolumeControl] = None,
                 scheduler: Optional[Scheduler] = None,
                 config: Optional[ApplicationConfig] = None,
                 name: Optional[str] = None):
        """
        Args:
            event_bus: The event bus for publishing and subscribing to events
            service_registry: The service registry for service lifecycle management
            accelerometer: Optional earbud accelerometer stream
            volume_control: Optional output volume control
            scheduler: Timer source; defaults to the running asyncio loop
            config: Application configuration
            name: Optional service name
        """
        super().__init__(event_bus, service_registry, name=name, config=config or ApplicationConfig())
        self._accelerometer = accelerometer
        self._volume_control = volume_control
        self._scheduler = scheduler
        self._session: Optional[SessionManager] = None
        self._last_snapshot: Optional[SessionSnapshot] = None

    @property
    def session(self) -> Optional[SessionManager]:
        return self._session

    async def _initialize(self) -> None:
        self._session = SessionManager(
            scheduler=self._scheduler or AsyncioScheduler(),
            accelerometer=self._accelerometer,
            volume_control=self._volume_control,
            config=self.config.session,
            motion_config=self.config.motion,
            audio_config=self.config.audio,
        )
        self._last_snapshot = self._session.snapshot()
        self._session.add_listener(self._on_session_changed)

        if "duration" in self.params:
            self._session.update_selected_duration(self.params["duration"])
        if self.params.get("autostart"):
            self._session.start_countdown()

    async def _cleanup(self) -> None:
        # The final snapshot from stop_session is queued before dispose drops listeners
        if self._session is not None:
            self._session.stop_session()
            self._session.dispose()
            self._session = None

    def _on_duration_selected(self, event: SessionDurationSelectedEvent) -> None:
        if self._session is not None:
            self._session.update_selected_duration(event.duration_seconds)

    def _on_start_requested(self, event: BaseEvent) -> None:
        if self._session is not None:
            self._session.start_countdown()

    def _on_stop_requested(self, event: BaseEvent) -> None:
        if self._session is not None:
            self._session.stop_session()

    def _on_session_changed(self, snapshot: SessionSnapshot) -> None:
        previous = self._last_snapshot
        self._last_snapshot = snapshot

        events: List[BaseEvent] = [SessionStateChangedEvent(
            producer_name=self.name,
            phase=snapshot.phase.value,
            countdown_remaining=snapshot.countdown_remaining,
            remaining_duration=snapshot.remaining_duration,
            selected_duration=snapshot.selected_duration,
            is_in_deadzone=snapshot.is_in_deadzone,
            is_audio_numbed=snapshot.is_audio_numbed,
            status_label=snapshot.status_label,
            outcome=snapshot.outcome.value if snapshot.outcome else None,
        )]
        if previous is not None and previous.is_in_deadzone != snapshot.is_in_deadzone:
            events.append(DeadzoneChangedEvent(
                producer_name=self.name,
                is_in_deadzone=snapshot.is_in_deadzone,
            ))
        if (previous is not None
                and previous.phase is SessionPhase.RUNNING
                and snapshot.phase is SessionPhase.IDLE
                and snapshot.outcome is SessionOutcome.COMPLETED):
            events.append(SessionCompletedEvent(
                producer_name=self.name,
                duration_seconds=max(snapshot.selected_duration, 0),
            ))

        self.publish_soon(events)
