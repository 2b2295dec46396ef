"""
Session Manager

The Zen Master session state machine: a fixed countdown, a timed run, and the
glue between the motion tracker and the audio numbing policy.

Phases:
    IDLE -> COUNTDOWN -> RUNNING -> IDLE

- IDLE: waiting for `start_countdown()`; the selected duration can be changed.
- COUNTDOWN: `countdown_ticks` ticks to get in position. No motion tracking.
- RUNNING: the motion tracker runs; leaving the deadzone numbs the audio,
  re-entering it restores the audio. Ends by itself after the selected
  duration (outcome COMPLETED) or on `stop_session()` (outcome STOPPED).

Nothing here raises: guard violations are logged and ignored, and after
`dispose()` every call and every late callback is a no-op.
"""

import math
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Callable, List, Optional, Union

import structlog

from zenmaster.core.config import AudioNumbConfig, MotionConfig, SessionConfig
from zenmaster.core.scheduler import Scheduler, TimerHandle
from zenmaster.hardware.accelerometer import AccelerometerSource
from zenmaster.hardware.volume import VolumeControl
from .audio_numb_manager import AudioNumbManager
from .motion_tracker import MotionTracker

class SessionPhase(str, Enum):
    """Phase of a meditation session."""
    IDLE = "idle"
    COUNTDOWN = "countdown"
    RUNNING = "running"

class SessionOutcome(str, Enum):
    """How the most recent session ended."""
    COMPLETED = "completed"
    STOPPED = "stopped"

STATUS_LABELS = {
    SessionPhase.IDLE: "",
    SessionPhase.COUNTDOWN: "Get in position",
    SessionPhase.RUNNING: "Don't move!",
}

@dataclass(frozen=True)
class SessionSnapshot:
    """Observable session state handed to listeners."""
    phase: SessionPhase
    countdown_remaining: int
    remaining_duration: int
    selected_duration: int
    is_in_deadzone: bool
    is_audio_numbed: bool
    outcome: Optional[SessionOutcome] = None

    @property
    def status_label(self) -> str:
        return STATUS_LABELS[self.phase]

SessionListener = Callable[[SessionSnapshot], None]

class SessionManager:
    """Runs one meditation session at a time and notifies listeners of every change."""

    def __init__(self,
                 scheduler: Scheduler,
                 accelerometer: Optional[AccelerometerSource] = None,
                 volume_control: Optional[VolumeControl] = None,
                 config: Optional[SessionConfig] = None,
                 motion_config: Optional[MotionConfig] = None,
                 audio_config: Optional[AudioNumbConfig] = None):
        """
        Args:
            scheduler: Timer source for countdown and session ticks
            accelerometer: Optional accelerometer stream; without one the
                session still runs but never numbs audio
            volume_control: Optional output volume control; without one
                numbing is skipped
            config: Countdown length, tick interval and default duration
            motion_config: Motion tracker constants
            audio_config: Audio numbing constants
        """
        self.config = config or SessionConfig()
        self.logger = structlog.get_logger(component="session")
        self._scheduler = scheduler

        self._tracker = MotionTracker(accelerometer, self._handle_deadzone_changed, motion_config)
        self._audio = (AudioNumbManager(volume_control, scheduler, audio_config)
                       if volume_control is not None else None)

        self._phase = SessionPhase.IDLE
        self._selected_duration = self.config.default_duration
        self._remaining_duration = 0
        self._countdown_remaining = self.config.countdown_ticks
        self._is_in_deadzone = True
        self._outcome: Optional[SessionOutcome] = None

        self._countdown_timer: Optional[TimerHandle] = None
        self._session_timer: Optional[TimerHandle] = None
        self._listeners: List[SessionListener] = []
        self._disposed = False

    # Observable state

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def selected_duration(self) -> int:
        return self._selected_duration

    @property
    def remaining_duration(self) -> int:
        return self._remaining_duration

    @property
    def countdown_remaining(self) -> int:
        return self._countdown_remaining

    @property
    def is_in_deadzone(self) -> bool:
        return self._is_in_deadzone

    @property
    def is_audio_numbed(self) -> bool:
        return self._audio is not None and self._audio.is_numbed

    @property
    def outcome(self) -> Optional[SessionOutcome]:
        return self._outcome

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def motion_tracker(self) -> MotionTracker:
        return self._tracker

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            phase=self._phase,
            countdown_remaining=self._countdown_remaining,
            remaining_duration=self._remaining_duration,
            selected_duration=self._selected_duration,
            is_in_deadzone=self._is_in_deadzone,
            is_audio_numbed=self.is_audio_numbed,
            outcome=self._outcome,
        )

    def status_label(self) -> str:
        """User-facing helper text for the current phase."""
        return STATUS_LABELS[self._phase]

    def add_listener(self, listener: SessionListener) -> None:
        if not self._disposed and listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # Commands

    def update_selected_duration(self, duration: Union[int, float, timedelta]) -> None:
        """
        Set the session length for the next session.

        Accepts seconds or a timedelta; fractions of a second are dropped. A
        session already counting down or running keeps its remaining duration.
        """
        if self._disposed:
            return
        if isinstance(duration, timedelta):
            duration = duration.total_seconds()
        if not math.isfinite(duration):
            self.logger.debug("Ignoring non-finite duration", duration=duration)
            return
        self._selected_duration = int(duration)
        self._notify()

    def start_countdown(self) -> None:
        """Start the countdown that leads into a session."""
        if self._disposed:
            return
        if self._selected_duration <= 0:
            self.logger.debug("Ignoring start, no duration selected")
            return
        if self._phase is not SessionPhase.IDLE:
            self.logger.warning("Ignoring start, session already in progress", phase=self._phase.value)
            return

        self.cancel_timers()
        timer = self._schedule_ticks(self._on_countdown_tick)
        if timer is None:
            return
        self._countdown_timer = timer
        self._phase = SessionPhase.COUNTDOWN
        self._countdown_remaining = self.config.countdown_ticks
        self._remaining_duration = self._selected_duration
        self._is_in_deadzone = True
        self.logger.info("Countdown started", ticks=self._countdown_remaining,
                         duration=self._selected_duration)
        self._notify()

    def stop_session(self) -> None:
        """Stop the current session and return to idle."""
        if self._disposed:
            return
        was_active = self._phase is not SessionPhase.IDLE
        self.cancel_timers()
        self._tracker.stop()
        self._restore_audio_if_needed()
        self._reset_to_idle(SessionOutcome.STOPPED if was_active else self._outcome)
        if was_active:
            self.logger.info("Session stopped")

    def cancel_timers(self) -> None:
        """Cancel any running countdown or session timers."""
        for timer in (self._countdown_timer, self._session_timer):
            if timer is not None:
                timer.cancel()
        self._countdown_timer = None
        self._session_timer = None

    def dispose(self) -> None:
        """
        Tear the session down for good.

        Timers are cancelled and the sensor subscription dropped before this
        returns, so no late tick or sample can reach the session afterwards.
        """
        if self._disposed:
            return
        self._disposed = True
        self.cancel_timers()
        self._tracker.stop()
        if self._audio is not None:
            self._audio.close()
        self._listeners.clear()
        self._phase = SessionPhase.IDLE
        self._countdown_remaining = self.config.countdown_ticks
        self._remaining_duration = 0
        self._is_in_deadzone = True
        self.logger.debug("Session disposed")

    # Transitions

    def _on_countdown_tick(self) -> None:
        if self._disposed or self._phase is not SessionPhase.COUNTDOWN:
            return
        self._countdown_remaining -= 1
        self._notify()
        if self._countdown_remaining <= 0:
            self._start_running()

    def _start_running(self) -> None:
        self.cancel_timers()
        timer = self._schedule_ticks(self._on_session_tick)
        if timer is None:
            self._reset_to_idle(SessionOutcome.STOPPED)
            return
        self._session_timer = timer
        self._phase = SessionPhase.RUNNING
        self._remaining_duration = self._selected_duration
        self._is_in_deadzone = True
        self._tracker.start()
        self.logger.info("Session running", duration=self._remaining_duration,
                         motion_tracking=self._tracker.is_tracking)
        self._notify()

    def _schedule_ticks(self, callback) -> Optional[TimerHandle]:
        try:
            return self._scheduler.call_every(self.config.tick_interval, callback)
        except Exception as e:
            self.logger.error(f"Could not schedule session ticks: {e}",
                              tick_interval=self.config.tick_interval)
            return None

    def _on_session_tick(self) -> None:
        if self._disposed or self._phase is not SessionPhase.RUNNING:
            return
        self._remaining_duration -= 1
        self._notify()
        if self._remaining_duration <= 0:
            self.cancel_timers()
            self.logger.info("Session completed", duration=self._selected_duration)
            self._reset_to_idle(SessionOutcome.COMPLETED)

    def _reset_to_idle(self, outcome: Optional[SessionOutcome]) -> None:
        self._tracker.stop()
        self._restore_audio_if_needed()
        self._phase = SessionPhase.IDLE
        self._countdown_remaining = self.config.countdown_ticks
        self._remaining_duration = 0
        self._is_in_deadzone = True
        self._outcome = outcome
        self._notify()

    def _handle_deadzone_changed(self, next_in_deadzone: bool) -> None:
        if self._disposed or next_in_deadzone == self._is_in_deadzone:
            return
        self._is_in_deadzone = next_in_deadzone
        if next_in_deadzone:
            self._restore_audio_if_needed()
        else:
            self._apply_audio_if_needed()
        self._notify()

    # Numb once when leaving the deadzone
    def _apply_audio_if_needed(self) -> None:
        if self._audio is None or self._audio.is_numbed:
            return
        self._audio.apply_numbed_audio()

    # Restore once when re-entering the deadzone or ending the session
    def _restore_audio_if_needed(self) -> None:
        if self._audio is None or not self._audio.is_numbed:
            return
        self._audio.restore_audio()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                self.logger.error(f"Error in session listener: {e}", exc_info=True)
