"""
Audio numbing policy.

Halves the output volume while the user moves and restores it once they are
still again. Currently only the volume is scaled; a system-level equalizer
would numb more convincingly but is not available through the volume control.

The first numbing request captures the current volume as the baseline for the
lifetime of the policy; later requests always target `baseline * numb_factor`,
so repeated numbing never compounds. Every numbing request (re)starts a
debounce timer, and a restore requested while that timer is pending waits for
it, so rapid still/moving oscillation cannot make the volume chatter.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from zenmaster.core.config import AudioNumbConfig
from zenmaster.core.scheduler import Scheduler, TimerHandle
from zenmaster.hardware.volume import VolumeControl

@dataclass
class AudioNumbState:
    """Mutable numbing state owned by one AudioNumbManager."""
    initial_volume: Optional[float] = None
    is_numbed: bool = False
    restore_queued: bool = False

class AudioNumbManager:
    """Decides when to numb and restore the output volume, and to what level."""

    def __init__(self,
                 volume_control: VolumeControl,
                 scheduler: Scheduler,
                 config: Optional[AudioNumbConfig] = None):
        """
        Args:
            volume_control: Reads and writes the output volume
            scheduler: Timer source for the debounce window
            config: Numb factor, debounce window and system UI flag
        """
        self.config = config or AudioNumbConfig()
        self.logger = structlog.get_logger(component="audio_numb")
        self.state = AudioNumbState()
        self._volume_control = volume_control
        self._scheduler = scheduler
        self._debounce_timer: Optional[TimerHandle] = None

    @property
    def is_numbed(self) -> bool:
        return self.state.is_numbed

    @property
    def restore_pending(self) -> bool:
        """True while a restore is waiting for the debounce timer."""
        return self.state.restore_queued and self._debounce_active

    @property
    def _debounce_active(self) -> bool:
        return self._debounce_timer is not None and self._debounce_timer.active

    def apply_numbed_audio(self) -> None:
        """
        Numb the output volume to `numb_factor` times the baseline.

        Safe to call repeatedly: each call cancels a queued restore and restarts
        the debounce window.
        """
        self.state.restore_queued = False
        if self._debounce_timer is not None:
            self._debounce_timer.cancel()
        self._debounce_timer = self._scheduler.call_later(
            self.config.debounce_seconds, self._handle_debounce_expired
        )

        if self.state.initial_volume is None:
            try:
                self.state.initial_volume = self._volume_control.get_volume()
            except Exception as e:
                self.logger.error(f"Could not read output volume, skipping numbing: {e}")
                return
            self._volume_control.show_system_ui = self.config.show_system_ui
            self.logger.info("Captured baseline volume", volume=self.state.initial_volume)

        target = min(max(self.state.initial_volume * self.config.numb_factor, 0.0), 1.0)
        self.state.is_numbed = True
        self._set_volume(target)
        self.logger.debug("Audio numbed", volume=target)

    def restore_audio(self) -> None:
        """
        Request restoration of the baseline volume.

        Applied immediately when no debounce window is pending, otherwise when
        the window elapses (unless another numbing request arrives first).
        """
        self.state.restore_queued = True
        self.state.is_numbed = False
        if not self._debounce_active:
            self._handle_debounce_expired()
        else:
            self.logger.debug("Restore deferred until debounce window elapses")

    def close(self) -> None:
        """
        Cancel the debounce timer, restoring the baseline right away if a
        restore is still owed. The policy can be used again afterwards.
        """
        if self._debounce_timer is not None:
            self._debounce_timer.cancel()
            self._debounce_timer = None
        if self.state.is_numbed or self.state.restore_queued:
            self.state.is_numbed = False
            self.state.restore_queued = True
            self._handle_debounce_expired()

    def _handle_debounce_expired(self) -> None:
        self._debounce_timer = None
        if not self.state.restore_queued:
            return
        self.state.restore_queued = False
        if self.state.initial_volume is None:
            return
        self._set_volume(self.state.initial_volume)
        self.logger.debug("Audio restored", volume=self.state.initial_volume)

    def _set_volume(self, volume: float) -> None:
        try:
            self._volume_control.set_volume(volume)
        except Exception as e:
            self.logger.error(f"Could not set output volume: {e}", volume=volume)
