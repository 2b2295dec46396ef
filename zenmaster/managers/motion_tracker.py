"""
Motion Tracker

Turns the earbud accelerometer stream into a binary "is the user still" signal.

Per sample:
1. Three independent low-pass filters estimate gravity in the device frame.
2. Linear acceleration = raw sample - gravity estimate.
3. Its Euclidean magnitude is smoothed with an EWMA.
4. The user is in the deadzone (still) while the smoothed magnitude is at or
   below `MotionConfig.deadzone_threshold`. A single threshold compare, no
   hysteresis.
5. The change callback fires only when the deadzone state flips.

Malformed samples (non-numeric, non-finite, fewer than three axes) are
dropped without touching any state.
"""

import math
from typing import Any, Callable, Optional

import numpy as np
import structlog

from zenmaster.core.config import MotionConfig
from zenmaster.hardware.accelerometer import AccelerometerSource, Subscription
from zenmaster.utils.filters import EwmaFilter, LowPassFilter

DeadzoneCallback = Callable[[bool], None]

class MotionTracker:
    """
    Tracks IMU motion and reports deadzone transitions.

    The tracker is a no-op when no accelerometer is available: `start()`
    returns quietly and the deadzone stays at its initial "still" value.
    """

    def __init__(self,
                 source: Optional[AccelerometerSource],
                 on_deadzone_changed: DeadzoneCallback,
                 config: Optional[MotionConfig] = None):
        """
        Args:
            source: Accelerometer stream, or None when no wearable is connected
            on_deadzone_changed: Called with the new deadzone state on every flip
            config: Filter constants and deadzone threshold
        """
        self.config = config or MotionConfig()
        self.logger = structlog.get_logger(component="motion_tracker")
        self._source = source
        self._on_deadzone_changed = on_deadzone_changed
        self._subscription: Optional[Subscription] = None

        self._gravity = [LowPassFilter(self.config.gravity_filter_alpha) for _ in range(3)]
        self._magnitude_filter = EwmaFilter(self.config.ewma_alpha)
        self._is_in_deadzone = True
        self.samples_processed = 0
        self.samples_dropped = 0

    @property
    def is_in_deadzone(self) -> bool:
        return self._is_in_deadzone

    @property
    def is_tracking(self) -> bool:
        return self._subscription is not None and self._subscription.active

    @property
    def smoothed_magnitude(self) -> float:
        """Latest smoothed linear-acceleration magnitude."""
        return self._magnitude_filter.value

    def start(self) -> None:
        """Begin streaming accelerometer data and detecting motion."""
        source = self._source
        if source is None:
            self.logger.debug("No accelerometer source, motion tracking disabled")
            return
        if not source.has_accelerometer():
            self.logger.info("Device has no accelerometer, motion tracking disabled")
            return
        if not source.enable_streaming():
            self.logger.info("Accelerometer streaming unavailable, motion tracking disabled")
            return

        self._cancel_subscription()
        self._reset_state()
        # Bind the token so samples for an older subscription can be told apart
        subscription = None

        def on_sample(sample: Any) -> None:
            if subscription is self._subscription:
                self._handle_sample(sample)

        subscription = source.subscribe(on_sample)
        self._subscription = subscription
        self.logger.info("Motion tracking started")

    def stop(self) -> None:
        """Stop streaming and reset filters and deadzone state."""
        was_tracking = self.is_tracking
        self._cancel_subscription()
        self._reset_state()
        if was_tracking:
            self.logger.info("Motion tracking stopped",
                             processed=self.samples_processed,
                             dropped=self.samples_dropped)

    def _cancel_subscription(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def _reset_state(self) -> None:
        for axis_filter in self._gravity:
            axis_filter.reset()
        self._magnitude_filter.reset()
        self._is_in_deadzone = True
        self.samples_processed = 0
        self.samples_dropped = 0

    @staticmethod
    def _parse_sample(sample: Any) -> Optional[np.ndarray]:
        """Return the first three axes as floats, or None if the sample is malformed."""
        if isinstance(sample, (str, bytes)):
            return None
        try:
            values = np.asarray(sample, dtype=float).ravel()
        except (TypeError, ValueError):
            return None
        if values.size < 3 or not np.all(np.isfinite(values[:3])):
            return None
        return values[:3]

    def _handle_sample(self, sample: Any) -> None:
        values = self._parse_sample(sample)
        if values is None:
            self.samples_dropped += 1
            self.logger.debug("Dropping malformed accelerometer sample")
            return
        self.samples_processed += 1

        linear = [float(raw) - axis_filter.update(float(raw))
                  for raw, axis_filter in zip(values, self._gravity)]
        magnitude = math.sqrt(sum(component * component for component in linear))
        smoothed = self._magnitude_filter.update(magnitude)

        next_in_deadzone = smoothed <= self.config.deadzone_threshold
        if next_in_deadzone == self._is_in_deadzone:
            return

        self._is_in_deadzone = next_in_deadzone
        self.logger.debug("Deadzone changed", is_in_deadzone=next_in_deadzone,
                          smoothed_magnitude=round(smoothed, 5))
        try:
            self._on_deadzone_changed(next_in_deadzone)
        except Exception as e:
            self.logger.error(f"Error in deadzone callback: {e}", exc_info=True)
