"""
Accelerometer sources for Zen Master.

An accelerometer source answers two capability questions (is there a 3-axis
accelerometer, can it be switched to a streaming configuration) and hands out
subscriptions to its stream of (x, y, z) samples. Samples are delivered on the
event loop that owns the session, one at a time and in order.

Implementations:
- QueueAccelerometer: fed by a transport (for example a BLE notification
  thread) through an asyncio queue.
- SimulatedAccelerometer: gravity plus Gaussian noise, with periodic bursts
  of movement, for demos and soak runs without a wearable.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Tuple

import numpy as np

from zenmaster.core.config import SimulatorConfig
from .base import BaseHardware

Sample = Tuple[float, float, float]
SampleCallback = Callable[[Any], None]

class Subscription:
    """A live subscription to an accelerometer stream."""

    def __init__(self, source: "AccelerometerSource", callback: SampleCallback):
        self._source = source
        self._callback = callback
        self.active = True

    def cancel(self) -> None:
        """Stop delivery. No sample reaches the callback after this returns."""
        if not self.active:
            return
        self.active = False
        self._source._remove_subscription(self)

    def deliver(self, sample: Any) -> None:
        if self.active:
            self._callback(sample)

class AccelerometerSource(BaseHardware, ABC):
    """
    Base class for accelerometer streams.

    Subclasses decide where samples come from and call `_emit()` for each one.
    """

    def __init__(self, config: Optional[Any] = None, name: Optional[str] = None):
        super().__init__(config, name)
        self._subscriptions: List[Subscription] = []

    @abstractmethod
    def has_accelerometer(self) -> bool:
        """Whether the device exposes a 3-axis accelerometer."""
        pass

    @abstractmethod
    def enable_streaming(self) -> bool:
        """
        Switch the sensor to a streaming-capable configuration.

        Returns:
            True if samples will be streamed, False if no streaming
            configuration could be established
        """
        pass

    def subscribe(self, callback: SampleCallback) -> Subscription:
        """
        Subscribe to the sample stream.

        Args:
            callback: Called with each raw sample

        Returns:
            The subscription; cancel it to stop delivery
        """
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        self.logger.debug("Subscriber added", subscribers=len(self._subscriptions))
        return subscription

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def _remove_subscription(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
            self.logger.debug("Subscriber removed", subscribers=len(self._subscriptions))

    def _emit(self, sample: Any) -> None:
        """Deliver one sample to every active subscriber."""
        for subscription in list(self._subscriptions):
            try:
                subscription.deliver(sample)
            except Exception as e:
                self.logger.error(f"Error delivering accelerometer sample: {e}", exc_info=True)

class QueueAccelerometer(AccelerometerSource):
    """
    Accelerometer stream fed through an asyncio queue.

    Transport code pushes raw samples with `feed()` (from the event loop) or
    `feed_threadsafe()` (from any other thread); a pump task drains the queue
    and delivers samples to subscribers on the event loop.
    """

    def __init__(self,
                 available: bool = True,
                 streaming_supported: bool = True,
                 maxsize: int = 256,
                 name: Optional[str] = None):
        """
        Args:
            available: Whether the connected device has an accelerometer
            streaming_supported: Whether the sensor offers a streaming configuration
            maxsize: Queue capacity; samples beyond it are dropped
            name: Optional name for this hardware instance
        """
        super().__init__(None, name)
        self._available = available
        self._streaming_supported = streaming_supported
        self._maxsize = maxsize
        self.streaming_enabled = False
        self.dropped_samples = 0
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional[asyncio.Queue] = None

    async def _open(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue(maxsize=self._maxsize)

    def _background_loop(self):
        return self._pump()

    async def _close(self) -> None:
        # Samples fed after shutdown are dropped like samples fed before initialize
        self._queue = None
        self._loop = None
        self.streaming_enabled = False

    def has_accelerometer(self) -> bool:
        return self._available

    def enable_streaming(self) -> bool:
        if not (self._available and self._streaming_supported):
            self.logger.info("No streaming configuration available")
            return False
        self.streaming_enabled = True
        return True

    def feed(self, sample: Any) -> None:
        """
        Queue a raw sample. Must be called on the event loop.

        Samples are dropped while the source is not initialized or the queue is full.
        """
        if self._queue is None:
            self.dropped_samples += 1
            self.logger.warning("Sample fed before initialization, dropping")
            return
        try:
            self._queue.put_nowait(sample)
        except asyncio.QueueFull:
            self.dropped_samples += 1
            self.logger.warning("Sample queue full, dropping sample", dropped=self.dropped_samples)

    def feed_threadsafe(self, sample: Any) -> None:
        """Queue a raw sample from a thread other than the event loop's."""
        if self._loop is None:
            self.dropped_samples += 1
            return
        self._loop.call_soon_threadsafe(self.feed, sample)

    async def _pump(self) -> None:
        while True:
            sample = await self._queue.get()
            self._emit(sample)

class SimulatedAccelerometer(AccelerometerSource):
    """
    Synthetic accelerometer for running sessions without a wearable.

    Produces gravity along +z with small sensor noise, and once every
    `movement_interval` seconds a `movement_duration` burst of large noise
    (the tail end of each interval, so a session starts out still).
    """

    def __init__(self, config: Optional[SimulatorConfig] = None, name: Optional[str] = None):
        super().__init__(config or SimulatorConfig(), name)
        self._rng = np.random.default_rng(self.config.seed)
        self._gravity = np.array([0.0, 0.0, 1.0])
        self._elapsed = 0.0

    def _background_loop(self):
        return self._run()

    def has_accelerometer(self) -> bool:
        return True

    def enable_streaming(self) -> bool:
        return True

    def is_moving(self, t: float) -> bool:
        """Whether simulated time `t` falls inside a movement burst."""
        interval = self.config.movement_interval
        return (t % interval) >= interval - self.config.movement_duration

    def generate_sample(self, t: float) -> Sample:
        """Generate the sample for simulated time `t` (seconds)."""
        std = self.config.noise_std
        if self.is_moving(t):
            std += self.config.movement_std
        vector = self._gravity + self._rng.normal(0.0, std, 3)
        return (float(vector[0]), float(vector[1]), float(vector[2]))

    async def _run(self) -> None:
        period = 1.0 / self.config.sample_rate_hz
        while True:
            self._emit(self.generate_sample(self._elapsed))
            self._elapsed += period
            await asyncio.sleep(period)
