"""
Test doubles for the Zen Master unit tests.

ManualScheduler replaces wall-clock time with a virtual clock that only moves
when a test calls `advance()`, so countdowns, session ticks and debounce
windows can be stepped through deterministically.
"""

import heapq
import itertools
from typing import Any, List, Tuple

from zenmaster.core.scheduler import Scheduler, TimerHandle
from zenmaster.hardware.accelerometer import AccelerometerSource
from zenmaster.hardware.volume import VolumeControl

class ManualScheduler(Scheduler):
    """Scheduler driven by a virtual clock."""

    def __init__(self):
        self.now = 0.0
        self._queue: List[Tuple[float, int, TimerHandle]] = []
        self._counter = itertools.count()

    def call_later(self, delay, callback):
        handle = TimerHandle(callback)
        self._push(self.now + delay, handle)
        return handle

    def call_every(self, interval, callback):
        handle = TimerHandle(callback, interval)
        self._push(self.now + interval, handle)
        return handle

    def _push(self, deadline, handle):
        heapq.heappush(self._queue, (deadline, next(self._counter), handle))

    @property
    def pending(self) -> int:
        """Number of timers that may still fire."""
        return sum(1 for _, _, handle in self._queue if handle.active)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing every timer that falls due, in order."""
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            deadline, _, handle = heapq.heappop(self._queue)
            if not handle.active:
                continue
            self.now = deadline
            if handle.periodic:
                self._push(deadline + handle.interval, handle)
            handle.fire()
        self.now = target

    def tick(self, count: int = 1, interval: float = 1.0) -> None:
        for _ in range(count):
            self.advance(interval)

class FakeAccelerometer(AccelerometerSource):
    """Accelerometer whose samples are pushed by the test."""

    def __init__(self, available: bool = True, streaming_supported: bool = True):
        super().__init__(None, "FakeAccelerometer")
        self.available = available
        self.streaming_supported = streaming_supported
        self.streaming_requests = 0

    def has_accelerometer(self) -> bool:
        return self.available

    def enable_streaming(self) -> bool:
        self.streaming_requests += 1
        return self.streaming_supported

    def push(self, sample: Any) -> None:
        self._emit(sample)

    def push_many(self, sample: Any, count: int) -> None:
        for _ in range(count):
            self._emit(sample)

class RecordingVolumeControl(VolumeControl):
    """Volume control that records every write."""

    def __init__(self, initial_volume: float = 0.8, fail_reads: bool = False):
        super().__init__("RecordingVolumeControl")
        self.volume = initial_volume
        self.fail_reads = fail_reads
        self.reads = 0
        self.writes: List[float] = []

    def get_volume(self) -> float:
        self.reads += 1
        if self.fail_reads:
            raise RuntimeError("volume unavailable")
        return self.volume

    def set_volume(self, volume: float) -> None:
        self._check_volume(volume)
        self.writes.append(volume)
        self.volume = volume

STILL = (0.0, 0.0, 1.0)

def moving_samples(count: int, amplitude: float = 0.5):
    """Alternating samples that swing well away from gravity."""
    for i in range(count):
        sign = 1.0 if i % 2 == 0 else -1.0
        yield (sign * amplitude, -sign * amplitude, 1.0 + sign * amplitude)
