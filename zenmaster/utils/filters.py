"""
Causal exponential smoothing filters for streaming sensor values.

Both filters seed on their first input: the first `update()` returns the
input unchanged, so there is no start-up transient from a zero initial value.
"""

from abc import ABC, abstractmethod
from typing import Optional

class _ExponentialFilter(ABC):
    """Shared state handling for the exponential smoothers."""

    def __init__(self, alpha: float):
        self.alpha = alpha
        self._value: Optional[float] = None

    @property
    def initialized(self) -> bool:
        """True once the filter has been seeded by its first input."""
        return self._value is not None

    @property
    def value(self) -> float:
        """Last filtered value (0.0 before the first update)."""
        return 0.0 if self._value is None else self._value

    def update(self, x: float) -> float:
        """Push a new sample and return the filtered value."""
        if self._value is None:
            self._value = x
        else:
            self._value = self._blend(self._value, x)
        return self._value

    def reset(self) -> None:
        """Forget all history; the next update reseeds the filter."""
        self._value = None

    @abstractmethod
    def _blend(self, previous: float, x: float) -> float:
        """Combine the previous filtered value with a new sample."""
        pass

class EwmaFilter(_ExponentialFilter):
    """
    Exponentially weighted moving average.

    `alpha` is the weight of the newest sample: higher alpha means less smoothing.
    """

    def _blend(self, previous: float, x: float) -> float:
        return self.alpha * x + (1.0 - self.alpha) * previous

class LowPassFilter(_ExponentialFilter):
    """
    First-order low-pass filter.

    `alpha` is the weight of the history: higher alpha means more smoothing.
    """

    def _blend(self, previous: float, x: float) -> float:
        return self.alpha * previous + (1.0 - self.alpha) * x
