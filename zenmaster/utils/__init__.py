"""Signal processing helpers shared by the Zen Master managers."""

from .filters import EwmaFilter, LowPassFilter

__all__ = ['EwmaFilter', 'LowPassFilter']
