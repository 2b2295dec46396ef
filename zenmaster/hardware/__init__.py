"""
Hardware abstraction layer for Zen Master.

This package provides abstractions for the earbud accelerometer stream and the
output volume control. It isolates the session core from the details of
specific sensors, transports and audio systems.
"""

from .accelerometer import (
    AccelerometerSource, QueueAccelerometer, SimulatedAccelerometer, Subscription
)
from .volume import VolumeControl, SoftwareVolumeControl, AmixerVolumeControl
