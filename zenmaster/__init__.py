"""
Zen Master - a stillness meditation companion for wearable earbuds.

This package contains the session core of the Zen Master feature: it guides
a meditation session, watches the earbud accelerometer to tell whether the
user stays still, and numbs the audio output while the user moves.

Features:
- Countdown and timed session state machine with observable state
- Streaming motion tracking (gravity removal, smoothing, deadzone detection)
- Debounced audio numbing and restoration
- Typed event bus bridging the session to presentation layers
"""

__version__ = "1.0.0"
