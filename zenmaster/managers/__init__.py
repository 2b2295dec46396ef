"""
Managers hold the Zen Master session logic. They are synchronous, own no
event loop, and get time and hardware from the collaborators they are given.
"""

from .motion_tracker import MotionTracker
from .audio_numb_manager import AudioNumbManager, AudioNumbState
from .session_manager import SessionManager, SessionPhase, SessionOutcome, SessionSnapshot

__all__ = [
    'MotionTracker',
    'AudioNumbManager',
    'AudioNumbState',
    'SessionManager',
    'SessionPhase',
    'SessionOutcome',
    'SessionSnapshot',
]
