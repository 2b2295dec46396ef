"""
Activity implementations for Zen Master.

Activities are special types of services that represent interactive modes of
operation. The Zen Master activity runs guided stillness sessions.
"""

from .base import ActivityState, BaseActivity
from .zen_master import ZenMasterActivity
