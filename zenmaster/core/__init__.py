"""
Core framework for Zen Master.

This package provides the fundamental components of the Zen Master architecture:
- Event system with typed event definitions
- Service registry and lifecycle management
- Configuration management
- Timer scheduling
- Observability and tracing
"""

from .events import EventType, BaseEvent
from .registry import EventRegistry, ServiceRegistry
from .bus import EventBus
from .tracing import EventTracer
from .service import BaseService, ServiceState
from .scheduler import Scheduler, AsyncioScheduler, TimerHandle
from .config import get_config, ApplicationConfig

__all__ = [
    'EventType',
    'BaseEvent',
    'EventRegistry',
    'ServiceRegistry',
    'EventBus',
    'EventTracer',
    'BaseService',
    'ServiceState',
    'Scheduler',
    'AsyncioScheduler',
    'TimerHandle',
    'get_config',
    'ApplicationConfig'
]
