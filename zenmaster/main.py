"""
Main entry point for Zen Master.

Runs a single meditation session from the command line against a simulated
earbud accelerometer and a software volume control, logging every state
change. Useful for tuning the motion constants and the debounce window
without a wearable.
"""

import argparse
import asyncio
import logging
import signal
import sys
import structlog
from typing import Optional

from zenmaster.core import EventRegistry, ServiceRegistry, EventBus, EventTracer, get_config
from zenmaster.core.config import ApplicationConfig
from zenmaster.core.events import BaseEvent, EventType
from zenmaster.activities.zen_master import ZenMasterActivity
from zenmaster.events.session import (
    SessionDurationSelectedEvent, SessionStartRequestedEvent, SessionStopRequestedEvent
)
from zenmaster.events.system import ApplicationStartupCompletedEvent
from zenmaster.hardware.accelerometer import SimulatedAccelerometer
from zenmaster.hardware.volume import SoftwareVolumeControl
from zenmaster.managers.session_manager import SessionPhase

def setup_logging(level: str = "INFO"):
    """Configure structured logging for the application."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level, logging.INFO),
        stream=sys.stdout,
    )

class ZenMasterApplication:
    """
    Application shell for Zen Master.

    Wires the event system, the hardware and the Zen Master activity, and
    runs one session to completion (or until interrupted).
    """

    def __init__(self, config: Optional[ApplicationConfig] = None, initial_volume: float = 0.8):
        """Initialize the application."""
        self.logger = structlog.get_logger(app="zenmaster")
        self.config = config or get_config()

        self.event_registry = EventRegistry()
        self.service_registry = ServiceRegistry()

        if self.config.event.tracing_enabled:
            self.event_tracer = EventTracer(max_events=self.config.event.max_trace_events)
        else:
            self.event_tracer = None

        self.event_bus = EventBus(self.event_registry, self.event_tracer)
        self.event_registry.register_event(
            EventType.APPLICATION_STARTUP_COMPLETED,
            ApplicationStartupCompletedEvent,
            "Application startup has completed"
        )
        for event_type, schema, description in (
            (EventType.SESSION_START_REQUESTED, SessionStartRequestedEvent, "Request to start a session"),
            (EventType.SESSION_STOP_REQUESTED, SessionStopRequestedEvent, "Request to stop the session"),
            (EventType.SESSION_DURATION_SELECTED, SessionDurationSelectedEvent, "Session length picked"),
        ):
            self.event_registry.register_event(event_type, schema, description)
            self.event_registry.register_producer("zenmaster", event_type)

        self.accelerometer = SimulatedAccelerometer(self.config.simulator)
        self.volume_control = SoftwareVolumeControl(initial_volume=initial_volume)
        self.activity = ZenMasterActivity(
            self.event_bus,
            self.service_registry,
            accelerometer=self.accelerometer,
            volume_control=self.volume_control,
            config=self.config,
        )

        self.session_finished = asyncio.Event()
        self._running = True

    async def initialize(self):
        """Initialize hardware and services."""
        self.logger.info("Initializing Zen Master")

        try:
            await self.accelerometer.initialize()
            await self.volume_control.initialize()
            self.event_bus.subscribe(EventType.SESSION_STATE_CHANGED, self._on_session_state, "zenmaster")
            await self.activity.start()
            await self.activity.start_activity()

            await self.event_bus.publish(
                ApplicationStartupCompletedEvent(producer_name="zenmaster"),
                "zenmaster"
            )

            self.logger.info("Zen Master initialization complete")

        except Exception as e:
            self.logger.error("Failed to initialize application", error=str(e), exc_info=True)
            raise

    async def run_session(self, duration: int) -> None:
        """Select a duration, start the session and wait for it to end."""
        self.session_finished.clear()
        await self.event_bus.publish(SessionDurationSelectedEvent(duration_seconds=duration), "zenmaster")
        await self.event_bus.publish(SessionStartRequestedEvent(), "zenmaster")
        if self.activity.session is None or self.activity.session.phase is SessionPhase.IDLE:
            self.logger.warning("Session did not start", duration=duration)
            return
        await self.session_finished.wait()

    async def _on_session_state(self, event: BaseEvent) -> None:
        self.logger.info(
            "Session state",
            phase=event.phase,
            countdown=event.countdown_remaining,
            remaining=event.remaining_duration,
            still=event.is_in_deadzone,
            numbed=event.is_audio_numbed,
            volume=round(self.volume_control.get_volume(), 3),
        )
        if event.phase == "idle" and event.outcome is not None:
            self.session_finished.set()

    async def shutdown(self):
        """Shut down services and hardware."""
        if not self._running:
            return

        self._running = False
        self.logger.info("Shutting down Zen Master")

        try:
            await self.activity.stop()
        except Exception as e:
            self.logger.error(f"Error stopping activity: {e}")

        for hardware in (self.accelerometer, self.volume_control):
            if hardware.is_initialized():
                try:
                    await hardware.shutdown()
                except Exception as e:
                    self.logger.error(f"Error shutting down {hardware.name}: {e}")

        if self.event_tracer:
            self.logger.info("Event statistics", **self.event_tracer.get_event_stats())

        self.logger.info("Zen Master shutdown complete")

    def handle_signal(self, sig):
        """
        Handle termination signals by stopping the session.

        Args:
            sig: The signal received
        """
        self.logger.info(f"Received signal {sig.name}, stopping session")
        asyncio.create_task(self.event_bus.publish(SessionStopRequestedEvent(), "zenmaster"))

def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a Zen Master stillness session against a simulated earbud.")
    parser.add_argument("--duration", type=int, default=None,
                        help="Session length in seconds (default: ZEN_SESSION_DEFAULT_DURATION)")
    parser.add_argument("--tick-interval", type=float, default=None,
                        help="Seconds per countdown/session tick; lower it to fast-forward")
    parser.add_argument("--movement-interval", type=float, default=None,
                        help="Seconds between simulated movement bursts")
    parser.add_argument("--volume", type=float, default=0.8, help="Starting output volume (0.0 to 1.0)")
    parser.add_argument("--log-level", default=None, help="Log level (default: ZEN_LOG_LEVEL)")
    return parser.parse_args(argv)

def apply_cli_overrides(config: ApplicationConfig, args: argparse.Namespace) -> ApplicationConfig:
    """
    Apply command line overrides to the loaded configuration.

    Assignments are validated, so an out-of-range value raises
    pydantic.ValidationError before any session is built.
    """
    if args.tick_interval is not None:
        config.session.tick_interval = args.tick_interval
    if args.movement_interval is not None:
        config.simulator.movement_interval = args.movement_interval
    return config

async def main(argv=None):
    """Application entry point."""
    args = parse_args(argv)
    config = apply_cli_overrides(get_config(), args)

    setup_logging(args.log_level or config.log_level.value)

    app = ZenMasterApplication(config, initial_volume=args.volume)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, lambda s=sig: app.handle_signal(s))

    try:
        await app.initialize()
        await app.run_session(args.duration if args.duration is not None else config.session.default_duration)
    finally:
        await app.shutdown()

def run():
    """Console script entry point."""
    try:
        asyncio.run(main())
    except Exception as e:
        logging.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)

if __name__ == "__main__":
    run()
