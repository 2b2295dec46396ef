"""
Configuration management system for Zen Master.

This module provides Pydantic models for type-safe configuration with validation
and environment variable integration. Every tunable constant of the session core
(filter alphas, deadzone threshold, debounce window, countdown length) lives here.
"""

from enum import Enum
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class LogLevel(str, Enum):
    """Log levels for the application."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

class BaseConfig(BaseSettings):
    """
    Base configuration class with common settings for all components.

    All other configuration classes should inherit from this class.
    """
    model_config = SettingsConfigDict(env_file=".env", env_prefix="ZEN_", extra="ignore", validate_assignment=True)

    debug: bool = False
    log_level: LogLevel = LogLevel.INFO

class EventConfig(BaseConfig):
    """Configuration for the event system."""
    model_config = SettingsConfigDict(env_prefix="ZEN_EVENT_")

    max_trace_events: int = 1000
    tracing_enabled: bool = True

class MotionConfig(BaseConfig):
    """
    Configuration for motion tracking.

    Accelerations are in the unit the sensor reports (g on the earbud IMU).
    The deadzone threshold is compared against the smoothed magnitude of
    gravity-free acceleration, so it is tiny compared to 1 g.
    """
    model_config = SettingsConfigDict(env_prefix="ZEN_MOTION_")

    gravity_filter_alpha: float = 0.9  # Low-pass weight of history for the gravity estimate
    ewma_alpha: float = 0.2  # EWMA weight of the newest magnitude sample
    deadzone_threshold: float = 0.01  # Smoothed magnitude at or below this counts as still

    @field_validator("gravity_filter_alpha", "ewma_alpha")
    @classmethod
    def validate_alpha(cls, v):
        """Validate smoothing factors are strictly between 0 and 1."""
        if not 0.0 < v < 1.0:
            raise ValueError("Smoothing alpha must be between 0.0 and 1.0 (exclusive)")
        return v

    @field_validator("deadzone_threshold")
    @classmethod
    def validate_threshold(cls, v):
        """Validate the deadzone threshold is not negative."""
        if v < 0.0:
            raise ValueError("Deadzone threshold must not be negative")
        return v

class AudioNumbConfig(BaseConfig):
    """Configuration for audio numbing."""
    model_config = SettingsConfigDict(env_prefix="ZEN_AUDIO_")

    numb_factor: float = 0.5  # Fraction of the baseline volume kept while numbed
    debounce_seconds: float = 2.0  # Minimum delay between the last numbing and a restore
    show_system_ui: bool = False  # Whether the platform volume indicator pops up

    @field_validator("numb_factor")
    @classmethod
    def validate_numb_factor(cls, v):
        """Validate numb factor is within range."""
        if not 0.0 <= v <= 1.0:
            raise ValueError("Numb factor must be between 0.0 and 1.0")
        return v

    @field_validator("debounce_seconds")
    @classmethod
    def validate_debounce(cls, v):
        """Validate debounce window is not negative."""
        if v < 0.0:
            raise ValueError("Debounce window must not be negative")
        return v

class SessionConfig(BaseConfig):
    """Configuration for the session state machine."""
    model_config = SettingsConfigDict(env_prefix="ZEN_SESSION_")

    countdown_ticks: int = 5
    tick_interval: float = 1.0  # seconds per countdown/session tick
    default_duration: int = 60  # seconds

    @field_validator("countdown_ticks")
    @classmethod
    def validate_countdown(cls, v):
        """Validate the countdown has at least one tick."""
        if v < 1:
            raise ValueError("Countdown must be at least one tick")
        return v

    @field_validator("tick_interval")
    @classmethod
    def validate_tick_interval(cls, v):
        """Validate tick interval is positive."""
        if v <= 0.0:
            raise ValueError("Tick interval must be positive")
        return v

class SimulatorConfig(BaseConfig):
    """Configuration for the simulated accelerometer used by the demo runner."""
    model_config = SettingsConfigDict(env_prefix="ZEN_SIM_")

    sample_rate_hz: float = 50.0
    noise_std: float = 0.0005  # g, sensor noise while still
    movement_std: float = 0.2  # g, extra noise during a movement burst
    movement_interval: float = 15.0  # seconds between the starts of movement bursts
    movement_duration: float = 2.0  # seconds
    seed: int = 42

    @field_validator("sample_rate_hz", "movement_interval")
    @classmethod
    def validate_positive(cls, v):
        """Validate rates and intervals are positive."""
        if v <= 0.0:
            raise ValueError("Value must be positive")
        return v

class ApplicationConfig(BaseConfig):
    """
    Main application configuration that combines all component configurations.

    This is the top-level configuration class that should be used by the application.
    """
    model_config = SettingsConfigDict(env_file=".env", env_prefix="ZEN_", env_nested_delimiter="__")

    event: EventConfig = Field(default_factory=EventConfig)
    motion: MotionConfig = Field(default_factory=MotionConfig)
    audio: AudioNumbConfig = Field(default_factory=AudioNumbConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    simulator: SimulatorConfig = Field(default_factory=SimulatorConfig)

def get_config() -> ApplicationConfig:
    """
    Get the application configuration.

    Returns:
        The validated ApplicationConfig instance
    """
    return ApplicationConfig()
