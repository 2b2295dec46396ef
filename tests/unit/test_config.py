"""
Unit tests for configuration loading and validation.
"""

import os
import unittest
from unittest.mock import patch

from pydantic import ValidationError

from zenmaster.core.config import (
    ApplicationConfig, AudioNumbConfig, BaseConfig, LogLevel, MotionConfig, SessionConfig, SimulatorConfig
)
from zenmaster.main import apply_cli_overrides, parse_args

class TestConfigDefaults(unittest.TestCase):
    """Default values."""

    def test_defaults(self):
        """Test the tuned defaults."""
        config = ApplicationConfig()
        self.assertEqual(config.motion.gravity_filter_alpha, 0.9)
        self.assertEqual(config.motion.ewma_alpha, 0.2)
        self.assertEqual(config.motion.deadzone_threshold, 0.01)
        self.assertEqual(config.audio.numb_factor, 0.5)
        self.assertEqual(config.audio.debounce_seconds, 2.0)
        self.assertFalse(config.audio.show_system_ui)
        self.assertEqual(config.session.countdown_ticks, 5)
        self.assertEqual(config.session.tick_interval, 1.0)
        self.assertEqual(config.log_level, LogLevel.INFO)

class TestConfigEnvironment(unittest.TestCase):
    """Environment overrides."""

    @patch.dict(os.environ, {"ZEN_SESSION_COUNTDOWN_TICKS": "3", "ZEN_AUDIO_NUMB_FACTOR": "0.25"})
    def test_prefixed_environment(self):
        """Test that component prefixes are honoured."""
        self.assertEqual(SessionConfig().countdown_ticks, 3)
        self.assertEqual(AudioNumbConfig().numb_factor, 0.25)

    @patch.dict(os.environ, {"ZEN_LOG_LEVEL": "DEBUG"})
    def test_log_level(self):
        """Test the application log level override."""
        self.assertEqual(ApplicationConfig().log_level, LogLevel.DEBUG)

class TestConfigValidation(unittest.TestCase):
    """Validators reject nonsensical values."""

    def test_invalid_values(self):
        """Test each validator."""
        cases = [
            (MotionConfig, {"ewma_alpha": 0.0}),
            (MotionConfig, {"gravity_filter_alpha": 1.0}),
            (MotionConfig, {"deadzone_threshold": -0.1}),
            (AudioNumbConfig, {"numb_factor": 1.5}),
            (AudioNumbConfig, {"debounce_seconds": -1.0}),
            (SessionConfig, {"countdown_ticks": 0}),
            (SessionConfig, {"tick_interval": 0.0}),
            (SimulatorConfig, {"sample_rate_hz": 0.0}),
        ]
        for config_class, values in cases:
            with self.subTest(config=config_class.__name__, **values):
                with self.assertRaises(ValidationError):
                    config_class(**values)

    def test_invalid_assignment(self):
        """Test that assigning an out-of-range value is rejected and leaves the old value."""
        config = SessionConfig()
        with self.assertRaises(ValidationError):
            config.tick_interval = 0.0
        self.assertEqual(config.tick_interval, 1.0)

    def test_motion_fields(self):
        """Test that motion config carries only the filter and deadzone tuning."""
        self.assertEqual(set(MotionConfig.model_fields) - set(BaseConfig.model_fields),
                         {"gravity_filter_alpha", "ewma_alpha", "deadzone_threshold"})

class TestCommandLineOverrides(unittest.TestCase):
    """Command line values applied on top of the loaded config."""

    def test_valid_overrides_applied(self):
        """Test that given options replace config values and missing ones keep them."""
        config = apply_cli_overrides(ApplicationConfig(), parse_args(["--tick-interval", "0.5"]))
        self.assertEqual(config.session.tick_interval, 0.5)
        self.assertEqual(config.simulator.movement_interval, 15.0)

    def test_invalid_overrides_rejected(self):
        """Test that out-of-range options fail before any session is built."""
        for argv in (["--tick-interval", "0"], ["--movement-interval", "-1"]):
            with self.subTest(argv=argv):
                with self.assertRaises(ValidationError):
                    apply_cli_overrides(ApplicationConfig(), parse_args(argv))

if __name__ == "__main__":
    unittest.main()
