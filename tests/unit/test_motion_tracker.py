"""
Unit tests for the MotionTracker.

Samples are pushed through a fake accelerometer so every filter step is
deterministic.
"""

import math
import unittest

import numpy as np

from zenmaster.core.config import MotionConfig
from zenmaster.managers.motion_tracker import MotionTracker
from fakes import FakeAccelerometer, STILL, moving_samples

class TestMotionTrackerStartup(unittest.TestCase):
    """Capability handling when starting the tracker."""

    def setUp(self):
        """Set up a callback recorder."""
        self.changes = []

    def test_start_without_source_is_noop(self):
        """Test that a tracker without a source starts quietly and does nothing."""
        tracker = MotionTracker(None, self.changes.append)
        tracker.start()
        self.assertFalse(tracker.is_tracking)
        self.assertTrue(tracker.is_in_deadzone)

    def test_start_without_accelerometer_is_noop(self):
        """Test that a device with no accelerometer is never subscribed to."""
        source = FakeAccelerometer(available=False)
        tracker = MotionTracker(source, self.changes.append)
        tracker.start()
        self.assertFalse(tracker.is_tracking)
        self.assertEqual(source.subscriber_count, 0)
        self.assertEqual(source.streaming_requests, 0)

    def test_start_without_streaming_is_noop(self):
        """Test that tracking does not start when no streaming configuration exists."""
        source = FakeAccelerometer(streaming_supported=False)
        tracker = MotionTracker(source, self.changes.append)
        tracker.start()
        self.assertFalse(tracker.is_tracking)
        self.assertEqual(source.subscriber_count, 0)
        self.assertEqual(source.streaming_requests, 1)

    def test_restart_keeps_single_subscription(self):
        """Test that starting twice replaces the previous subscription."""
        source = FakeAccelerometer()
        tracker = MotionTracker(source, self.changes.append)
        tracker.start()
        tracker.start()
        self.assertEqual(source.subscriber_count, 1)

class TestMotionTrackerDeadzone(unittest.TestCase):
    """Deadzone detection on the sample stream."""

    def setUp(self):
        """Set up a started tracker on a fake accelerometer."""
        self.source = FakeAccelerometer()
        self.changes = []
        self.tracker = MotionTracker(self.source, self.changes.append, MotionConfig())
        self.tracker.start()

    def test_still_stream_never_calls_back(self):
        """Test that a constant stream keeps the initial deadzone without callbacks."""
        self.source.push_many(STILL, 500)
        self.assertEqual(self.changes, [])
        self.assertTrue(self.tracker.is_in_deadzone)
        self.assertEqual(self.tracker.samples_processed, 500)

    def test_gravity_is_removed(self):
        """Test that a tilted but motionless device still counts as still."""
        tilted = (0.0, math.sin(0.7), math.cos(0.7))
        self.source.push_many(tilted, 200)
        self.assertEqual(self.changes, [])
        self.assertAlmostEqual(self.tracker.smoothed_magnitude, 0.0)

    def test_movement_is_edge_triggered(self):
        """Test that leaving and re-entering the deadzone each call back exactly once."""
        for sample in moving_samples(50):
            self.source.push(sample)
        self.assertEqual(self.changes, [False])
        self.assertFalse(self.tracker.is_in_deadzone)

        self.source.push_many(STILL, 400)
        self.assertEqual(self.changes, [False, True])
        self.assertTrue(self.tracker.is_in_deadzone)

    def test_threshold_is_inclusive(self):
        """Test that a smoothed magnitude equal to the threshold counts as still."""
        tracker = MotionTracker(self.source, self.changes.append, MotionConfig(deadzone_threshold=0.0))
        tracker.start()
        self.source.push_many(STILL, 10)
        self.assertEqual(self.changes, [])

    def test_malformed_samples_are_dropped(self):
        """Test that malformed samples change nothing."""
        for sample in ("xyz", None, (1.0, 2.0), (float("nan"), 0.0, 1.0),
                       (0.0, float("inf"), 1.0), {"x": 1.0}, object(), [[1.0], [2.0, 3.0]]):
            self.source.push(sample)
        self.assertEqual(self.tracker.samples_processed, 0)
        self.assertEqual(self.tracker.samples_dropped, 8)
        self.assertEqual(self.changes, [])

        # The first valid sample still seeds the filters
        self.source.push(STILL)
        self.assertEqual(self.tracker.smoothed_magnitude, 0.0)

    def test_accepts_lists_and_arrays(self):
        """Test that lists and numpy arrays are valid samples."""
        self.source.push([0.0, 0.0, 1.0])
        self.source.push(np.array([0.0, 0.0, 1.0, 123.0]))
        self.assertEqual(self.tracker.samples_processed, 2)

    def test_stop_unsubscribes_and_resets(self):
        """Test that stop drops the subscription and resets to still."""
        for sample in moving_samples(20):
            self.source.push(sample)
        self.assertFalse(self.tracker.is_in_deadzone)

        self.tracker.stop()
        self.assertTrue(self.tracker.is_in_deadzone)
        self.assertFalse(self.tracker.is_tracking)
        self.assertEqual(self.source.subscriber_count, 0)

        for sample in moving_samples(20):
            self.source.push(sample)
        self.assertEqual(self.changes, [False])

    def test_restart_reseeds_filters(self):
        """Test that a restart does not carry gravity estimates over."""
        self.source.push_many((0.0, 0.0, 1.0), 50)
        self.tracker.stop()
        self.tracker.start()
        # A different orientation right after restart seeds instead of reading as motion
        self.source.push_many((1.0, 0.0, 0.0), 50)
        self.assertEqual(self.changes, [])

    def test_callback_errors_are_absorbed(self):
        """Test that a failing callback does not break sample processing."""
        def failing(_):
            raise RuntimeError("listener failure")

        tracker = MotionTracker(self.source, failing)
        tracker.start()
        for sample in moving_samples(10):
            self.source.push(sample)
        self.assertFalse(tracker.is_in_deadzone)

if __name__ == "__main__":
    unittest.main()
