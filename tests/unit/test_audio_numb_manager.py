"""
Unit tests for the AudioNumbManager debounce and baseline handling.
"""

import unittest

from zenmaster.core.config import AudioNumbConfig
from zenmaster.managers.audio_numb_manager import AudioNumbManager
from fakes import ManualScheduler, RecordingVolumeControl

class TestAudioNumbManager(unittest.TestCase):
    """Numbing and restoring the output volume."""

    def setUp(self):
        """Set up a manager over a recording volume control at 0.8."""
        self.scheduler = ManualScheduler()
        self.volume = RecordingVolumeControl(initial_volume=0.8)
        self.manager = AudioNumbManager(self.volume, self.scheduler, AudioNumbConfig())

    def test_numb_halves_baseline(self):
        """Test that numbing sets the volume to half the captured baseline."""
        self.manager.apply_numbed_audio()
        self.assertTrue(self.manager.is_numbed)
        self.assertEqual(self.volume.writes, [0.4])

    def test_system_ui_suppressed_on_first_numb(self):
        """Test that the platform volume UI is hidden once numbing begins."""
        self.assertTrue(self.volume.show_system_ui)
        self.manager.apply_numbed_audio()
        self.assertFalse(self.volume.show_system_ui)

    def test_baseline_captured_once(self):
        """Test that repeated numbing never compounds the reduction."""
        self.manager.apply_numbed_audio()
        self.scheduler.advance(5.0)
        self.manager.restore_audio()
        self.volume.volume = 0.3
        self.manager.apply_numbed_audio()

        self.assertEqual(self.volume.reads, 1)
        self.assertEqual(self.volume.writes, [0.4, 0.8, 0.4])

    def test_restore_waits_for_debounce(self):
        """Test that a restore inside the debounce window is deferred."""
        self.manager.apply_numbed_audio()
        self.manager.restore_audio()
        self.assertFalse(self.manager.is_numbed)
        self.assertTrue(self.manager.restore_pending)
        self.assertEqual(self.volume.writes, [0.4])

        self.scheduler.advance(1.99)
        self.assertEqual(self.volume.writes, [0.4])

        self.scheduler.advance(0.01)
        self.assertEqual(self.volume.writes, [0.4, 0.8])
        self.assertFalse(self.manager.restore_pending)

    def test_debounce_measured_from_last_numb(self):
        """Test that a second numbing call restarts the debounce window."""
        self.manager.apply_numbed_audio()
        self.scheduler.advance(1.0)
        self.manager.apply_numbed_audio()
        self.manager.restore_audio()

        self.scheduler.advance(1.5)
        self.assertEqual(self.volume.writes, [0.4, 0.4])

        self.scheduler.advance(0.5)
        self.assertEqual(self.volume.writes, [0.4, 0.4, 0.8])

    def test_numb_cancels_queued_restore(self):
        """Test that numbing again before the window elapses drops the queued restore."""
        self.manager.apply_numbed_audio()
        self.manager.restore_audio()
        self.manager.apply_numbed_audio()
        self.scheduler.advance(10.0)

        self.assertTrue(self.manager.is_numbed)
        self.assertEqual(self.volume.writes, [0.4, 0.4])

    def test_restore_immediate_without_pending_timer(self):
        """Test that a restore after the window elapsed is applied right away."""
        self.manager.apply_numbed_audio()
        self.scheduler.advance(2.0)
        self.manager.restore_audio()
        self.assertEqual(self.volume.writes, [0.4, 0.8])
        self.assertEqual(self.scheduler.pending, 0)

    def test_restore_before_any_numb_writes_nothing(self):
        """Test that restoring without a captured baseline is a no-op."""
        self.manager.restore_audio()
        self.assertEqual(self.volume.writes, [])

    def test_close_restores_owed_baseline(self):
        """Test that close applies a deferred restore immediately."""
        self.manager.apply_numbed_audio()
        self.manager.restore_audio()
        self.manager.close()
        self.assertEqual(self.volume.writes, [0.4, 0.8])

        self.scheduler.advance(5.0)
        self.assertEqual(self.volume.writes, [0.4, 0.8])

    def test_close_while_numbed_restores(self):
        """Test that close never leaves the volume numbed."""
        self.manager.apply_numbed_audio()
        self.manager.close()
        self.assertFalse(self.manager.is_numbed)
        self.assertEqual(self.volume.writes, [0.4, 0.8])

    def test_close_when_idle_writes_nothing(self):
        """Test that close with nothing owed leaves the volume alone."""
        self.manager.close()
        self.assertEqual(self.volume.writes, [])

    def test_read_failure_skips_numbing(self):
        """Test that an unreadable volume is logged and numbing is skipped."""
        volume = RecordingVolumeControl(fail_reads=True)
        manager = AudioNumbManager(volume, self.scheduler)
        manager.apply_numbed_audio()
        self.assertFalse(manager.is_numbed)
        self.assertEqual(volume.writes, [])

        manager.restore_audio()
        self.scheduler.advance(5.0)
        self.assertEqual(volume.writes, [])

    def test_custom_factor_is_clamped(self):
        """Test that the numb target uses the configured factor."""
        manager = AudioNumbManager(self.volume, self.scheduler, AudioNumbConfig(numb_factor=0.25))
        manager.apply_numbed_audio()
        self.assertAlmostEqual(self.volume.writes[-1], 0.2)

if __name__ == "__main__":
    unittest.main()
