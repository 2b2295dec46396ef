"""
Unit tests for timer handles and the asyncio-backed scheduler.
"""

import asyncio
import unittest

from zenmaster.core.scheduler import AsyncioScheduler, TimerHandle

class TestTimerHandle(unittest.TestCase):
    """TimerHandle lifecycle."""

    def test_one_shot_fires_once(self):
        """Test that a one-shot handle is finished after firing."""
        calls = []
        handle = TimerHandle(lambda: calls.append(1))
        self.assertFalse(handle.periodic)
        handle.fire()
        handle.fire()
        self.assertEqual(calls, [1])
        self.assertFalse(handle.active)

    def test_periodic_stays_active(self):
        """Test that a periodic handle keeps firing until cancelled."""
        calls = []
        handle = TimerHandle(lambda: calls.append(1), interval=1.0)
        handle.fire()
        handle.fire()
        self.assertTrue(handle.active)
        handle.cancel()
        handle.fire()
        self.assertEqual(len(calls), 2)

    def test_cancel_is_idempotent(self):
        """Test that cancelling twice runs the cancel hook once."""
        hooks = []
        handle = TimerHandle(lambda: None)
        handle._on_cancel = lambda: hooks.append(1)
        handle.cancel()
        handle.cancel()
        self.assertEqual(hooks, [1])

    def test_callback_errors_are_absorbed(self):
        """Test that a failing callback is logged rather than raised."""
        def failing():
            raise RuntimeError("tick failure")

        handle = TimerHandle(failing, interval=1.0)
        with self.assertLogs("zenmaster.core.scheduler", level="ERROR"):
            handle.fire()
        self.assertTrue(handle.active)

class TestAsyncioScheduler(unittest.IsolatedAsyncioTestCase):
    """AsyncioScheduler on a real event loop."""

    async def asyncSetUp(self):
        """Set up a scheduler on the test loop."""
        self.scheduler = AsyncioScheduler()

    async def test_call_later(self):
        """Test that a one-shot timer fires after its delay."""
        fired = asyncio.Event()
        self.scheduler.call_later(0.01, fired.set)
        await asyncio.wait_for(fired.wait(), timeout=1.0)

    async def test_cancel_before_due(self):
        """Test that a cancelled timer never fires."""
        calls = []
        handle = self.scheduler.call_later(0.01, lambda: calls.append(1))
        handle.cancel()
        await asyncio.sleep(0.05)
        self.assertEqual(calls, [])

    async def test_call_every(self):
        """Test that a periodic timer keeps firing until it cancels itself."""
        calls = []
        done = asyncio.Event()

        def tick():
            calls.append(1)
            if len(calls) == 3:
                handle.cancel()
                done.set()

        handle = self.scheduler.call_every(0.01, tick)
        await asyncio.wait_for(done.wait(), timeout=1.0)
        await asyncio.sleep(0.05)
        self.assertEqual(len(calls), 3)

    async def test_rejects_non_positive_interval(self):
        """Test that a zero interval is rejected."""
        with self.assertRaises(ValueError):
            self.scheduler.call_every(0.0, lambda: None)

if __name__ == "__main__":
    unittest.main()
