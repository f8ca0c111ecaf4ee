"""
Unit tests for MatchTimer lifecycle management.
Tests periodic and one-shot firing, cancellation, pausing and error logging.
"""
import asyncio
import unittest
from unittest.mock import AsyncMock, Mock, patch

from match_engine.timers import MatchTimer, TimerLifecycleLogger
from tests.test_fixtures import AsyncTestHelpers


class TestPeriodicTimer(unittest.IsolatedAsyncioTestCase):
    """Test cases for periodic ticking."""

    async def asyncSetUp(self):
        self.timer = MatchTimer("session_clock", "test_session")

    async def asyncTearDown(self):
        self.timer.cancel()
        if self.timer.task is not None:
            await asyncio.gather(self.timer.task, return_exceptions=True)

    async def test_ticks_until_cancelled(self):
        callback = Mock()
        self.timer.start_periodic(0.01, callback)

        self.assertTrue(await AsyncTestHelpers.wait_until(lambda: callback.call_count >= 3))
        self.timer.cancel()
        await asyncio.gather(self.timer.task, return_exceptions=True)
        calls = callback.call_count

        await asyncio.sleep(0.05)
        self.assertEqual(callback.call_count, calls)
        self.assertEqual(self.timer.tick_count, calls)
        self.assertTrue(self.timer.is_cancelled)
        self.assertFalse(self.timer.is_running)

    async def test_async_callback_awaited(self):
        callback = AsyncMock()
        self.timer.start_periodic(0.01, callback)
        self.assertTrue(await AsyncTestHelpers.wait_until(lambda: callback.await_count >= 2))

    async def test_cancel_from_inside_callback(self):
        def tick():
            if self.timer.tick_count == 2:
                self.timer.cancel()

        self.timer.start_periodic(0.01, tick)
        await AsyncTestHelpers.run_with_timeout(asyncio.gather(self.timer.task, return_exceptions=True))

        self.assertTrue(self.timer.task.done())
        self.assertEqual(self.timer.tick_count, 2)

    async def test_paused_timer_drops_ticks(self):
        callback = Mock()
        self.timer.start_periodic(0.01, callback)
        self.timer.pause()
        self.assertTrue(self.timer.is_paused)

        await asyncio.sleep(0.05)
        self.assertEqual(callback.call_count, 0)

        self.timer.resume()
        self.assertTrue(await AsyncTestHelpers.wait_until(lambda: callback.call_count >= 1))

    async def test_cannot_start_twice(self):
        self.timer.start_periodic(0.01, Mock())
        with self.assertRaises(RuntimeError):
            self.timer.start_periodic(0.01, Mock())
        with self.assertRaises(RuntimeError):
            self.timer.start_once(0.01, Mock())

    async def test_cancel_is_idempotent(self):
        self.timer.start_periodic(0.01, Mock())
        self.timer.cancel()
        self.timer.cancel()
        await asyncio.gather(self.timer.task, return_exceptions=True)
        self.assertTrue(self.timer.task.done())

    async def test_cancel_before_start(self):
        self.timer.cancel()
        self.assertTrue(self.timer.is_cancelled)
        self.assertIsNone(self.timer.task)

    async def test_callback_error_logged(self):
        callback = Mock(side_effect=ValueError("boom"))
        with patch.object(TimerLifecycleLogger, 'log_timer_error') as mock_log_error:
            self.timer.start_periodic(0.01, callback)
            results = await AsyncTestHelpers.run_with_timeout(
                asyncio.gather(self.timer.task, return_exceptions=True)
            )

        self.assertIsInstance(results[0], ValueError)
        mock_log_error.assert_called_once()
        self.assertEqual(mock_log_error.call_args.args[2], "tick_callback_error")


class TestOneShotTimer(unittest.IsolatedAsyncioTestCase):
    """Test cases for one-shot delays."""

    async def test_fires_once(self):
        timer = MatchTimer("reveal_window", "test_session")
        callback = Mock()
        timer.start_once(0.01, callback)

        await AsyncTestHelpers.run_with_timeout(timer.task)
        await asyncio.sleep(0.03)

        callback.assert_called_once()
        self.assertEqual(timer.tick_count, 1)
        self.assertFalse(timer.is_running)

    async def test_cancel_prevents_firing(self):
        timer = MatchTimer("settle_delay", "test_session")
        callback = Mock()
        timer.start_once(0.05, callback)
        timer.cancel()

        await asyncio.gather(timer.task, return_exceptions=True)
        callback.assert_not_called()
        self.assertTrue(timer.task.cancelled())

    async def test_paused_one_shot_waits_for_resume(self):
        timer = MatchTimer("reveal_window", "test_session")
        callback = Mock()
        timer.start_once(0.01, callback)
        timer.pause()

        await asyncio.sleep(0.08)
        callback.assert_not_called()

        timer.resume()
        await AsyncTestHelpers.run_with_timeout(timer.task)
        callback.assert_called_once()


if __name__ == '__main__':
    unittest.main()
