"""Tests for the focus countdown timer."""

from unittest.mock import AsyncMock, MagicMock

from django.test import SimpleTestCase

from .focus import FocusTimer


class FocusTimerTest(SimpleTestCase):
    def test_completion_fires_exactly_once(self) -> None:
        callback = MagicMock(return_value=None)
        timer = FocusTimer(1, on_complete=callback)

        for _ in range(59):
            timer.tick()
        callback.assert_not_called()
        self.assertEqual(timer.display(), '00:01')

        timer.tick()
        timer.tick()
        timer.tick()

        callback.assert_called_once_with(1)
        self.assertTrue(timer.is_complete)
        self.assertEqual(timer.remaining, 0)

    def test_rejects_non_positive_length(self) -> None:
        with self.assertRaises(ValueError):
            FocusTimer(0)

    async def test_run_ticks_once_per_second_and_awaits_callback(self) -> None:
        sleep = AsyncMock()
        callback = AsyncMock()
        ticks = []
        timer = FocusTimer(1, on_complete=callback)

        completed = await timer.run(sleep=sleep, on_tick=lambda t: ticks.append(t.remaining))

        self.assertTrue(completed)
        self.assertEqual(sleep.await_count, 60)
        sleep.assert_awaited_with(1)
        self.assertEqual(ticks[0], 59)
        self.assertEqual(ticks[-1], 0)
        callback.assert_awaited_once_with(1)

    async def test_stopped_timer_does_not_complete(self) -> None:
        callback = MagicMock()
        timer = FocusTimer(5, on_complete=callback)

        async def stop_after_first_tick(seconds: float) -> None:
            if timer.remaining < 5 * 60:
                timer.stop()

        completed = await timer.run(sleep=stop_after_first_tick)

        self.assertFalse(completed)
        callback.assert_not_called()
