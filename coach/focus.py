"""
Countdown timer for focus sessions.

The timer only counts; recording the finished session is left to the
completion callback (see the ``focus_timer`` management command).
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

TICK_SECONDS = 1

CompletionCallback = Callable[[int], Optional[Awaitable[None]]]


class FocusTimer:
    """
    Counts down ``minutes`` one second per tick.

    ``on_complete`` receives the planned minutes and fires exactly once, on
    the tick that reaches zero. It may be a plain function or a coroutine
    function.
    """

    def __init__(self, minutes: int, on_complete: Optional[CompletionCallback] = None) -> None:
        if minutes <= 0:
            raise ValueError("Focus sessions must last at least one minute")
        self.minutes = minutes
        self.remaining = minutes * 60
        self.on_complete = on_complete
        self._completed = False
        self._stopped = False

    @property
    def is_complete(self) -> bool:
        return self._completed

    def display(self) -> str:
        """Remaining time as ``MM:SS``."""
        return f"{self.remaining // 60:02d}:{self.remaining % 60:02d}"

    def stop(self) -> None:
        self._stopped = True

    def tick(self) -> Optional[Awaitable[None]]:
        """
        Advance one second.

        Returns:
            The callback's awaitable when completion fired on this tick and
            the callback is async, otherwise ``None``
        """
        if self._completed:
            return None
        self.remaining = max(0, self.remaining - 1)
        if self.remaining:
            return None
        self._completed = True
        logger.info("Focus session of %d minutes complete", self.minutes)
        if self.on_complete is not None:
            return self.on_complete(self.minutes)
        return None

    async def run(
        self,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_tick: Optional[Callable[['FocusTimer'], None]] = None,
    ) -> bool:
        """
        Tick once per second until the timer completes or is stopped.

        Returns:
            True if the timer ran to completion
        """
        while not self._completed and not self._stopped:
            await sleep(TICK_SECONDS)
            result = self.tick()
            if on_tick is not None:
                on_tick(self)
            if result is not None:
                await result
        return self._completed
