"""Single-flight cooldown timer."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable


logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class DebounceState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"


class Debouncer:
    """
    Delays the first send after an idle period so bursts share one batch.

    Arming while already armed does nothing: the deadline is fixed by the
    first event, so the oldest event in a burst waits at most ``delay``
    seconds no matter how long the burst lasts. Events arriving in the
    meantime are picked up because the batch is snapshotted when the
    timer fires.

    Must be used from a single event loop.
    """

    def __init__(
        self,
        delay: float,
        on_fire: Callable[[], object],
        sleep: SleepFn = asyncio.sleep,
        clock: Callable[[], float] | None = None,
    ):
        self.delay = delay
        self._on_fire = on_fire
        self._sleep = sleep
        self._clock = clock
        self._task: asyncio.Task | None = None
        self._deadline: float | None = None

    @property
    def state(self) -> DebounceState:
        return DebounceState.ARMED if self._task is not None else DebounceState.IDLE

    @property
    def is_armed(self) -> bool:
        return self._task is not None

    @property
    def deadline(self) -> float | None:
        """Time (loop clock, or the injected clock) at which the countdown ends."""
        return self._deadline

    def arm(self) -> bool:
        """Start the countdown. Returns False if one is already running."""
        if self._task is not None:
            return False

        loop = asyncio.get_running_loop()
        now = self._clock() if self._clock else loop.time()
        self._deadline = now + self.delay
        self._task = loop.create_task(self._countdown())
        logger.info(f"Cooldown started for {self.delay} seconds")
        return True

    def cancel(self) -> bool:
        """Disarm without firing. Returns False if nothing was armed."""
        task = self._task
        if task is None:
            return False

        self._task = None
        self._deadline = None
        task.cancel()
        return True

    async def _countdown(self) -> None:
        try:
            await self._sleep(self.delay)
        except asyncio.CancelledError:
            logger.info("Cooldown cancelled.")
            raise

        if self._task is not asyncio.current_task():
            # Disarmed after the sleep finished but before we resumed
            return

        self._task = None
        self._deadline = None
        logger.info("Cooldown finished.")
        self._on_fire()
