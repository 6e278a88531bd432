"""Test doubles for the analytics relay.

The pipeline only ever waits through an injected ``sleep``; ``FakeClock``
replaces it with virtual time so cooldown and retry timing can be asserted
exactly without real delays.
"""

from __future__ import annotations

import asyncio

from analytics_relay.config import Config, PersistenceConfig, RelayConfig
from analytics_relay.events import EventBatch
from analytics_relay.transport.base import SubmitOutcome, Transport


async def settle(rounds: int = 50) -> None:
    """Let ready tasks and callbacks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeClock:
    """Virtual clock: ``sleep`` parks until ``advance`` passes its deadline."""

    def __init__(self):
        self.now = 0.0
        self._sleepers: list[tuple[float, asyncio.Future]] = []

    def time(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        future = asyncio.get_running_loop().create_future()
        self._sleepers.append((self.now + delay, future))
        await future

    @property
    def pending_sleeps(self) -> list[float]:
        return sorted(wake for wake, fut in self._sleepers if not fut.done())

    async def advance(self, seconds: float) -> None:
        target = self.now + seconds
        await settle()
        while True:
            self._sleepers = [(w, f) for w, f in self._sleepers if not f.done()]
            due = [(w, f) for w, f in self._sleepers if w <= target]
            if not due:
                break
            wake, future = min(due, key=lambda item: item[0])
            self._sleepers.remove((wake, future))
            self.now = wake
            future.set_result(None)
            await settle()
        self.now = target
        await settle()


class ScriptedTransport(Transport):
    """
    Transport returning scripted outcomes and recording every attempt.

    Outcomes are consumed in order; once exhausted, ``default`` is used.
    While ``gate`` is set to an unset ``asyncio.Event``, submits block on
    it (a request "in flight").
    """

    def __init__(self, outcomes=None, default=None, clock: FakeClock | None = None):
        self.outcomes = list(outcomes or [])
        self.default = default or SubmitOutcome.response(200)
        self.clock = clock
        self.calls: list[tuple[float | None, EventBatch]] = []
        self.gate: asyncio.Event | None = None
        self.cancelled = 0

    async def submit(self, batch: EventBatch) -> SubmitOutcome:
        self.calls.append((self.clock.now if self.clock else None, batch))
        if self.gate is not None:
            try:
                await self.gate.wait()
            except asyncio.CancelledError:
                self.cancelled += 1
                raise
        if self.outcomes:
            outcome = self.outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        return self.default

    @property
    def attempt_times(self) -> list[float | None]:
        return [t for t, _ in self.calls]

    def sent_pairs(self, index: int = -1) -> list[tuple[str, str]]:
        return [(e.type, e.data) for e in self.calls[index][1]]


FAIL_503 = SubmitOutcome.response(503, "unavailable")


def make_config(**relay) -> Config:
    relay.setdefault("server_url", "http://collector.test/api/events")
    relay.setdefault("initial_events_count", 0)
    return Config(
        relay=RelayConfig(**relay),
        persistence=PersistenceConfig(backend="memory"),
    )
