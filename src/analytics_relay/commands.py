"""Command queue serializing public calls onto the event loop."""

from __future__ import annotations

import asyncio
import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Callable


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Command:
    """A deferred operation, named for logging."""
    name: str
    action: Callable[[], object]

    def execute(self) -> None:
        self.action()


@dataclass
class CommandQueue:
    """
    Thread-safe FIFO of commands with a single consumer.

    Producers on any thread call ``submit``; they never touch pipeline
    state themselves. The owning event loop executes commands in
    ``drain``, either from ``run`` (woken whenever something is
    submitted) or directly.

    Features:
    - Non-blocking submit from any thread
    - Wake-up through ``loop.call_soon_threadsafe``
    - A failing command is logged and does not stop the drain
    """
    _queue: queue.SimpleQueue = field(default_factory=queue.SimpleQueue, init=False)
    _loop: asyncio.AbstractEventLoop | None = field(default=None, init=False)
    _wake: asyncio.Event | None = field(default=None, init=False)
    _stats: dict = field(default_factory=dict, init=False)
    _stats_lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    def __post_init__(self):
        self._stats = {
            "submitted": 0,
            "executed": 0,
            "errors": 0,
        }

    def bind(self, loop: asyncio.AbstractEventLoop) -> None:
        """Attach to the loop that will drain the queue (call on startup)."""
        self._loop = loop
        self._wake = asyncio.Event()
        if not self._queue.empty():
            self._wake.set()

    def submit(self, name: str, action: Callable[[], object]) -> None:
        """Enqueue a command (non-blocking, any thread)."""
        self._queue.put(Command(name, action))
        with self._stats_lock:
            self._stats["submitted"] += 1

        loop = self._loop
        if loop is None or self._wake is None:
            return
        try:
            loop.call_soon_threadsafe(self._wake.set)
        except RuntimeError:
            # Loop already closed; the command stays queued for a later drain
            logger.debug(f"Event loop closed, command {name!r} left queued")

    def drain(self) -> int:
        """Execute queued commands in FIFO order. Returns how many ran."""
        executed = 0
        while True:
            try:
                command = self._queue.get_nowait()
            except queue.Empty:
                break

            try:
                command.execute()
            except Exception:
                logger.exception(f"Command {command.name!r} failed")
                self._stats["errors"] += 1
            executed += 1
            self._stats["executed"] += 1
        return executed

    async def run(self) -> None:
        """
        Main processing loop - runs until cancelled.

        Call this as a background task.
        """
        if self._wake is None:
            raise RuntimeError("Command queue not bound to a loop")

        logger.info("Command processing loop started")

        while True:
            try:
                await self._wake.wait()
                self._wake.clear()
                self.drain()
            except asyncio.CancelledError:
                logger.info("Command processing loop cancelled")
                break

    @property
    def depth(self) -> int:
        """Commands waiting to be drained."""
        return self._queue.qsize()

    @property
    def stats(self) -> dict:
        return {**self._stats, "depth": self.depth}
