"""Send cycle: snapshot, submit, retry, persist on exhaustion."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum

from .debouncer import Debouncer, SleepFn
from .events import EventBatch
from .store import EventStore
from .transport.base import SubmitOutcome, Transport


logger = logging.getLogger(__name__)


class DispatchState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    WAITING_RETRY = "waiting_retry"


@dataclass
class SendSession:
    """One in-flight delivery cycle for a frozen batch."""
    batch: EventBatch
    attempt: int = 0
    started_at: float = field(default_factory=time.time)
    task: asyncio.Task | None = None


class Dispatcher:
    """
    Delivers the pending buffer in send cycles.

    A cycle freezes a snapshot of the store and submits it up to
    ``max_retry_attempts`` times, ``retry_delay`` seconds apart. Success
    removes exactly the snapshotted events. Exhaustion saves the whole
    current buffer (not just the snapshot) and leaves it in memory.

    At most one cycle is active. All methods must be called on the
    event loop that owns the store.
    """

    def __init__(
        self,
        store: EventStore,
        transport: Transport,
        max_retry_attempts: int,
        retry_delay: float,
        sleep: SleepFn = asyncio.sleep,
    ):
        self._store = store
        self._transport = transport
        self.max_retry_attempts = max_retry_attempts
        self.retry_delay = retry_delay
        self._sleep = sleep
        self._debouncer: Debouncer | None = None
        self._session: SendSession | None = None
        self._state = DispatchState.IDLE
        self._stats = {
            "cycles_started": 0,
            "cycles_succeeded": 0,
            "cycles_exhausted": 0,
            "cycles_cancelled": 0,
            "attempts": 0,
            "failed_attempts": 0,
            "events_sent": 0,
        }

    def attach_debouncer(self, debouncer: Debouncer) -> None:
        """The debouncer to cancel on cycle start and re-arm after success."""
        self._debouncer = debouncer

    @property
    def state(self) -> DispatchState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._session is not None

    @property
    def session(self) -> SendSession | None:
        return self._session

    def start_send_cycle(self) -> bool:
        """
        Start delivering the current buffer.

        No-op (returns False) if a cycle is already running or there is
        nothing to send.
        """
        if self._session is not None or self._store.is_empty():
            return False

        if self._debouncer is not None:
            self._debouncer.cancel()

        session = SendSession(batch=self._store.snapshot())
        self._session = session
        self._state = DispatchState.SENDING
        self._stats["cycles_started"] += 1
        session.task = asyncio.get_running_loop().create_task(self._run(session))
        return True

    def cancel(self) -> bool:
        """
        Abandon the active cycle, if any.

        The store is left untouched; the events stay pending for a later
        cycle.
        """
        session = self._session
        if session is None:
            return False

        self._end(session)
        self._stats["cycles_cancelled"] += 1
        if session.task is not None:
            session.task.cancel()
        return True

    async def _run(self, session: SendSession) -> None:
        count = len(session.batch)
        try:
            while True:
                session.attempt += 1
                self._state = DispatchState.SENDING
                self._stats["attempts"] += 1
                logger.info(f"Sending {count} events, attempt {session.attempt}/{self.max_retry_attempts}")

                outcome = await self._submit(session.batch)
                if self._session is not session:
                    return

                if outcome.succeeded:
                    logger.info(f"Successfully sent {count} events with 200 OK response.")
                    self._store.remove(session.batch)
                    self._stats["cycles_succeeded"] += 1
                    self._stats["events_sent"] += count
                    self._end(session)
                    if not self._store.is_empty() and self._debouncer is not None:
                        self._debouncer.arm()
                    return

                self._stats["failed_attempts"] += 1
                logger.error(
                    f"Failed to send events. Transport ok: {outcome.transport_ok}, "
                    f"Response Code: {outcome.status_code}, Error: {outcome.error_message}"
                )

                if session.attempt >= self.max_retry_attempts:
                    break

                self._state = DispatchState.WAITING_RETRY
                logger.info(f"Retrying in {self.retry_delay} seconds...")
                await self._sleep(self.retry_delay)
                if self._session is not session:
                    return

            logger.error(f"Failed to send events after {self.max_retry_attempts} attempts. Events will be persisted.")
            self._stats["cycles_exhausted"] += 1
            self._end(session)
            self._store.save()

        except asyncio.CancelledError:
            logger.info("Send events cancelled.")
            raise
        finally:
            if self._session is session:
                self._end(session)

    async def _submit(self, batch: EventBatch) -> SubmitOutcome:
        try:
            return await self._transport.submit(batch)
        except Exception as e:
            logger.exception("Transport raised while submitting batch")
            return SubmitOutcome.transport_error(f"{type(e).__name__}: {e}")

    def _end(self, session: SendSession) -> None:
        if self._session is session:
            self._session = None
            self._state = DispatchState.IDLE

    @property
    def stats(self) -> dict:
        session = self._session
        return {
            **self._stats,
            "state": self._state.value,
            "in_flight_events": len(session.batch) if session else 0,
            "attempt": session.attempt if session else 0,
        }
