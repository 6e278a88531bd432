"""Pending event buffer and its durable mirror."""

from __future__ import annotations

import itertools
import logging
from enum import Enum

from .events import AnalyticEvent, EventBatch
from .persistence.base import PersistenceError, PersistenceGateway


logger = logging.getLogger(__name__)


class AddOutcome(str, Enum):
    """What happened to an event handed to the store."""
    REJECTED = "rejected"  # Invalid, dropped
    FIRST = "first"        # Buffer went from empty to non-empty
    APPENDED = "appended"  # Buffer already had events


class EventStore:
    """
    Ordered buffer of accepted but not yet delivered events.

    Not thread-safe: every call is expected to come from the event loop
    that drains the command queue.

    Each accepted event gets a sequence number; delivery removes events
    by that number, so events appended while a send is in flight survive
    even if they are equal by value to something that was sent.
    """

    def __init__(self, persistence: PersistenceGateway):
        self._persistence = persistence
        self._pending: list[AnalyticEvent] = []
        self._sequence = itertools.count(1)
        self._stats = {
            "added": 0,
            "rejected": 0,
            "removed": 0,
            "restored": 0,
            "saves": 0,
            "save_errors": 0,
        }

    def add_event(self, type: str, data: str | None = "") -> AddOutcome:
        """Append a new event. Empty types are logged and dropped."""
        if not type:
            logger.warning("Event type cannot be empty, dropping event")
            self._stats["rejected"] += 1
            return AddOutcome.REJECTED

        was_empty = not self._pending
        event = AnalyticEvent(type=type, data=data, event_id=next(self._sequence))
        self._pending.append(event)
        self._stats["added"] += 1

        logger.info(f"Event added: {event.type} = {event.data}. Pending events: {len(self._pending)}")
        return AddOutcome.FIRST if was_empty else AddOutcome.APPENDED

    def snapshot(self) -> EventBatch:
        """Copy of the buffer in order. Does not mutate it."""
        return EventBatch.of(self._pending)

    def remove(self, confirmed: EventBatch) -> int:
        """
        Remove exactly the events of a delivered snapshot.

        Returns the number of events removed.
        """
        sent_ids = {event.event_id for event in confirmed}
        before = len(self._pending)
        self._pending = [e for e in self._pending if e.event_id not in sent_ids]
        removed = before - len(self._pending)
        self._stats["removed"] += removed
        return removed

    def is_empty(self) -> bool:
        return not self._pending

    def __len__(self) -> int:
        return len(self._pending)

    def load_from(self, persisted: EventBatch) -> int:
        """
        Put recovered events ahead of anything buffered so far.

        Entries without a type are logged and dropped. Returns the number
        of events recovered.
        """
        recovered = []
        for e in persisted:
            if not e.type:
                logger.warning(f"Dropping persisted event without a type (data={e.data!r})")
                self._stats["rejected"] += 1
                continue
            recovered.append(AnalyticEvent(type=e.type, data=e.data, event_id=next(self._sequence)))
        self._pending = recovered + self._pending
        self._stats["restored"] += len(recovered)
        return len(recovered)

    def restore(self) -> int:
        """Load the persisted buffer and merge it in. Returns the count recovered."""
        persisted = self._persistence.load()
        if not persisted:
            return 0
        recovered = self.load_from(persisted)
        logger.info(f"Loaded {recovered} persisted events from {self._persistence.describe()}")
        return recovered

    def save(self) -> bool:
        """
        Mirror the full buffer to the durable medium.

        Returns False if the write failed; the events then only live in
        memory.
        """
        batch = self.snapshot()
        try:
            self._persistence.save(batch)
        except PersistenceError as e:
            logger.error(f"Failed to save pending events: {e}")
            self._stats["save_errors"] += 1
            return False

        self._stats["saves"] += 1
        logger.info(f"Saved {len(batch)} pending events to persistence")
        return True

    @property
    def stats(self) -> dict:
        return {**self._stats, "pending": len(self._pending)}
