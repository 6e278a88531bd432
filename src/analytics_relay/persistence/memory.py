"""In-memory persistence, for tests and hosts without durable storage."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field

from ..events import EventBatch
from .base import PersistenceError, PersistenceGateway


logger = logging.getLogger(__name__)


@dataclass
class InMemoryPersistence(PersistenceGateway):
    """
    Keeps the last saved buffer as a serialized document.

    Storing the JSON text rather than the batch object means a load goes
    through the same decoding path as the file gateway.
    """
    # Pre-seeded content (e.g. a document "left over" from a previous run)
    document: str | None = None

    # Make save() raise, to exercise failure handling
    fail_saves: bool = False

    _saves: int = field(default=0, init=False)
    _loads: int = field(default=0, init=False)

    def save(self, batch: EventBatch) -> None:
        if self.fail_saves:
            raise PersistenceError("In-memory persistence configured to fail")
        self.document = batch.to_json()
        self._saves += 1

    def load(self) -> EventBatch:
        self._loads += 1
        if self.document is None:
            return EventBatch()
        try:
            return EventBatch.from_json(self.document)
        except (json.JSONDecodeError, ValueError) as e:
            logger.error(f"Malformed in-memory document: {e}")
            return EventBatch()

    @property
    def save_count(self) -> int:
        return self._saves

    @property
    def saved_batch(self) -> EventBatch | None:
        """Decoded last saved batch, or None if nothing was saved."""
        if self.document is None:
            return None
        return EventBatch.from_json(self.document)

    @property
    def stats(self) -> dict:
        return {
            "saves": self._saves,
            "loads": self._loads,
            "has_document": self.document is not None,
        }
