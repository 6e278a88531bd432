"""File-based persistence for the pending buffer."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from ..events import EventBatch
from .base import PersistenceError, PersistenceGateway


logger = logging.getLogger(__name__)


@dataclass
class JsonFilePersistence(PersistenceGateway):
    """
    Stores the buffer as a single pretty-printed JSON document.

    Writes go to a temporary file in the same directory which then
    replaces the target, so a crash mid-write leaves the previous
    content intact.
    """
    path: str
    encoding: str = "utf-8"
    indent: int | None = 2

    def save(self, batch: EventBatch) -> None:
        target = Path(self.path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding=self.encoding) as f:
                    f.write(batch.to_json(indent=self.indent))
                os.replace(tmp_path, target)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise PersistenceError(f"Failed to write {self.path}: {e}") from e

        logger.debug(f"Wrote {len(batch)} events to {self.path}")

    def load(self) -> EventBatch:
        target = Path(self.path)
        if not target.exists():
            logger.info(f"No persisted events at {self.path}")
            return EventBatch()

        try:
            text = target.read_text(encoding=self.encoding)
            return EventBatch.from_json(text)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read persisted events from {self.path}: {e}")
        except (json.JSONDecodeError, ValueError) as e:
            logger.error(f"Malformed persisted events in {self.path}: {e}")
        return EventBatch()

    def describe(self) -> str:
        return self.path
