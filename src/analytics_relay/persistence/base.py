"""Base persistence interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..events import EventBatch


class PersistenceError(Exception):
    """Raised when the durable medium cannot be written."""
    pass


class PersistenceGateway(ABC):
    """
    Abstract load/save boundary for the pending event buffer.

    Gateways never hold on to events between calls: ``save`` overwrites
    whatever was stored before, ``load`` returns a fresh batch.
    """

    @abstractmethod
    def save(self, batch: EventBatch) -> None:
        """
        Overwrite the stored buffer with ``batch``.

        Safe to call repeatedly with the same content.

        Raises:
            PersistenceError: If the medium cannot be written
        """
        ...

    @abstractmethod
    def load(self) -> EventBatch:
        """
        Read the stored buffer.

        Returns an empty batch when nothing is stored. Unreadable or
        malformed content is logged and treated as empty.
        """
        ...

    def describe(self) -> str:
        """Human readable location of the medium (for logs)."""
        return type(self).__name__
