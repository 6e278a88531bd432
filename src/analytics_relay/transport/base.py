"""Base transport interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..events import EventBatch


@dataclass(frozen=True, slots=True)
class SubmitOutcome:
    """Result of one submit attempt."""
    transport_ok: bool
    status_code: int = 0
    error_message: str = ""

    @property
    def succeeded(self) -> bool:
        """Delivered only if the request completed AND the collector answered 200."""
        return self.transport_ok and self.status_code == 200

    @classmethod
    def response(cls, status_code: int, error_message: str = "") -> SubmitOutcome:
        return cls(transport_ok=True, status_code=status_code, error_message=error_message)

    @classmethod
    def transport_error(cls, error_message: str) -> SubmitOutcome:
        return cls(transport_ok=False, status_code=0, error_message=error_message)


class Transport(ABC):
    """
    Abstract base class for batch transports.

    A transport delivers one batch per call and reports what happened.
    It must not raise for delivery problems; those are outcomes.
    Cancelling the awaiting task must abort the underlying request.
    """

    @abstractmethod
    async def submit(self, batch: EventBatch) -> SubmitOutcome:
        """Submit a batch to the collector."""
        ...

    async def start(self) -> None:
        """Initialize the transport (called on startup)."""
        pass

    async def stop(self) -> None:
        """Clean up the transport (called on shutdown)."""
        pass

    async def health_check(self) -> bool:
        """Check if the transport is usable."""
        return True
