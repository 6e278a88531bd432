"""Analytic event types and the batch wire/persistence format."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator


@dataclass(frozen=True, slots=True)
class AnalyticEvent:
    """
    A single unit of telemetry.

    ``event_id`` is a process-local sequence number assigned by the
    EventStore when the event is accepted. It never leaves the process:
    two events with the same type and data are still distinct events.
    """
    type: str = ""
    data: str = ""
    event_id: int = field(default=0, compare=False)

    def __post_init__(self):
        # Never null on the wire
        if self.type is None:
            object.__setattr__(self, "type", "")
        if self.data is None:
            object.__setattr__(self, "data", "")

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for serialization."""
        return {"type": self.type, "data": self.data}

    @classmethod
    def from_dict(cls, data: dict[str, Any], event_id: int = 0) -> AnalyticEvent:
        return cls(
            type=str(data.get("type") or ""),
            data=str(data.get("data") or ""),
            event_id=event_id,
        )


@dataclass(frozen=True, slots=True)
class EventBatch:
    """
    Ordered group of events.

    Used both as the POST body sent to the collector and as the schema of
    the persisted buffer file: ``{"events": [{"type": ..., "data": ...}]}``.
    """
    events: tuple[AnalyticEvent, ...] = ()

    @classmethod
    def of(cls, events: Iterable[AnalyticEvent]) -> EventBatch:
        return cls(events=tuple(events))

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self) -> Iterator[AnalyticEvent]:
        return iter(self.events)

    def __bool__(self) -> bool:
        return bool(self.events)

    def to_dict(self) -> dict[str, Any]:
        return {"events": [event.to_dict() for event in self.events]}

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> EventBatch:
        """
        Build a batch from a decoded payload.

        Missing or null ``events`` gives an empty batch; missing or null
        fields on an event become empty strings.

        Raises:
            ValueError: If the payload is not shaped like a batch
        """
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError(f"Expected an object, got {type(data).__name__}")

        raw_events = data.get("events") or []
        if not isinstance(raw_events, list):
            raise ValueError("'events' must be a list")

        events = []
        for raw in raw_events:
            if not isinstance(raw, dict):
                raise ValueError(f"Event entries must be objects, got {type(raw).__name__}")
            events.append(AnalyticEvent.from_dict(raw))
        return cls(events=tuple(events))

    @classmethod
    def from_json(cls, text: str) -> EventBatch:
        """Parse a JSON document. Blank text is an empty batch."""
        if not text.strip():
            return cls()
        return cls.from_dict(json.loads(text))
