"""Console transport for development/debugging."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass

from ..events import EventBatch
from .base import SubmitOutcome, Transport


@dataclass
class ConsoleTransport(Transport):
    """
    Transport that writes batches to console (stdout/stderr).

    Always reports a 200, so the pipeline behaves as if a collector
    accepted everything.
    """
    # Output destination
    stream: str = "stdout"  # stdout | stderr

    # Output format
    format: str = "json"  # json | compact | pretty

    # Prefix for each line
    prefix: str = "[ANALYTICS] "

    async def submit(self, batch: EventBatch) -> SubmitOutcome:
        out = sys.stdout if self.stream == "stdout" else sys.stderr

        if self.format == "json":
            print(f"{self.prefix}{batch.to_json()}", file=out)
        elif self.format == "compact":
            for event in batch:
                print(f"{self.prefix}{event.type} {event.data}", file=out)
        else:  # pretty
            print(f"{self.prefix}{json.dumps(batch.to_dict(), indent=2)}", file=out)

        return SubmitOutcome.response(200)
