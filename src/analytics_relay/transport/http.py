"""HTTP transport posting batches to the collector."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import httpx

from ..events import EventBatch
from .base import SubmitOutcome, Transport


logger = logging.getLogger(__name__)


@dataclass
class HttpTransport(Transport):
    """
    POSTs each batch as JSON to a collector URL.

    Config:
        url: Collector endpoint (e.g. "https://analytics.example.com/api/events")
        timeout: Per-request timeout in seconds
        headers: Extra request headers
        client: Pre-built ``httpx.AsyncClient`` (tests inject one with a
            mock transport). Owned by the caller if supplied.
    """
    url: str
    timeout: float = 10.0
    headers: dict[str, str] = field(default_factory=dict)
    client: httpx.AsyncClient | None = None

    _owns_client: bool = field(default=False, init=False)

    async def start(self) -> None:
        if self.client is None:
            self.client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        logger.info(f"HTTP transport ready (url={self.url})")

    async def stop(self) -> None:
        if self.client is not None and self._owns_client:
            await self.client.aclose()
            self.client = None
            self._owns_client = False

    async def submit(self, batch: EventBatch) -> SubmitOutcome:
        if self.client is None:
            await self.start()

        body = batch.to_json()
        logger.debug(f"Sending JSON payload:\n{body}")

        try:
            response = await self.client.post(
                self.url,
                content=body.encode("utf-8"),
                headers={**self.headers, "Content-Type": "application/json"},
            )
        except httpx.HTTPError as e:
            return SubmitOutcome.transport_error(f"{type(e).__name__}: {e}")

        if response.status_code != 200:
            return SubmitOutcome.response(response.status_code, response.text[:200])
        return SubmitOutcome.response(response.status_code)

    async def health_check(self) -> bool:
        return self.client is not None and not self.client.is_closed
