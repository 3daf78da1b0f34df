"""Common source adapter interface."""

from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx

from knowledge_cache.core.logging import get_logger
from knowledge_cache.core.metrics import SOURCE_LATENCY, SOURCE_REQUESTS
from knowledge_cache.models.entities import Passage, SourceKind

logger = get_logger(__name__)


class SourceError(Exception):
    """Raised by adapter internals when an upstream call cannot be used."""


class SourceAdapter:
    """Maps one external content system's records into passages.

    Subclasses implement ``_search``. ``search`` wraps it so that a timeout,
    transport failure or bad payload becomes an empty list plus a warning;
    one broken source must not abort a merged response.
    """

    kind: SourceKind
    name: str = "source"

    def __init__(self, client: httpx.AsyncClient, timeout: float = 10.0) -> None:
        self.client = client
        self.timeout = timeout

    def is_configured(self) -> bool:
        return True

    async def search(self, query: str, max_results: int) -> list[Passage]:
        if not self.is_configured():
            logger.warning("%s credentials not configured; skipping", self.name)
            SOURCE_REQUESTS.labels(source=self.name, outcome="unconfigured").inc()
            return []
        started = time.perf_counter()
        try:
            passages = await asyncio.wait_for(self._search(query, max_results), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("%s search timed out after %.1fs", self.name, self.timeout)
            SOURCE_REQUESTS.labels(source=self.name, outcome="timeout").inc()
            return []
        except (httpx.HTTPError, SourceError, ValueError) as exc:
            logger.warning("%s search failed: %s", self.name, exc)
            SOURCE_REQUESTS.labels(source=self.name, outcome="error").inc()
            return []
        finally:
            SOURCE_LATENCY.labels(source=self.name).observe(time.perf_counter() - started)
        SOURCE_REQUESTS.labels(source=self.name, outcome="ok").inc()
        return passages

    async def _search(self, query: str, max_results: int) -> list[Passage]:  # pragma: no cover - interface
        raise NotImplementedError

    async def _request_json(self, method: str, url: str, **kwargs: Any) -> Any | None:
        """Issue one request; ``None`` (logged) on a non-success status."""
        response = await self.client.request(method, url, timeout=self.timeout, **kwargs)
        if response.is_error:
            logger.warning("%s request to %s returned %s", self.name, url, response.status_code)
            return None
        return response.json()


__all__ = ["SourceAdapter", "SourceError"]
