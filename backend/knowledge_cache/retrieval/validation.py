"""Locator reachability checks."""

from __future__ import annotations

import asyncio
from typing import Sequence

import httpx

from knowledge_cache.core.logging import get_logger
from knowledge_cache.core.metrics import LINK_CHECKS
from knowledge_cache.models.entities import Passage
from knowledge_cache.retrieval.dedupe import dedupe_locators

logger = get_logger(__name__)


class LinkValidator:
    """Drops passages whose locator no longer resolves.

    The public help center reorganizes URLs over time; a ``HEAD`` request per
    locator confirms it is still live before it is surfaced as a citation.
    All checks run concurrently, so the cost is the slowest single check.
    """

    def __init__(self, client: httpx.AsyncClient, timeout: float = 3.0) -> None:
        self.client = client
        self.timeout = timeout

    async def is_reachable(self, url: str) -> bool:
        try:
            response = await asyncio.wait_for(
                self.client.head(url, follow_redirects=True, timeout=self.timeout),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.debug("Link check timed out: %s", url)
            LINK_CHECKS.labels(outcome="timeout").inc()
            return False
        except httpx.HTTPError as exc:
            logger.debug("Link check failed: %s (%s)", url, exc)
            LINK_CHECKS.labels(outcome="error").inc()
            return False
        if response.is_success:
            LINK_CHECKS.labels(outcome="ok").inc()
            return True
        logger.debug("Link check returned %s: %s", response.status_code, url)
        LINK_CHECKS.labels(outcome="invalid").inc()
        return False

    async def filter_valid(self, passages: Sequence[Passage]) -> list[Passage]:
        if not passages:
            return []
        locators = dedupe_locators(passage.locator for passage in passages)
        checks = await asyncio.gather(*(self.is_reachable(url) for url in locators))
        reachable = {url for url, ok in zip(locators, checks) if ok}
        valid = [passage for passage in passages if passage.locator in reachable]
        dropped = len(passages) - len(valid)
        if dropped:
            logger.info("Excluded %s passages with unreachable locators", dropped)
        return valid


__all__ = ["LinkValidator"]
