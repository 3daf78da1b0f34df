"""Retrieval orchestration across knowledge sources."""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Awaitable, Iterable, Mapping

from knowledge_cache.core.logging import get_logger
from knowledge_cache.core.metrics import REQUEST_COUNT, REQUEST_LATENCY
from knowledge_cache.models.entities import Passage, SourceKind
from knowledge_cache.retrieval.dedupe import dedupe_passages
from knowledge_cache.retrieval.ranking import rank
from knowledge_cache.retrieval.validation import LinkValidator
from knowledge_cache.sources.base import SourceAdapter

if TYPE_CHECKING:
    from knowledge_cache.cache.helpcenter_cache import HelpCenterCache

logger = get_logger(__name__)


class RetrievalService:
    """Fans a query out to the enabled sources and merges the answers.

    Pipeline: concurrent source calls, flatten, dedupe by locator, validate
    help center locators, rank, truncate. A source that raises contributes
    nothing; an empty list means no grounding was found.
    """

    def __init__(
        self,
        adapters: Mapping[SourceKind, SourceAdapter],
        validator: LinkValidator | None = None,
        helpcenter_cache: "HelpCenterCache | None" = None,
        prefer_cache: bool = True,
        default_max_results: int = 3,
    ) -> None:
        self.adapters = dict(adapters)
        self.validator = validator
        self.helpcenter_cache = helpcenter_cache
        self.prefer_cache = prefer_cache
        self.default_max_results = default_max_results

    async def retrieve(
        self,
        query: str,
        max_results: int | None = None,
        sources: Iterable[SourceKind] | None = None,
    ) -> list[Passage]:
        start_time = time.perf_counter()
        limit = max_results or self.default_max_results
        enabled = self._enabled(sources)

        calls = [self._call_source(kind, query, limit) for kind in enabled]
        # gather cancels still-pending source calls if the caller is cancelled
        outcomes = await asyncio.gather(*calls, return_exceptions=True)

        candidates: list[Passage] = []
        for kind, outcome in zip(enabled, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                logger.warning("%s source failed: %r", kind.value, outcome)
                continue
            candidates.extend(outcome)

        unique = dedupe_passages(candidates)
        validated = await self._validate(unique)
        results = rank(validated, query)[:limit]

        REQUEST_LATENCY.labels(endpoint="retrieve", method="POST").observe(time.perf_counter() - start_time)
        REQUEST_COUNT.labels(endpoint="retrieve", method="POST", status="200").inc()
        logger.info("Retrieved %s passages from %s candidates", len(results), len(candidates))
        return results

    def _enabled(self, sources: Iterable[SourceKind] | None) -> list[SourceKind]:
        requested = list(SourceKind) if sources is None else list(dict.fromkeys(sources))
        return [kind for kind in requested if self._has_source(kind)]

    def _has_source(self, kind: SourceKind) -> bool:
        if kind is SourceKind.PUBLIC_DOCS and self.prefer_cache and self.helpcenter_cache is not None:
            return True
        return kind in self.adapters

    def _call_source(self, kind: SourceKind, query: str, limit: int) -> Awaitable[list[Passage]]:
        if kind is SourceKind.PUBLIC_DOCS and self.prefer_cache and self.helpcenter_cache is not None:
            return self.helpcenter_cache.search_cached(query, limit)
        return self.adapters[kind].search(query, limit)

    async def _validate(self, passages: list[Passage]) -> list[Passage]:
        if self.validator is None:
            return passages
        public = [passage for passage in passages if passage.source_kind is SourceKind.PUBLIC_DOCS]
        if not public:
            return passages
        valid = {id(passage) for passage in await self.validator.filter_valid(public)}
        return [
            passage
            for passage in passages
            if passage.source_kind is not SourceKind.PUBLIC_DOCS or id(passage) in valid
        ]


__all__ = ["RetrievalService"]
