"""Help center crawl and cached search.

A scheduled crawl walks every help center collection and stores the full
result as one snapshot; request-time searches rank that snapshot instead of
paying crawl latency, and fall back to a live search while no snapshot exists.
"""

from __future__ import annotations

import time
from typing import Any, Sequence

from knowledge_cache.cache.store import CacheStoreError, KeyValueStore
from knowledge_cache.core.logging import get_logger
from knowledge_cache.core.metrics import CACHED_PASSAGES, CRAWL_DURATION
from knowledge_cache.models.entities import CacheMetadata, CacheSnapshot, CrawlResult, Passage
from knowledge_cache.retrieval.ranking import rank
from knowledge_cache.sources.helpcenter import HelpCenterAdapter, HelpCenterError, PageOutOfRange
from knowledge_cache.utils.time import utc_now_iso

logger = get_logger(__name__)

ARTICLES_KEY = "helpcenter:articles"
METADATA_KEY = "helpcenter:metadata"


class CrawlError(Exception):
    """A crawl stopped before every collection was fully paginated."""


class HelpCenterCache:
    """Owns the help center snapshot in a key/value store."""

    def __init__(
        self,
        store: KeyValueStore,
        adapter: HelpCenterAdapter,
        page_size: int = 100,
    ) -> None:
        self.store = store
        self.adapter = adapter
        self.page_size = page_size

    # Crawl ----------------------------------------------------------------

    async def crawl(self) -> CrawlResult:
        """Fetch every collection and replace the stored snapshot.

        Collections are crawled one after the other to bound load on the help
        center. Any failure other than running past the last page aborts the
        run and leaves the previous snapshot untouched.
        """
        started = time.perf_counter()
        logger.info("Starting help center crawl")
        try:
            passages, counts = await self._crawl_all()
        except CrawlError as exc:
            logger.error("Help center crawl failed: %s", exc)
            CRAWL_DURATION.labels(status="failed").observe(time.perf_counter() - started)
            return CrawlResult(success=False, error=str(exc))

        metadata = CacheMetadata(
            last_updated=utc_now_iso(),
            passage_count=len(passages),
            counts_by_category=counts,
        )
        # passages first: metadata is only trusted once passages are present
        try:
            await self.store.set(ARTICLES_KEY, [passage.to_dict() for passage in passages])
            await self.store.set(METADATA_KEY, metadata.to_dict())
        except CacheStoreError as exc:
            logger.error("Help center cache write failed: %s", exc)
            CRAWL_DURATION.labels(status="failed").observe(time.perf_counter() - started)
            return CrawlResult(success=False, error=str(exc))
        CACHED_PASSAGES.set(len(passages))
        CRAWL_DURATION.labels(status="completed").observe(time.perf_counter() - started)
        logger.info(
            "Help center cache updated with %s passages (%s)",
            len(passages),
            ", ".join(f"{name}: {count}" for name, count in counts.items()),
        )
        return CrawlResult(
            success=True,
            passage_count=len(passages),
            counts_by_category=dict(counts),
            last_updated=metadata.last_updated,
        )

    async def _crawl_all(self) -> tuple[list[Passage], dict[str, int]]:
        passages: list[Passage] = []
        counts: dict[str, int] = {}
        for category in self.adapter.categories:
            logger.info("Fetching %s...", category)
            fetched = await self._crawl_category(category)
            counts[category] = len(fetched)
            passages.extend(fetched)
        return passages, counts

    async def _crawl_category(self, category: str) -> list[Passage]:
        collected: list[Passage] = []
        page = 1
        while True:
            try:
                result = await self.adapter.fetch_page(category, page, self.page_size)
            except PageOutOfRange:
                break
            except HelpCenterError as exc:
                raise CrawlError(str(exc)) from exc
            if not result.passages:
                break
            collected.extend(result.passages)
            if page >= result.total_pages:
                break
            page += 1
        return collected

    # Reads ----------------------------------------------------------------

    async def load_passages(self) -> list[Passage]:
        """Return cached passages; malformed entries are skipped."""
        raw = await self.store.get(ARTICLES_KEY)
        if not isinstance(raw, list):
            return []
        return _decode_passages(raw)

    async def get_metadata(self) -> CacheMetadata | None:
        try:
            passages = await self.store.get(ARTICLES_KEY)
            if not passages:
                return None
            raw = await self.store.get(METADATA_KEY)
        except CacheStoreError as exc:
            logger.warning("Cache metadata read failed: %s", exc)
            return None
        if not isinstance(raw, dict):
            return None
        try:
            return CacheMetadata.from_dict(raw)
        except (KeyError, TypeError, ValueError):
            logger.warning("Ignoring malformed cache metadata")
            return None

    async def get_snapshot(self) -> CacheSnapshot | None:
        metadata = await self.get_metadata()
        if metadata is None:
            return None
        return CacheSnapshot(passages=await self.load_passages(), metadata=metadata)

    async def search_cached(self, query: str, max_results: int) -> list[Passage]:
        """Rank the cached snapshot; search live when it is missing or unreadable."""
        try:
            passages = await self.load_passages()
        except CacheStoreError as exc:
            logger.warning("Cache read failed, falling back to real-time search: %s", exc)
            return await self.adapter.search(query, max_results)
        if not passages:
            logger.info("Cache empty, falling back to real-time search")
            return await self.adapter.search(query, max_results)
        return rank(passages, query)[:max_results]


def _decode_passages(records: Sequence[Any]) -> list[Passage]:
    passages: list[Passage] = []
    for record in records:
        if not isinstance(record, dict):
            continue
        try:
            passages.append(Passage.from_dict(record))
        except ValueError:
            continue
    return passages


__all__ = ["ARTICLES_KEY", "METADATA_KEY", "CrawlError", "HelpCenterCache"]
