"""Public help center adapter backed by the WordPress REST API."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

import httpx

from knowledge_cache.core.logging import get_logger
from knowledge_cache.models.entities import Passage, SourceKind
from knowledge_cache.retrieval.dedupe import dedupe_passages
from knowledge_cache.sources.base import SourceAdapter, SourceError
from knowledge_cache.utils.text import normalize

logger = get_logger(__name__)

DEFAULT_CATEGORIES: tuple[str, ...] = ("posts", "news", "faq")
TOTAL_PAGES_HEADER = "X-WP-TotalPages"
EXCERPT_MAX_CHARS = 500


class HelpCenterError(SourceError):
    """Non-recoverable failure talking to the help center."""


class PageOutOfRange(HelpCenterError):
    """WordPress answers 400 for a page number past the last page."""


@dataclass(slots=True)
class HelpCenterPage:
    passages: list[Passage]
    total_pages: int


class HelpCenterAdapter(SourceAdapter):
    """Searches posts, news and FAQ collections of the public help center."""

    kind = SourceKind.PUBLIC_DOCS
    name = "helpcenter"

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        categories: Sequence[str] = DEFAULT_CATEGORIES,
        body_max_chars: int = 2000,
        timeout: float = 10.0,
    ) -> None:
        super().__init__(client, timeout=timeout)
        self.base_url = base_url.rstrip("/")
        self.categories = tuple(categories)
        self.body_max_chars = body_max_chars

    def collection_url(self, category: str) -> str:
        return f"{self.base_url}/wp-json/wp/v2/{category}"

    async def _search(self, query: str, max_results: int) -> list[Passage]:
        batches = await asyncio.gather(
            *(self._search_category(category, query, max_results) for category in self.categories)
        )
        # the same article can be listed under more than one collection
        merged = dedupe_passages(passage for batch in batches for passage in batch)
        return merged[:max_results]

    async def _search_category(self, category: str, query: str, max_results: int) -> list[Passage]:
        # each collection fails on its own so the other two still contribute
        try:
            data = await self._request_json(
                "GET",
                self.collection_url(category),
                params={"search": query, "per_page": max_results},
                headers={"Accept": "application/json"},
            )
        except httpx.TimeoutException:
            logger.warning("helpcenter %s search timed out", category)
            return []
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("helpcenter %s search failed: %s", category, exc)
            return []
        if not isinstance(data, list):
            return []
        passages = self.map_posts(data, category)
        logger.info("helpcenter %s returned %s passages", category, len(passages))
        return passages

    async def fetch_page(self, category: str, page: int, per_page: int) -> HelpCenterPage:
        """Fetch one page of a collection for crawling.

        Raises:
            PageOutOfRange: the collection has fewer pages than ``page``.
            HelpCenterError: any other failure, including timeouts.
        """
        try:
            response = await self.client.get(
                self.collection_url(category),
                params={"per_page": per_page, "page": page},
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            raise HelpCenterError(f"{category} page {page}: {exc!r}") from exc
        if response.status_code == 400:
            raise PageOutOfRange(f"{category} page {page} out of range")
        if response.is_error:
            raise HelpCenterError(f"Help center API error ({category}): {response.status_code}")
        try:
            data = response.json()
        except ValueError as exc:
            raise HelpCenterError(f"{category} page {page}: invalid JSON") from exc
        if not isinstance(data, list):
            raise HelpCenterError(f"{category} page {page}: unexpected payload")
        total_pages = _parse_total_pages(response.headers.get(TOTAL_PAGES_HEADER))
        return HelpCenterPage(passages=self.map_posts(data, category), total_pages=total_pages)

    async def get_post(self, post_id: int) -> Passage | None:
        """Fetch a single article; ``None`` when it does not exist."""
        try:
            response = await self.client.get(
                f"{self.collection_url('posts')}/{post_id}",
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            raise HelpCenterError(f"post {post_id}: {exc!r}") from exc
        if response.status_code == 404:
            return None
        if response.is_error:
            raise HelpCenterError(f"Help center API error: {response.status_code}")
        try:
            data = response.json()
        except ValueError as exc:
            raise HelpCenterError(f"post {post_id}: invalid JSON") from exc
        return self.map_post(data, "posts")

    def map_posts(self, records: Iterable[Any], category: str) -> list[Passage]:
        passages: list[Passage] = []
        for record in records:
            passage = self.map_post(record, category)
            if passage is not None:
                passages.append(passage)
        return passages

    def map_post(self, record: Any, category: str) -> Passage | None:
        """Map a WordPress record; records without title or link are skipped."""
        if not isinstance(record, dict):
            return None
        title = normalize(_rendered(record.get("title")))
        link = record.get("link")
        if not title or not link:
            return None
        return Passage(
            identifier=record.get("id"),
            title=title,
            locator=str(link),
            body=normalize(_rendered(record.get("content")), self.body_max_chars),
            excerpt=normalize(_rendered(record.get("excerpt")), EXCERPT_MAX_CHARS) or None,
            source_kind=self.kind,
            category=category,
        )


def _rendered(field: Any) -> str:
    if isinstance(field, dict):
        value = field.get("rendered")
        return value if isinstance(value, str) else ""
    return ""


def _parse_total_pages(value: str | None) -> int:
    try:
        return max(int(value or 1), 1)
    except ValueError:
        return 1


__all__ = [
    "DEFAULT_CATEGORIES",
    "HelpCenterAdapter",
    "HelpCenterError",
    "HelpCenterPage",
    "PageOutOfRange",
]
