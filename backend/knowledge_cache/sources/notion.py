"""Internal workspace adapter backed by the Notion API."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any

import httpx

from knowledge_cache.core.logging import get_logger
from knowledge_cache.models.entities import Passage, SourceKind
from knowledge_cache.retrieval.ranking import rank
from knowledge_cache.sources.base import SourceAdapter, SourceError
from knowledge_cache.sources.notion_records import Block, PageRecord, decode_block, decode_page
from knowledge_cache.utils.text import truncate
from knowledge_cache.utils.time import parse_iso

logger = get_logger(__name__)

PAGE_BLOCK_LIMIT = 100
CHILD_BLOCK_LIMIT = 20
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class NotionAdapter(SourceAdapter):
    """Keyword search over shared Notion pages with block-level body extraction."""

    kind = SourceKind.INTERNAL_PAGES
    name = "notion"

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str | None,
        api_url: str = "https://api.notion.com/v1",
        api_version: str = "2022-06-28",
        body_max_chars: int = 2500,
        recursion_ceiling: int = 1500,
        overfetch_factor: int = 3,
        max_candidates: int = 20,
        timeout: float = 10.0,
    ) -> None:
        super().__init__(client, timeout=timeout)
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.api_version = api_version
        self.body_max_chars = body_max_chars
        self.recursion_ceiling = recursion_ceiling
        self.overfetch_factor = overfetch_factor
        self.max_candidates = max_candidates

    def is_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Notion-Version": self.api_version,
            "Content-Type": "application/json",
        }

    async def _search(self, query: str, max_results: int) -> list[Passage]:
        # the search backend orders weakly, so over-fetch and rank locally
        page_size = min(max_results * self.overfetch_factor, self.max_candidates)
        data = await self._request_json(
            "POST",
            f"{self.api_url}/search",
            headers=self.headers,
            json={
                "query": query,
                "filter": {"property": "object", "value": "page"},
                "page_size": page_size,
            },
        )
        if not isinstance(data, dict):
            return []
        pages = [page for page in map(decode_page, _as_list(data.get("results"))) if page is not None]
        bodies = await asyncio.gather(*(self.page_body(page.id) for page in pages))
        candidates = [self._to_passage(page, body) for page, body in zip(pages, bodies)]
        # newest first, so equal relevance scores keep the most recent page ahead
        candidates.sort(key=lambda passage: parse_iso(passage.last_modified) or _EPOCH, reverse=True)
        return rank(candidates, query)[:max_results]

    async def page_body(self, page_id: str) -> str:
        """Materialize page text from its blocks, one level of nesting deep."""
        try:
            blocks = await self._children(page_id, PAGE_BLOCK_LIMIT)
        except (httpx.HTTPError, SourceError, ValueError) as exc:
            logger.warning("Failed to get content for page %s: %s", page_id, exc)
            return ""
        lines: list[str] = []
        for block in blocks:
            text = block.render()
            if text:
                lines.append(text)
            if not block.has_children or len("\n".join(lines)) >= self.recursion_ceiling:
                continue
            try:
                children = await self._children(block.id, CHILD_BLOCK_LIMIT)
            except (httpx.HTTPError, SourceError, ValueError) as exc:
                logger.debug("Skipping children of block %s: %s", block.id, exc)
                continue
            for child in children:
                child_text = child.render()
                if child_text:
                    lines.append(f"  {child_text}")
        return truncate("\n".join(lines), self.body_max_chars)

    async def _children(self, block_id: str, page_size: int) -> list[Block]:
        data = await self._request_json(
            "GET",
            f"{self.api_url}/blocks/{block_id}/children",
            headers=self.headers,
            params={"page_size": page_size},
        )
        if not isinstance(data, dict):
            raise SourceError(f"block children unavailable for {block_id}")
        return [decode_block(raw) for raw in _as_list(data.get("results"))]

    def _to_passage(self, page: PageRecord, body: str) -> Passage:
        return Passage(
            identifier=page.id,
            title=page.title,
            locator=page.url,
            body=body,
            source_kind=self.kind,
            last_modified=page.last_edited_time,
        )


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


__all__ = ["NotionAdapter"]
