"""Historical support ticket adapter backed by the Zendesk search API."""

from __future__ import annotations

from typing import Any

import httpx

from knowledge_cache.core.logging import get_logger
from knowledge_cache.models.entities import Passage, SourceKind
from knowledge_cache.sources.base import SourceAdapter
from knowledge_cache.utils.text import normalize
from knowledge_cache.utils.time import format_date

logger = get_logger(__name__)

STATUS_LABELS: dict[str, str] = {
    "new": "新規",
    "open": "対応中",
    "pending": "保留中",
    "hold": "保留",
    "solved": "解決済み",
    "closed": "終了",
}
NO_SUBJECT = "(件名なし)"


def translate_status(status: str | None) -> str:
    """Map a Zendesk status code to its label; unknown codes pass through."""
    if not status:
        return ""
    return STATUS_LABELS.get(status, status)


class ZendeskAdapter(SourceAdapter):
    kind = SourceKind.TICKET_HISTORY
    name = "zendesk"

    def __init__(
        self,
        client: httpx.AsyncClient,
        subdomain: str,
        email: str | None,
        api_token: str | None,
        body_max_chars: int = 2000,
        timeout: float = 10.0,
    ) -> None:
        super().__init__(client, timeout=timeout)
        self.subdomain = subdomain
        self.email = email
        self.api_token = api_token
        self.body_max_chars = body_max_chars

    @property
    def base_url(self) -> str:
        return f"https://{self.subdomain}.zendesk.com"

    def is_configured(self) -> bool:
        return bool(self.email and self.api_token)

    def ticket_url(self, ticket_id: Any) -> str:
        return f"{self.base_url}/agent/tickets/{ticket_id}"

    async def _search(self, query: str, max_results: int) -> list[Passage]:
        data = await self._request_json(
            "GET",
            f"{self.base_url}/api/v2/search.json",
            params={
                "query": f"type:ticket {query}",
                "sort_by": "relevance",
                "per_page": max_results,
            },
            auth=httpx.BasicAuth(f"{self.email}/token", self.api_token or ""),
            headers={"Content-Type": "application/json"},
        )
        if not isinstance(data, dict):
            return []
        results = data.get("results")
        if not isinstance(results, list):
            return []
        return [passage for passage in map(self.map_ticket, results) if passage is not None]

    def map_ticket(self, record: Any) -> Passage | None:
        if not isinstance(record, dict) or record.get("id") is None:
            return None
        ticket_id = record["id"]
        return Passage(
            identifier=ticket_id,
            title=normalize(_text(record.get("subject"))) or NO_SUBJECT,
            locator=self.ticket_url(ticket_id),
            body=normalize(_text(record.get("description")), self.body_max_chars),
            source_kind=self.kind,
            ticket_status=translate_status(_text(record.get("status"))),
            created_at=format_date(_text(record.get("created_at"))),
        )


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


__all__ = ["STATUS_LABELS", "ZendeskAdapter", "translate_status"]
