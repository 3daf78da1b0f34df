"""Internal dataclasses shared by sources, cache and retrieval."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SourceKind(str, Enum):
    PUBLIC_DOCS = "public_docs"
    INTERNAL_PAGES = "internal_pages"
    TICKET_HISTORY = "ticket_history"


@dataclass(slots=True)
class Passage:
    """A normalized, source-tagged unit of retrieved text.

    ``locator`` is the canonical URL of the origin document; it is the only
    citation surfaced to end users and the deduplication key.
    """

    title: str
    locator: str
    body: str
    source_kind: SourceKind
    identifier: int | str | None = None
    excerpt: str | None = None
    category: str | None = None
    last_modified: str | None = None
    ticket_status: str | None = None
    created_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "title": self.title,
            "locator": self.locator,
            "body": self.body,
            "excerpt": self.excerpt,
            "source_kind": self.source_kind.value,
            "category": self.category,
            "last_modified": self.last_modified,
            "ticket_status": self.ticket_status,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Passage":
        title = data.get("title")
        locator = data.get("locator")
        if not title or not locator:
            raise ValueError("passage record requires title and locator")
        return cls(
            identifier=data.get("identifier"),
            title=str(title),
            locator=str(locator),
            body=str(data.get("body") or ""),
            excerpt=data.get("excerpt"),
            source_kind=SourceKind(data.get("source_kind") or SourceKind.PUBLIC_DOCS.value),
            category=data.get("category"),
            last_modified=data.get("last_modified"),
            ticket_status=data.get("ticket_status"),
            created_at=data.get("created_at"),
        )


@dataclass(slots=True)
class CacheMetadata:
    last_updated: str
    passage_count: int
    counts_by_category: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "last_updated": self.last_updated,
            "passage_count": self.passage_count,
            "counts_by_category": dict(self.counts_by_category),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CacheMetadata":
        return cls(
            last_updated=str(data["last_updated"]),
            passage_count=int(data.get("passage_count", 0)),
            counts_by_category={str(k): int(v) for k, v in (data.get("counts_by_category") or {}).items()},
        )


@dataclass(slots=True)
class CacheSnapshot:
    """Full result of one help center crawl."""

    passages: list[Passage]
    metadata: CacheMetadata


@dataclass(slots=True)
class CrawlResult:
    success: bool
    passage_count: int = 0
    counts_by_category: dict[str, int] = field(default_factory=dict)
    last_updated: str | None = None
    error: str | None = None
