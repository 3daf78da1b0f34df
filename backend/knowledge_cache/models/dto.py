"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from knowledge_cache.models.entities import CacheMetadata, CrawlResult, Passage, SourceKind


class RetrieveRequest(BaseModel):
    query: str = Field(min_length=1)
    max_results: int | None = Field(default=None, ge=1, le=20)
    sources: list[SourceKind] | None = Field(default=None, description="Sources to query; all when omitted")


class PassageResult(BaseModel):
    title: str
    locator: str
    body: str
    source: SourceKind
    excerpt: str | None = None
    category: str | None = None
    ticket_status: str | None = None
    created_at: str | None = None

    @classmethod
    def from_passage(cls, passage: Passage) -> "PassageResult":
        return cls(
            title=passage.title,
            locator=passage.locator,
            body=passage.body,
            source=passage.source_kind,
            excerpt=passage.excerpt,
            category=passage.category,
            ticket_status=passage.ticket_status,
            created_at=passage.created_at,
        )


class RetrieveResponse(BaseModel):
    results: list[PassageResult]
    context: str


class CacheMetadataResponse(BaseModel):
    last_updated: str
    passage_count: int
    counts_by_category: dict[str, int]

    @classmethod
    def from_metadata(cls, metadata: CacheMetadata) -> "CacheMetadataResponse":
        return cls(**metadata.to_dict())


class CrawlResponse(BaseModel):
    success: bool
    message: str | None = None
    passage_count: int = 0
    counts_by_category: dict[str, int] = Field(default_factory=dict)
    last_updated: str | None = None
    error: str | None = None

    @classmethod
    def from_result(cls, result: CrawlResult) -> "CrawlResponse":
        return cls(
            success=result.success,
            message="Help center cache updated" if result.success else None,
            passage_count=result.passage_count,
            counts_by_category=result.counts_by_category,
            last_updated=result.last_updated,
            error=result.error,
        )


__all__ = [
    "RetrieveRequest",
    "RetrieveResponse",
    "PassageResult",
    "CacheMetadataResponse",
    "CrawlResponse",
]
