"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

import httpx

from knowledge_cache.cache.helpcenter_cache import HelpCenterCache
from knowledge_cache.cache.store import KeyValueStore, MemoryStore, SQLiteStore
from knowledge_cache.core.config import Settings, get_settings
from knowledge_cache.db.sqlite import SQLiteDatabase
from knowledge_cache.models.entities import SourceKind
from knowledge_cache.retrieval.service import RetrievalService
from knowledge_cache.retrieval.validation import LinkValidator
from knowledge_cache.sources.base import SourceAdapter
from knowledge_cache.sources.helpcenter import HelpCenterAdapter
from knowledge_cache.sources.notion import NotionAdapter
from knowledge_cache.sources.zendesk import ZendeskAdapter

_HTTP_CLIENT: httpx.AsyncClient | None = None
_STORE: KeyValueStore | None = None
_HELPCENTER_CACHE: HelpCenterCache | None = None
_RETRIEVAL_SERVICE: RetrievalService | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_http_client() -> httpx.AsyncClient:
    global _HTTP_CLIENT
    if _HTTP_CLIENT is None:
        settings = get_app_settings()
        _HTTP_CLIENT = httpx.AsyncClient(
            headers={"User-Agent": settings.user_agent},
            timeout=settings.source_timeout_seconds,
        )
    return _HTTP_CLIENT


def get_store() -> KeyValueStore:
    global _STORE
    if _STORE is None:
        settings = get_app_settings()
        if settings.cache_backend == "memory":
            _STORE = MemoryStore()
        else:
            _STORE = SQLiteStore(SQLiteDatabase(settings.cache_db_path))
    return _STORE


def build_helpcenter_adapter(settings: Settings, client: httpx.AsyncClient) -> HelpCenterAdapter:
    return HelpCenterAdapter(
        client,
        base_url=settings.helpcenter_base_url,
        categories=settings.helpcenter_categories,
        body_max_chars=settings.body_max_chars,
        timeout=settings.source_timeout_seconds,
    )


def build_adapters(settings: Settings, client: httpx.AsyncClient) -> dict[SourceKind, SourceAdapter]:
    return {
        SourceKind.PUBLIC_DOCS: build_helpcenter_adapter(settings, client),
        SourceKind.INTERNAL_PAGES: NotionAdapter(
            client,
            api_key=settings.notion_api_key,
            api_url=settings.notion_api_url,
            api_version=settings.notion_version,
            body_max_chars=settings.notion_body_max_chars,
            recursion_ceiling=settings.notion_recursion_ceiling,
            overfetch_factor=settings.notion_overfetch_factor,
            max_candidates=settings.notion_max_candidates,
            timeout=settings.source_timeout_seconds,
        ),
        SourceKind.TICKET_HISTORY: ZendeskAdapter(
            client,
            subdomain=settings.zendesk_subdomain,
            email=settings.zendesk_email,
            api_token=settings.zendesk_api_token,
            body_max_chars=settings.body_max_chars,
            timeout=settings.source_timeout_seconds,
        ),
    }


def get_helpcenter_cache() -> HelpCenterCache:
    global _HELPCENTER_CACHE
    if _HELPCENTER_CACHE is None:
        settings = get_app_settings()
        _HELPCENTER_CACHE = HelpCenterCache(
            store=get_store(),
            adapter=build_helpcenter_adapter(settings, get_http_client()),
            page_size=settings.crawl_page_size,
        )
    return _HELPCENTER_CACHE


def get_retrieval_service() -> RetrievalService:
    global _RETRIEVAL_SERVICE
    if _RETRIEVAL_SERVICE is None:
        settings = get_app_settings()
        client = get_http_client()
        validator = None
        if settings.validate_links:
            validator = LinkValidator(client, timeout=settings.validation_timeout_seconds)
        _RETRIEVAL_SERVICE = RetrievalService(
            adapters=build_adapters(settings, client),
            validator=validator,
            helpcenter_cache=get_helpcenter_cache(),
            prefer_cache=settings.prefer_cache,
            default_max_results=settings.default_max_results,
        )
    return _RETRIEVAL_SERVICE


async def close_resources() -> None:
    """Close the shared client and store, and drop the services bound to them."""
    global _HTTP_CLIENT, _STORE, _HELPCENTER_CACHE, _RETRIEVAL_SERVICE
    if _HTTP_CLIENT is not None:
        await _HTTP_CLIENT.aclose()
        _HTTP_CLIENT = None
    if isinstance(_STORE, SQLiteStore):
        _STORE.close()
    _STORE = None
    _HELPCENTER_CACHE = None
    _RETRIEVAL_SERVICE = None


__all__ = [
    "build_adapters",
    "build_helpcenter_adapter",
    "close_resources",
    "get_app_settings",
    "get_helpcenter_cache",
    "get_http_client",
    "get_retrieval_service",
    "get_store",
]
