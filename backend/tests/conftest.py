"""Test fixtures for Knowledge Cache."""

from __future__ import annotations

import itertools
import sys
from pathlib import Path
from typing import Callable

import httpx
import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from knowledge_cache.models.entities import Passage, SourceKind  # noqa: E402


def _reset_dependencies() -> None:
    from knowledge_cache.api import dependencies as deps
    from knowledge_cache.cache import SQLiteStore
    from knowledge_cache.core.config import get_settings

    get_settings.cache_clear()
    deps.get_app_settings.cache_clear()
    if isinstance(deps._STORE, SQLiteStore):
        deps._STORE.close()
    deps._HTTP_CLIENT = None
    deps._STORE = None
    deps._HELPCENTER_CACHE = None
    deps._RETRIEVAL_SERVICE = None


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset global singletons and environment between tests."""
    monkeypatch.setenv("KBC_CACHE_DB_PATH", str(tmp_path / "kv.db"))
    monkeypatch.delenv("KBC_CONFIG", raising=False)
    monkeypatch.delenv("KBC_CRON_SECRET", raising=False)
    monkeypatch.delenv("KBC_NOTION_API_KEY", raising=False)
    monkeypatch.delenv("KBC_ZENDESK_EMAIL", raising=False)
    monkeypatch.delenv("KBC_ZENDESK_API_TOKEN", raising=False)
    _reset_dependencies()
    yield
    _reset_dependencies()


@pytest.fixture
def make_passage() -> Callable[..., Passage]:
    counter = itertools.count(1)

    def factory(
        title: str,
        body: str = "",
        locator: str | None = None,
        source_kind: SourceKind = SourceKind.PUBLIC_DOCS,
        **extra,
    ) -> Passage:
        return Passage(
            title=title,
            body=body,
            locator=locator or f"https://help.example.com/article/{next(counter)}",
            source_kind=source_kind,
            **extra,
        )

    return factory


@pytest.fixture
def mock_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Build an AsyncClient whose requests are answered by ``handler``."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory


@pytest.fixture
def wp_post() -> Callable[..., dict]:
    """Build a WordPress REST record as returned by /wp-json/wp/v2/<type>."""

    def factory(post_id: int, title: str, content: str = "", link: str | None = None, excerpt: str = "") -> dict:
        return {
            "id": post_id,
            "title": {"rendered": title},
            "link": link or f"https://help.example.com/?p={post_id}",
            "content": {"rendered": content},
            "excerpt": {"rendered": excerpt},
        }

    return factory
