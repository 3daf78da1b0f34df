"""Tests for the help center, Notion and Zendesk adapters."""

from __future__ import annotations

import asyncio
import base64

import httpx
import pytest

from knowledge_cache.models.entities import SourceKind
from knowledge_cache.sources.helpcenter import HelpCenterAdapter, HelpCenterError, PageOutOfRange
from knowledge_cache.sources.notion import NotionAdapter
from knowledge_cache.sources.zendesk import ZendeskAdapter, translate_status

HELP = "https://help.example.com"


# Help center ----------------------------------------------------------


@pytest.mark.asyncio
async def test_helpcenter_search_queries_all_categories(mock_client, wp_post) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        category = request.url.path.rsplit("/", 1)[-1]
        return httpx.Response(200, json=[wp_post(len(seen), f"<b>{category}</b> targeting", "<p>Body&nbsp;text</p>")])

    async with mock_client(handler) as client:
        adapter = HelpCenterAdapter(client, base_url=HELP)
        passages = await adapter.search("targeting", 3)

    assert sorted(passage.category for passage in passages) == ["faq", "news", "posts"]
    assert all(passage.source_kind is SourceKind.PUBLIC_DOCS for passage in passages)
    assert {request.url.params["search"] for request in seen} == {"targeting"}
    assert {request.url.params["per_page"] for request in seen} == {"3"}
    posts = next(passage for passage in passages if passage.category == "posts")
    assert posts.title == "posts targeting"
    assert posts.body == "Body text"


@pytest.mark.asyncio
async def test_helpcenter_skips_records_without_title(mock_client, wp_post) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/posts"):
            broken = {"id": 9, "link": f"{HELP}/?p=9", "content": {"rendered": "x"}}
            return httpx.Response(200, json=[broken, wp_post(1, "Valid", "content")])
        return httpx.Response(200, json=[])

    async with mock_client(handler) as client:
        passages = await HelpCenterAdapter(client, base_url=HELP).search("valid", 5)

    assert [passage.title for passage in passages] == ["Valid"]


@pytest.mark.asyncio
async def test_helpcenter_error_status_only_drops_that_category(mock_client, wp_post) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/news"):
            return httpx.Response(500)
        return httpx.Response(200, json=[wp_post(len(request.url.path), "Ads guide")])

    async with mock_client(handler) as client:
        passages = await HelpCenterAdapter(client, base_url=HELP).search("ads", 3)

    assert sorted(passage.category for passage in passages) == ["faq", "posts"]


@pytest.mark.asyncio
async def test_helpcenter_body_is_capped(mock_client, wp_post) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[wp_post(1, "Long", "word " * 1000)])

    async with mock_client(handler) as client:
        adapter = HelpCenterAdapter(client, base_url=HELP, categories=("posts",), body_max_chars=2000)
        passages = await adapter.search("long", 1)

    assert len(passages[0].body) <= 2000


@pytest.mark.asyncio
async def test_helpcenter_fetch_page_signals(mock_client, wp_post) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        page = int(request.url.params["page"])
        if page == 1:
            return httpx.Response(200, json=[wp_post(1, "One")], headers={"X-WP-TotalPages": "2"})
        if page == 2:
            return httpx.Response(400, json={"code": "rest_post_invalid_page_number"})
        return httpx.Response(503)

    async with mock_client(handler) as client:
        adapter = HelpCenterAdapter(client, base_url=HELP)
        first = await adapter.fetch_page("posts", 1, 100)
        assert first.total_pages == 2
        assert [passage.title for passage in first.passages] == ["One"]
        with pytest.raises(PageOutOfRange):
            await adapter.fetch_page("posts", 2, 100)
        with pytest.raises(HelpCenterError):
            await adapter.fetch_page("posts", 3, 100)


@pytest.mark.asyncio
async def test_helpcenter_get_post(mock_client, wp_post) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/posts/42"):
            return httpx.Response(200, json=wp_post(42, "Found"))
        return httpx.Response(404)

    async with mock_client(handler) as client:
        adapter = HelpCenterAdapter(client, base_url=HELP)
        found = await adapter.get_post(42)
        missing = await adapter.get_post(7)

    assert found is not None and found.identifier == 42
    assert missing is None


@pytest.mark.asyncio
async def test_helpcenter_get_post_invalid_json(mock_client) -> None:
    async with mock_client(lambda request: httpx.Response(200, content=b"<html>")) as client:
        with pytest.raises(HelpCenterError):
            await HelpCenterAdapter(client, base_url=HELP).get_post(42)


def _overlapping_categories(wp_post):
    """Each collection lists its own article plus one shared with the others."""

    def handler(request: httpx.Request) -> httpx.Response:
        category = request.url.path.rsplit("/", 1)[-1]
        own = wp_post(len(category), f"Refund {category}", link=f"{HELP}/{category}/refund")
        shared = wp_post(100, "Refund policy", link=f"{HELP}/refund-policy")
        return httpx.Response(200, json=[own, shared])

    return handler


@pytest.mark.asyncio
@pytest.mark.parametrize("max_results", [1, 3, 10])
async def test_helpcenter_search_dedupes_and_caps(mock_client, wp_post, max_results: int) -> None:
    async with mock_client(_overlapping_categories(wp_post)) as client:
        passages = await HelpCenterAdapter(client, base_url=HELP).search("refund", max_results)

    locators = [passage.locator for passage in passages]
    assert len(passages) <= max_results
    assert len(set(locators)) == len(locators)
    assert len(passages) == min(max_results, 4)


@pytest.mark.asyncio
async def test_adapter_timeout_returns_empty(mock_client) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1)
        return httpx.Response(200, json=[])

    async with mock_client(handler) as client:
        adapter = HelpCenterAdapter(client, base_url=HELP, timeout=0.05)
        assert await adapter.search("slow", 3) == []


# Notion ---------------------------------------------------------------


def _rich(text: str) -> list[dict]:
    return [{"plain_text": text}]


def _page(page_id: str, title: str, edited: str) -> dict:
    return {
        "object": "page",
        "id": page_id,
        "url": f"https://www.notion.so/{page_id}",
        "last_edited_time": edited,
        "properties": {
            "Status": {"type": "select", "select": {"name": "Published"}},
            "Name": {"type": "title", "title": _rich(title)},
        },
    }


def _notion_handler(pages: list[dict], blocks: dict[str, list[dict]], calls: list[str] | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request.url.path)
        if request.url.path.endswith("/search"):
            return httpx.Response(200, json={"results": pages})
        block_id = request.url.path.split("/")[-2]
        if block_id not in blocks:
            return httpx.Response(404)
        return httpx.Response(200, json={"results": blocks[block_id]})

    return handler


@pytest.mark.asyncio
async def test_notion_materializes_block_text(mock_client) -> None:
    blocks = {
        "p1": [
            {"id": "b1", "type": "heading_2", "heading_2": {"rich_text": _rich("Setup")}},
            {"id": "b2", "type": "paragraph", "paragraph": {"rich_text": _rich("Campaign setup steps")}},
            {"id": "b3", "type": "bulleted_list_item", "has_children": True,
             "bulleted_list_item": {"rich_text": _rich("Budget")}},
            {"id": "b4", "type": "table_row", "table_row": {"cells": [_rich("a"), _rich("b")]}},
            {"id": "b5", "type": "image", "image": {"type": "external"}},
        ],
        "b3": [{"id": "c1", "type": "paragraph", "paragraph": {"rich_text": _rich("daily cap")}}],
    }
    handler = _notion_handler([_page("p1", "Campaign manual", "2024-01-01T00:00:00.000Z")], blocks)

    async with mock_client(handler) as client:
        adapter = NotionAdapter(client, api_key="secret")
        passages = await adapter.search("campaign", 3)

    assert len(passages) == 1
    passage = passages[0]
    assert passage.title == "Campaign manual"
    assert passage.source_kind is SourceKind.INTERNAL_PAGES
    assert passage.body == "【Setup】\nCampaign setup steps\n• Budget\n  daily cap\na | b"


@pytest.mark.asyncio
async def test_notion_stops_descending_past_ceiling(mock_client) -> None:
    long_text = "x" * 1600
    blocks = {
        "p1": [
            {"id": "b1", "type": "paragraph", "paragraph": {"rich_text": _rich(long_text)}},
            {"id": "b2", "type": "toggle", "has_children": True, "toggle": {"rich_text": _rich("more")}},
        ],
        "b2": [{"id": "c1", "type": "paragraph", "paragraph": {"rich_text": _rich("hidden")}}],
    }
    calls: list[str] = []
    handler = _notion_handler([_page("p1", "Guide", "2024-01-01T00:00:00Z")], blocks, calls)

    async with mock_client(handler) as client:
        body = await NotionAdapter(client, api_key="secret").page_body("p1")

    assert "hidden" not in body
    assert not any("/blocks/b2/" in path for path in calls)


@pytest.mark.asyncio
async def test_notion_overfetches_and_breaks_ties_by_recency(mock_client) -> None:
    pages = [
        _page("old", "Billing guide", "2023-01-01T00:00:00Z"),
        _page("new", "Billing guide v2", "2024-06-01T00:00:00Z"),
        _page("none", "Unrelated", "2024-07-01T00:00:00Z"),
    ]
    search_bodies: list[bytes] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/search"):
            search_bodies.append(request.content)
            return httpx.Response(200, json={"results": pages})
        return httpx.Response(200, json={"results": []})

    async with mock_client(handler) as client:
        passages = await NotionAdapter(client, api_key="secret").search("billing", 2)

    assert [passage.identifier for passage in passages] == ["new", "old"]
    assert b'"page_size":6' in search_bodies[0].replace(b" ", b"")


@pytest.mark.asyncio
async def test_notion_untitled_page(mock_client) -> None:
    page = _page("p1", "", "2024-01-01T00:00:00Z")
    blocks = {"p1": [{"id": "b", "type": "paragraph", "paragraph": {"rich_text": _rich("pricing table")}}]}

    async with mock_client(_notion_handler([page], blocks)) as client:
        passages = await NotionAdapter(client, api_key="secret").search("pricing", 3)

    assert passages[0].title == "Untitled"


@pytest.mark.asyncio
async def test_notion_without_credentials_returns_empty(mock_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - must not be called
        raise AssertionError("no request expected")

    async with mock_client(handler) as client:
        assert await NotionAdapter(client, api_key=None).search("anything", 3) == []


# Zendesk --------------------------------------------------------------


@pytest.mark.asyncio
async def test_zendesk_maps_tickets(mock_client) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "results": [
                    {"id": 101, "subject": "Refund request", "description": "Asked for refund",
                     "status": "solved", "created_at": "2024-03-05T10:00:00Z"},
                    {"id": 102, "subject": None, "description": None, "status": "escalated",
                     "created_at": "2024-03-06T10:00:00Z"},
                    {"subject": "no id"},
                ],
                "count": 3,
            },
        )

    async with mock_client(handler) as client:
        adapter = ZendeskAdapter(client, subdomain="acme", email="agent@example.com", api_token="tok")
        passages = await adapter.search("refund", 3)

    request = seen[0]
    assert request.url.params["query"] == "type:ticket refund"
    assert request.url.params["sort_by"] == "relevance"
    expected = base64.b64encode(b"agent@example.com/token:tok").decode()
    assert request.headers["Authorization"] == f"Basic {expected}"

    assert [passage.identifier for passage in passages] == [101, 102]
    first, second = passages
    assert first.locator == "https://acme.zendesk.com/agent/tickets/101"
    assert first.ticket_status == translate_status("solved")
    assert first.created_at == "2024/03/05"
    assert second.title == "(件名なし)"
    assert second.ticket_status == "escalated"


@pytest.mark.asyncio
async def test_zendesk_missing_credentials(mock_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - must not be called
        raise AssertionError("no request expected")

    async with mock_client(handler) as client:
        adapter = ZendeskAdapter(client, subdomain="acme", email=None, api_token=None)
        assert await adapter.search("refund", 3) == []


@pytest.mark.asyncio
async def test_zendesk_error_status_returns_empty(mock_client) -> None:
    async with mock_client(lambda request: httpx.Response(401)) as client:
        adapter = ZendeskAdapter(client, subdomain="acme", email="a@example.com", api_token="t")
        assert await adapter.search("refund", 3) == []


@pytest.mark.asyncio
async def test_zendesk_network_error_returns_empty(mock_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with mock_client(handler) as client:
        adapter = ZendeskAdapter(client, subdomain="acme", email="a@example.com", api_token="t")
        assert await adapter.search("refund", 3) == []


def test_status_vocabulary() -> None:
    assert [translate_status(code) for code in ("new", "open", "pending", "hold", "solved", "closed")] == [
        "新規",
        "対応中",
        "保留中",
        "保留",
        "解決済み",
        "終了",
    ]
