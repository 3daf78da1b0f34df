"""Deduplication helpers."""

from __future__ import annotations

from typing import Iterable

from knowledge_cache.models.entities import Passage


def dedupe_locators(locators: Iterable[str]) -> list[str]:
    """Remove duplicates while preserving order."""
    seen: set[str] = set()
    unique: list[str] = []
    for item in locators:
        if item not in seen:
            seen.add(item)
            unique.append(item)
    return unique


def dedupe_passages(passages: Iterable[Passage]) -> list[Passage]:
    """Keep the first passage seen for each locator, in input order."""
    seen: set[str] = set()
    unique: list[Passage] = []
    for passage in passages:
        if passage.locator in seen:
            continue
        seen.add(passage.locator)
        unique.append(passage)
    return unique


__all__ = ["dedupe_locators", "dedupe_passages"]
