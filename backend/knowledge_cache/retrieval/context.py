"""Grounding context rendering for the completion collaborator."""

from __future__ import annotations

from typing import Sequence

from knowledge_cache.models.entities import Passage, SourceKind

SECTION_TITLES: dict[SourceKind, str] = {
    SourceKind.PUBLIC_DOCS: "Help center articles",
    SourceKind.INTERNAL_PAGES: "Internal pages",
    SourceKind.TICKET_HISTORY: "Past support tickets",
}


def format_passage(passage: Passage) -> str:
    lines = [f"### {passage.title}", f"URL: {passage.locator}"]
    if passage.ticket_status:
        lines.append(f"Status: {passage.ticket_status}")
    if passage.created_at:
        lines.append(f"Created: {passage.created_at}")
    if passage.body:
        lines.append(passage.body)
    return "\n".join(lines)


def build_grounding_context(passages: Sequence[Passage]) -> str:
    """Render passages grouped by source, keeping rank order inside each group.

    Returns an empty string when there is nothing to ground on; callers must
    then answer "nothing found" instead of guessing.
    """
    sections: list[str] = []
    for kind, heading in SECTION_TITLES.items():
        group = [passage for passage in passages if passage.source_kind is kind]
        if not group:
            continue
        body = "\n\n".join(format_passage(passage) for passage in group)
        sections.append(f"## {heading}\n\n{body}")
    return "\n\n".join(sections)


__all__ = ["SECTION_TITLES", "build_grounding_context", "format_passage"]
