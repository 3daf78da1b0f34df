"""Term-containment relevance ranking."""

from __future__ import annotations

from typing import Sequence

from knowledge_cache.models.entities import Passage

TITLE_WEIGHT = 10
BODY_WEIGHT = 1


def tokenize(query: str) -> list[str]:
    """Lower-case and split on whitespace, dropping single-character tokens."""
    return [token for token in query.lower().split() if len(token) > 1]


def score(passage: Passage, tokens: Sequence[str]) -> int:
    title = passage.title.lower()
    body = passage.body.lower()
    total = 0
    for token in tokens:
        if token in title:
            total += TITLE_WEIGHT
        if token in body:
            total += BODY_WEIGHT
    return total


def rank(passages: Sequence[Passage], query: str) -> list[Passage]:
    """Order passages by descending score.

    The sort is stable, so ties keep their input order. Passages scoring zero
    are dropped: a query sharing no token with any passage yields ``[]``.
    """
    tokens = tokenize(query)
    if not tokens:
        return []
    scored = [(score(passage, tokens), passage) for passage in passages]
    ordered = sorted(scored, key=lambda item: item[0], reverse=True)
    return [passage for value, passage in ordered if value > 0]


__all__ = ["BODY_WEIGHT", "TITLE_WEIGHT", "rank", "score", "tokenize"]
