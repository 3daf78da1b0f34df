"""Retrieval orchestration components."""

from .ranking import rank, score, tokenize
from .dedupe import dedupe_passages
from .validation import LinkValidator
from .context import build_grounding_context
from .service import RetrievalService

__all__ = [
    "rank",
    "score",
    "tokenize",
    "dedupe_passages",
    "LinkValidator",
    "build_grounding_context",
    "RetrievalService",
]
