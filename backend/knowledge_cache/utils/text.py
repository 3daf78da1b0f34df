"""Text processing helpers."""

from __future__ import annotations

import re


WHITESPACE_RE = re.compile(r"\s+")
TAG_RE = re.compile(r"<[^>]*>")

_ENTITIES = {
    "&nbsp;": " ",
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#039;": "'",
}
ENTITY_RE = re.compile("|".join(re.escape(entity) for entity in _ENTITIES))


def collapse_whitespace(text: str) -> str:
    """Collapse whitespace and strip."""
    return WHITESPACE_RE.sub(" ", text).strip()


def normalize(markup: str | None, max_length: int | None = None) -> str:
    """Turn rendered markup into a single line of plain text.

    Tags are removed and the fixed entity set is decoded (other entities are
    left as-is) until neither changes the text, so encoded markup such as
    ``&lt;b&gt;`` is stripped too. Whitespace is then collapsed and the result
    is cut at ``max_length`` characters without an ellipsis.
    """
    if not markup:
        return ""
    text = markup
    while True:
        # every pass that changes the text shortens it
        stripped = ENTITY_RE.sub(lambda match: _ENTITIES[match.group(0)], TAG_RE.sub("", text))
        if stripped == text:
            break
        text = stripped
    text = collapse_whitespace(text)
    if max_length is not None and len(text) > max_length:
        # a cut landing right after a space must not leave it dangling
        text = text[: max(max_length, 0)].rstrip()
    return text


def truncate(text: str, max_length: int) -> str:
    """Hard cut ``text`` at ``max_length`` characters."""
    return text[: max(max_length, 0)]


__all__ = ["collapse_whitespace", "normalize", "truncate"]
