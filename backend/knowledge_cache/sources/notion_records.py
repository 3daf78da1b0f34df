"""Explicit decoding of Notion page properties and blocks.

Notion returns loosely typed JSON keyed by a ``type`` field. Everything the
adapter reads is decoded here into one of a closed set of variants, with an
``Unknown*`` variant for anything else, so the rest of the code never inspects
raw dictionaries.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

HEADING_TYPES = frozenset({"heading_1", "heading_2", "heading_3"})
LIST_ITEM_TYPES = frozenset({"bulleted_list_item", "numbered_list_item"})
TEXT_BLOCK_TYPES = frozenset(
    {"paragraph", "quote", "callout", "code", "to_do", "toggle"} | HEADING_TYPES | LIST_ITEM_TYPES
)


# Page properties ------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TitleProperty:
    name: str
    text: str


@dataclass(frozen=True, slots=True)
class RichTextProperty:
    name: str
    text: str


@dataclass(frozen=True, slots=True)
class SelectProperty:
    name: str
    option: str | None


@dataclass(frozen=True, slots=True)
class UnknownProperty:
    name: str
    type: str


PageProperty = Union[TitleProperty, RichTextProperty, SelectProperty, UnknownProperty]


def plain_text(rich_text: Any) -> str:
    """Join the ``plain_text`` of a rich text array."""
    if not isinstance(rich_text, list):
        return ""
    return "".join(
        str(item.get("plain_text") or "") for item in rich_text if isinstance(item, dict)
    )


def decode_property(name: str, raw: Any) -> PageProperty:
    if not isinstance(raw, dict):
        return UnknownProperty(name=name, type="invalid")
    prop_type = str(raw.get("type") or "")
    if prop_type == "title":
        return TitleProperty(name=name, text=plain_text(raw.get("title")))
    if prop_type == "rich_text":
        return RichTextProperty(name=name, text=plain_text(raw.get("rich_text")))
    if prop_type == "select":
        option = raw.get("select")
        return SelectProperty(name=name, option=option.get("name") if isinstance(option, dict) else None)
    return UnknownProperty(name=name, type=prop_type or "missing")


# Pages ----------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PageRecord:
    id: str
    url: str
    last_edited_time: str | None
    properties: tuple[PageProperty, ...]

    @property
    def title(self) -> str:
        for prop in self.properties:
            if isinstance(prop, TitleProperty) and prop.text:
                return prop.text
        return "Untitled"


def decode_page(raw: Any) -> PageRecord | None:
    """Decode a search hit; ``None`` for non-page objects or pages without id/url."""
    if not isinstance(raw, dict) or raw.get("object") != "page":
        return None
    page_id = raw.get("id")
    url = raw.get("url")
    if not page_id or not url:
        return None
    properties = raw.get("properties")
    decoded: tuple[PageProperty, ...] = ()
    if isinstance(properties, dict):
        decoded = tuple(decode_property(str(name), value) for name, value in properties.items())
    last_edited = raw.get("last_edited_time")
    return PageRecord(
        id=str(page_id),
        url=str(url),
        last_edited_time=str(last_edited) if last_edited else None,
        properties=decoded,
    )


# Blocks ---------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TextBlock:
    id: str
    type: str
    text: str
    has_children: bool

    def render(self) -> str:
        if not self.text:
            return ""
        if self.type in HEADING_TYPES:
            return f"【{self.text}】"
        if self.type in LIST_ITEM_TYPES:
            return f"• {self.text}"
        return self.text


@dataclass(frozen=True, slots=True)
class TableRowBlock:
    id: str
    cells: tuple[str, ...]
    has_children: bool

    def render(self) -> str:
        return " | ".join(self.cells)


@dataclass(frozen=True, slots=True)
class UnknownBlock:
    id: str
    type: str
    has_children: bool

    def render(self) -> str:
        return ""


Block = Union[TextBlock, TableRowBlock, UnknownBlock]


def decode_block(raw: Any) -> Block:
    if not isinstance(raw, dict):
        return UnknownBlock(id="", type="invalid", has_children=False)
    block_id = str(raw.get("id") or "")
    block_type = str(raw.get("type") or "")
    has_children = bool(raw.get("has_children"))
    data = raw.get(block_type)
    if not isinstance(data, dict):
        return UnknownBlock(id=block_id, type=block_type, has_children=has_children)
    if block_type in TEXT_BLOCK_TYPES:
        return TextBlock(
            id=block_id,
            type=block_type,
            text=plain_text(data.get("rich_text")),
            has_children=has_children,
        )
    if block_type == "table_row":
        cells = data.get("cells")
        if isinstance(cells, list):
            return TableRowBlock(
                id=block_id,
                cells=tuple(plain_text(cell) for cell in cells),
                has_children=has_children,
            )
    return UnknownBlock(id=block_id, type=block_type, has_children=has_children)


__all__ = [
    "Block",
    "PageProperty",
    "PageRecord",
    "RichTextProperty",
    "SelectProperty",
    "TableRowBlock",
    "TextBlock",
    "TitleProperty",
    "UnknownBlock",
    "UnknownProperty",
    "decode_block",
    "decode_page",
    "decode_property",
    "plain_text",
]
