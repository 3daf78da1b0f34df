"""Source adapters mapping external content systems into passages."""

from .base import SourceAdapter, SourceError
from .helpcenter import HelpCenterAdapter, HelpCenterError, PageOutOfRange
from .notion import NotionAdapter
from .zendesk import ZendeskAdapter

__all__ = [
    "SourceAdapter",
    "SourceError",
    "HelpCenterAdapter",
    "HelpCenterError",
    "PageOutOfRange",
    "NotionAdapter",
    "ZendeskAdapter",
]
