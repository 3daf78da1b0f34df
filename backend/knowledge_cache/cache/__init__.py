"""Help center snapshot storage and crawling."""

from .helpcenter_cache import ARTICLES_KEY, METADATA_KEY, CrawlError, HelpCenterCache
from .store import CacheStoreError, KeyValueStore, MemoryStore, SQLiteStore

__all__ = [
    "ARTICLES_KEY",
    "METADATA_KEY",
    "CrawlError",
    "HelpCenterCache",
    "CacheStoreError",
    "KeyValueStore",
    "MemoryStore",
    "SQLiteStore",
]
