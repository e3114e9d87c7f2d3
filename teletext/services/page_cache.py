# FILE: teletext/services/page_cache.py
"""
Rendered-page cache keyed by page ID
"""
import logging
from typing import Optional

from teletext.models.page import GridPage
from teletext.models.sessions import utcnow
from teletext.services.ttl_store import TTLStore

logger = logging.getLogger(__name__)


class PageCache:
    """Caches adapter output for pages that are not session-specific"""

    def __init__(self, store: TTLStore, enabled: bool = True):
        self.store = store
        self.enabled = enabled

    def get(self, cache_key: str) -> Optional[GridPage]:
        if not self.enabled:
            return None
        doc = self.store.get(cache_key)
        if doc is None:
            return None

        # Bump the access count without extending the entry's life
        doc = {**doc, "accessCount": doc.get("accessCount", 0) + 1}
        expires_at = self.store.expires_at(cache_key)
        if expires_at is not None:
            self.store.put(cache_key, doc, expires_at - self.store.clock())

        logger.debug(f"Page cache hit: {cache_key} (accessCount={doc['accessCount']})")
        page = GridPage.model_validate(doc["page"])
        return page.with_meta(cacheStatus="cached")

    def put(self, cache_key: str, page: GridPage, ttl_seconds: int):
        if not self.enabled or ttl_seconds <= 0:
            return
        doc = {
            "pageId": page.id,
            "page": page.to_json(),
            "source": page.meta.get("source", "unknown"),
            "cachedAt": utcnow().isoformat(),
            "accessCount": 0,
        }
        self.store.put(cache_key, doc, ttl_seconds)

    def access_count(self, cache_key: str) -> int:
        doc = self.store.get(cache_key)
        return doc.get("accessCount", 0) if doc else 0
