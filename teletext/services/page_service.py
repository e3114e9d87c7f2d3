# FILE: teletext/services/page_service.py
"""
Page pipeline: validate -> parse parameters -> page cache -> adapter -> cache store
"""
import logging
from typing import Any, Dict, Optional

from teletext.errors import InvalidParametersError
from teletext.models.page import GridPage
from teletext.models.requests import DebugParams, PageRequest, PageResult, parse_params
from teletext.page_ids import normalize_page_id, parse_page_id
from teletext.services.page_cache import PageCache
from teletext.services.router import AdapterHandle, PageRouter
from teletext.services.telemetry import record_event

logger = logging.getLogger(__name__)

RAW_VIEW_PAGE = 801

# Stand-in pages are served but never cached
DEGRADED_MARKERS = ("fallback", "configError", "error")


def is_degraded(page: GridPage) -> bool:
    return any(page.meta.get(marker) for marker in DEGRADED_MARKERS)


class PageService:
    """Serves pages for the HTTP routes"""

    def __init__(self, router: PageRouter, page_cache: PageCache):
        self.router = router
        self.page_cache = page_cache

    async def get_page(self, page_id: str, params: Optional[Dict[str, Any]] = None) -> PageResult:
        """
        Render a page for a GET request.

        Args:
            page_id: Requested page ID
            params: Query parameters, validated against the adapter's model

        Returns:
            PageResult whose first page is the requested one
        """
        page_id = normalize_page_id(page_id)
        handle = self.router.resolve(page_id)
        adapter = handle.adapter
        request_params = parse_params(adapter.params_model_for(page_id), params or {})

        current_page = None
        if isinstance(request_params, DebugParams):
            current_page = await self._render_target(request_params.target)

        request = PageRequest(page_id=page_id, params=request_params, current_page=current_page)
        ttl = adapter.cache_duration_for(request)
        cache_key = adapter.get_cache_key(page_id)

        if ttl > 0:
            cached = self.page_cache.get(cache_key)
            if cached is not None:
                record_event("page_cache_hit", page_id=page_id)
                return PageResult(pages=[cached])

        result = await adapter.get_page(request)
        if ttl > 0 and result.page.id == page_id and not is_degraded(result.page):
            self.page_cache.put(cache_key, result.page, ttl)

        self._served(handle, result)
        return result

    async def post_input(self, page_id: str, text_input: str, context_id: Optional[str] = None) -> PageResult:
        """Hand typed input (an answer, a choice or a question) to the page's adapter"""
        page_id = normalize_page_id(page_id)
        handle = self.router.resolve(page_id)
        adapter = handle.adapter
        request = PageRequest(
            page_id=page_id,
            params=parse_params(adapter.params_model_for(page_id), {}),
            text_input=text_input,
            context_id=context_id,
        )
        result = await adapter.post_input(request)
        self._served(handle, result)
        return result

    async def _render_target(self, target: str):
        if parse_page_id(target).number == RAW_VIEW_PAGE:
            raise InvalidParametersError("the raw view cannot inspect itself")
        result = await self.get_page(target)
        return result.page

    def _served(self, handle: AdapterHandle, result: PageResult):
        logger.info(f"Served {handle.page_id} via {handle.name} ({len(result.pages)} page(s))")
        record_event("page_served", page_id=handle.page_id, adapter=handle.name,
                     pages=len(result.pages))
