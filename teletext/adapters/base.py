# FILE: teletext/adapters/base.py
"""
Content adapter base class and shared page builders
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Type

from teletext.errors import InvalidParametersError, PageNotFoundError
from teletext.models.page import GridPage, Link
from teletext.models.requests import NoParams, PageParams, PageRequest, PageResult
from teletext.services.grid import SEPARATOR, centered, fit_rows, title_row, wrap_text
from teletext.services.paginator import page_index_of
from teletext.services.result import ConfigError

logger = logging.getLogger(__name__)

INDEX_LINK = Link(label="INDEX", target_page="100", color="red")


class ContentAdapter:
    """
    Produces the pages of one magazine.

    Subclasses implement ``get_page`` and, for pages that take typed input,
    ``post_input``. ``cache_duration`` is in seconds; 0 means never cache.
    """

    name: str = "base"
    cache_duration: int = 0

    def get_cache_key(self, page_id: str) -> str:
        return f"{self.name}_{page_id}"

    def params_model_for(self, page_id: str) -> Type[PageParams]:
        """Parameter model accepted by page_id (no parameters by default)"""
        return NoParams

    def cache_duration_for(self, request: PageRequest) -> int:
        """Cache lifetime for this particular request"""
        return self.cache_duration

    async def get_page(self, request: PageRequest) -> PageResult:
        raise NotImplementedError

    async def post_input(self, request: PageRequest) -> PageResult:
        raise InvalidParametersError(f"page {request.page_id} does not accept text input")

    async def aclose(self):
        pass

    # Page builders

    def make_page(
        self,
        page_id: str,
        title: str,
        body: Sequence[str],
        links: Sequence[Link] = (),
        meta: Optional[Dict[str, Any]] = None,
        heading: Optional[str] = None,
    ) -> GridPage:
        """
        Standard page: title row, separator, then body rows fitted to the grid.

        Rows that are too long are truncated; missing rows are blank.
        """
        rows = [title_row(page_id, heading or title), SEPARATOR, *body]
        page_meta = {
            "source": self.name,
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
            "cacheStatus": "fresh",
        }
        page_meta.update(meta or {})
        return GridPage(id=page_id, title=title, rows=fit_rows(rows), links=list(links), meta=page_meta)

    def single(self, page: GridPage, context_id: Optional[str] = None) -> PageResult:
        return PageResult(pages=[page], context_id=context_id)

    def select_page(self, pages: Sequence[GridPage], page_id: str,
                    context_id: Optional[str] = None) -> PageResult:
        """Requested page of a paginated run, followed by the pages after it"""
        index = page_index_of(pages, page_id)
        if index is None:
            raise PageNotFoundError(page_id)
        return PageResult(pages=list(pages[index:]), context_id=context_id)

    def setup_page(self, page_id: str, title: str, error: ConfigError,
                   links: Sequence[Link] = (INDEX_LINK,)) -> GridPage:
        """Instructions for configuring a missing API key"""
        body = [
            "",
            centered("SERVICE NOT CONFIGURED"),
            "",
            *wrap_text(f"{error.service} needs an API key before this page can show live data.", 40),
            "",
            "To enable it:",
            " 1. Get a key at",
            f"    {error.signup_url or 'the provider website'}",
            f" 2. Set {error.setting}",
            "    in the environment or .env file",
            " 3. Restart the service",
        ]
        logger.info(f"Setup page for {page_id}: {error.setting} missing")
        return self.make_page(page_id, title, body, links=links,
                              meta={"configError": error.setting})

    def fallback_notice(self, page_id: str, title: str, api_name: str, body: Sequence[str],
                        links: Sequence[Link] = (INDEX_LINK,)) -> GridPage:
        """Offline content shown when a live fetch failed"""
        rows = [f"{api_name.upper()} UNAVAILABLE - SHOWING", "STORED CONTENT", "", *body]
        return self.make_page(page_id, title, rows, links=links, meta={"fallback": True})

    def error_page(self, page_id: str, title: str, message: str,
                   links: Sequence[Link] = (INDEX_LINK,)) -> GridPage:
        body = ["", centered("SERVICE ERROR"), "", *wrap_text(message, 40), "",
                "Please try again in a moment."]
        return self.make_page(page_id, title, body, links=links, meta={"error": True})

    def placeholder_page(self, page_id: str, links: Sequence[Link] = (INDEX_LINK,)) -> GridPage:
        body = [
            "",
            "COMING SOON",
            "",
            f"Page {page_id} is under construction.",
            "",
            "This page will be available in a",
            "future update.",
            "",
            "Press 100 to return to index",
        ]
        return self.make_page(page_id, f"Page {page_id}", body, links=links)


def menu_rows(options: Sequence[str]) -> List[str]:
    """Numbered menu rows starting at 1"""
    rows: List[str] = []
    for i, option in enumerate(options, start=1):
        rows.append(f"{i}. {option}")
    return rows


def request_session_id(request: PageRequest) -> Optional[str]:
    """Session or conversation ID from a POST body or the query parameters"""
    return (
        request.context_id
        or getattr(request.params, "session_id", None)
        or getattr(request.params, "context_id", None)
    )
