# FILE: teletext/services/paginator.py
"""
Pagination engine

Folds arbitrarily long text into a sequence of 24x40 pages. The layout is a
pure function of its inputs: the same text and start page always produce
the same pages, so a continuation page can be rebuilt from stored text
instead of being regenerated.

Concatenating the content rows of every returned page (right-trimmed, with
the blank padding of the last page removed) gives back exactly
``wrap_text(text, page_width)``.
"""
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from teletext.models.page import Continuation, GridPage, Link
from teletext.page_ids import advance_page_id
from teletext.services.grid import (
    PAGE_COLS,
    PAGE_ROWS,
    SEPARATOR,
    centered,
    fit_rows,
    title_row,
    wrap_text,
)

logger = logging.getLogger(__name__)

END_MARKER = "═══════ THE END ═══════"


def content_rows_per_page(header_rows: int, footer_rows: int) -> int:
    if header_rows < 0:
        raise ValueError("header_rows must not be negative")
    if footer_rows < 1:
        raise ValueError("at least one footer row is needed for navigation")
    rows = PAGE_ROWS - header_rows - footer_rows
    if rows < 1:
        raise ValueError("header and footer leave no room for content")
    return rows


def _header(page_id: str, title: str, header_rows: int, subtitle: Optional[str]) -> List[str]:
    rows = [title_row(page_id, title), SEPARATOR]
    if subtitle is not None:
        rows.append(subtitle)
    rows = rows[:header_rows]
    while len(rows) < header_rows:
        rows.append("")
    return rows


def _footer(next_page: Optional[str], footer_rows: int, more_hint: str) -> List[str]:
    if next_page is None:
        signal = centered(END_MARKER)
    else:
        signal = more_hint.format(next_page=next_page)
    rows = [""] * (footer_rows - 1)
    rows.append(signal)
    return rows


def paginate(
    text: str,
    start_page_id: str,
    page_width: int = PAGE_COLS,
    header_rows: int = 2,
    footer_rows: int = 2,
    title: str = "AI RESPONSE",
    subtitle: Optional[str] = None,
    links: Sequence[Link] = (),
    end_links: Sequence[Link] = (),
    meta: Optional[Dict[str, Any]] = None,
    more_hint: str = ">>> CONTINUED ON PAGE {next_page} >>>",
) -> List[GridPage]:
    """
    Split text into pages starting at start_page_id.

    ``links`` appear on every page; ``end_links`` only on the last one.
    Non-last pages get a yellow NEXT link to the following page and every
    page after the first a blue BACK link. ``meta`` is merged into every
    page's metadata.
    """
    if page_width > PAGE_COLS:
        raise ValueError(f"page_width cannot exceed {PAGE_COLS}")

    per_page = content_rows_per_page(header_rows, footer_rows)
    lines = wrap_text(text, page_width)
    total = max(1, math.ceil(len(lines) / per_page))
    page_ids = [advance_page_id(start_page_id, i) for i in range(total)]
    updated = datetime.now(timezone.utc).isoformat()

    pages = []
    for i, page_id in enumerate(page_ids):
        chunk = lines[i * per_page:(i + 1) * per_page]
        next_page = page_ids[i + 1] if i + 1 < total else None
        previous_page = page_ids[i - 1] if i > 0 else None

        body = chunk + [""] * (per_page - len(chunk))
        rows = (
            _header(page_id, title, header_rows, subtitle)
            + body
            + _footer(next_page, footer_rows, more_hint)
        )

        page_links = list(links)
        if next_page is not None:
            page_links.append(Link(label="NEXT", target_page=next_page, color="yellow"))
        else:
            page_links.extend(end_links)
        if previous_page is not None:
            page_links.append(Link(label="BACK", target_page=previous_page, color="blue"))

        page_meta: Dict[str, Any] = {"lastUpdated": updated, **(meta or {})}
        if total > 1:
            page_meta["continuation"] = Continuation(
                current_page=page_id,
                next_page=next_page,
                previous_page=previous_page,
                total_pages=total,
                current_index=i,
            ).to_meta()

        pages.append(GridPage(
            id=page_id,
            title=title,
            rows=fit_rows(rows),
            links=page_links,
            meta=page_meta,
        ))

    logger.debug(f"Paginated {len(lines)} lines into {total} pages from {start_page_id}")
    return pages


def content_lines(page: GridPage, header_rows: int = 2, footer_rows: int = 2) -> List[str]:
    """The right-trimmed content rows of a paginated page"""
    rows = page.rows[header_rows:PAGE_ROWS - footer_rows]
    return [row.rstrip() for row in rows]


def page_index_of(pages: Sequence[GridPage], page_id: str) -> Optional[int]:
    for i, page in enumerate(pages):
        if page.id == page_id:
            return i
    return None
