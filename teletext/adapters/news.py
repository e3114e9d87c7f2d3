# FILE: teletext/adapters/news.py
"""
News pages (2xx)

200 is the section index, 201-209 list the headlines of one category.
Headline n of page 2xx opens as sub-page 2xx-n; its full text is paginated
on 2xx-n-1, 2xx-n-2, ...
"""
import logging
import re
from typing import Dict, List, NamedTuple, Optional

from teletext.adapters.base import INDEX_LINK, ContentAdapter
from teletext.errors import ExternalAPIError, PageNotFoundError
from teletext.models.page import Link
from teletext.models.requests import PageRequest, PageResult
from teletext.page_ids import parse_page_id
from teletext.services.fetchers import ContentFetcher
from teletext.services.grid import ellipsize, wrap_text
from teletext.services.paginator import paginate

logger = logging.getLogger(__name__)

# NewsAPI truncates article bodies with a "[+1234 chars]" marker
_TRUNCATION_RE = re.compile(r"\s*\[\+\d+ chars\]\s*$")


class NewsSection(NamedTuple):
    title: str
    category: str
    country: Optional[str]


SECTIONS: Dict[int, NewsSection] = {
    201: NewsSection("Top Stories", "general", "us"),
    202: NewsSection("World News", "general", None),
    203: NewsSection("Business", "business", "us"),
    204: NewsSection("Technology", "technology", "us"),
    205: NewsSection("Science", "science", "us"),
    206: NewsSection("Health", "health", "us"),
    207: NewsSection("Sports News", "sports", "us"),
    208: NewsSection("Entertainment", "entertainment", "us"),
    209: NewsSection("UK News", "general", "gb"),
}

FALLBACK_HEADLINES: List[Dict[str, str]] = [
    {
        "title": "Teletext returns as retro broadcasting enjoys revival",
        "source": "Teletext Archive",
        "description": "Enthusiasts restore classic pages from recovered broadcast tapes.",
        "content": "Volunteers have recovered thousands of teletext pages from home video "
                   "recordings, rebuilding news, sport and weather services exactly as they "
                   "appeared on screen decades ago.",
        "published": "",
    },
    {
        "title": "Live headlines are temporarily unavailable",
        "source": "Modern Teletext",
        "description": "The news feed could not be reached. Please try again shortly.",
        "content": "The news service did not respond in time. Stored content is shown "
                   "until the feed recovers.",
        "published": "",
    },
]


class NewsAdapter(ContentAdapter):
    """Headline lists and articles from NewsAPI"""

    name = "news"
    cache_duration = 300

    def __init__(self, fetcher: ContentFetcher):
        self.fetcher = fetcher

    async def get_page(self, request: PageRequest) -> PageResult:
        address = parse_page_id(request.page_id)
        if address.number == 200:
            if address.sub_index is not None:
                raise PageNotFoundError(request.page_id)
            return self.single(self._index_page())

        section = SECTIONS.get(address.number)
        if section is None:
            if address.sub_index is not None:
                raise PageNotFoundError(request.page_id)
            return self.single(self.placeholder_page(request.page_id))

        section_page = str(address.number)
        try:
            result = await self.fetcher.fetch_headlines(section.category, section.country)
        except ExternalAPIError as e:
            logger.warning(f"Headlines for {section.category} unavailable, using fallback: {e}")
            result = None
        if result is not None and not result.ok:
            return self.single(self.setup_page(request.page_id, section.title, result.config_error))

        headlines = result.value if result is not None else []
        fallback = False
        if not headlines:
            headlines, fallback = FALLBACK_HEADLINES, True

        if address.sub_index is None:
            return self.single(self._headline_list(section_page, section, headlines, fallback))

        if address.sub_index > len(headlines):
            raise PageNotFoundError(request.page_id)
        article = headlines[address.sub_index - 1]
        article_page = f"{section_page}-{address.sub_index}"
        if address.page_index is None:
            return self.single(self._article_summary(article_page, section_page, section, article))
        return self.select_page(self._article_body(article_page, section_page, article), request.page_id)

    def _index_page(self):
        body = ["", "HEADLINES"]
        for number, section in SECTIONS.items():
            body.append(f"{number} {section.title}")
        body += ["", "Select a headline to read the story.", "Updated every 5 minutes"]
        return self.make_page("200", "News Index", body, links=[
            INDEX_LINK,
            Link(label="TOP", target_page="201", color="green"),
            Link(label="WORLD", target_page="202", color="yellow"),
            Link(label="TECH", target_page="204", color="blue"),
        ])

    def _headline_list(self, page_id: str, section: NewsSection, headlines, fallback: bool):
        body = [""]
        if fallback:
            body += ["LIVE FEED UNAVAILABLE - STORED NEWS", ""]
        for i, headline in enumerate(headlines[:9], start=1):
            lines = wrap_text(headline["title"], 36)
            body.append(f"{i}. {lines[0]}")
            if len(lines) > 1:
                body.append("   " + ellipsize(" ".join(lines[1:]), 37))
        body += ["", f"Enter {page_id}-1 to {page_id}-{min(len(headlines), 9)} to read"]
        return self.make_page(page_id, section.title, body,
                              links=[INDEX_LINK, Link(label="NEWS", target_page="200", color="green")],
                              meta={"fallback": fallback} if fallback else None)

    def _article_summary(self, page_id: str, section_page: str, section: NewsSection, article):
        body = ["", *wrap_text(article["title"], 40), "",
                ellipsize(f"Source: {article['source']}", 40)]
        if article.get("published"):
            body.append(f"Published: {article['published'][:10]}")
        body += ["", *wrap_text(article.get("description") or "No summary available.", 40)]
        return self.make_page(page_id, section.title, body[:20], links=[
            INDEX_LINK,
            Link(label="LIST", target_page=section_page, color="green"),
            Link(label="READ", target_page=f"{page_id}-1", color="yellow"),
        ])

    def _article_body(self, article_page: str, section_page: str, article):
        text = _TRUNCATION_RE.sub("", article.get("content") or "")
        text = "\n\n".join(part for part in (article["title"], article.get("description"), text) if part)
        return paginate(
            text,
            f"{article_page}-1",
            title=ellipsize(article["source"], 30),
            links=[INDEX_LINK, Link(label="LIST", target_page=section_page, color="green")],
            meta={"source": self.name},
        )
