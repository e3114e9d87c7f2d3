# FILE: teletext/adapters/markets.py
"""
Markets pages (400-419)
"""
import logging

from teletext.adapters.base import INDEX_LINK, ContentAdapter
from teletext.errors import ExternalAPIError, PageNotFoundError
from teletext.models.page import Link
from teletext.models.requests import PageRequest, PageResult
from teletext.page_ids import parse_page_id
from teletext.services.fetchers import ContentFetcher

logger = logging.getLogger(__name__)

MARKETS_LINK = Link(label="MARKETS", target_page="400", color="green")


def format_price(price) -> str:
    if price is None:
        return "n/a"
    if price >= 1000:
        return f"${price:,.0f}"
    if price >= 1:
        return f"${price:,.2f}"
    return f"${price:.4f}"


def format_change(change) -> str:
    if change is None:
        return "  --  "
    arrow = "▲" if change >= 0 else "▼"
    return f"{arrow}{abs(change):5.1f}%"


class MarketsAdapter(ContentAdapter):
    """Crypto prices from CoinGecko (no API key required)"""

    name = "markets"
    cache_duration = 60

    def __init__(self, fetcher: ContentFetcher):
        self.fetcher = fetcher

    async def get_page(self, request: PageRequest) -> PageResult:
        address = parse_page_id(request.page_id)
        if address.sub_index is not None:
            raise PageNotFoundError(request.page_id)

        if address.number == 400:
            return self.single(self._index_page())
        if address.number == 401:
            return self.single(await self._crypto_page())
        return self.single(self.placeholder_page(request.page_id, links=[INDEX_LINK, MARKETS_LINK]))

    def _index_page(self):
        body = [
            "",
            "MARKETS & FINANCE",
            "",
            "401 Cryptocurrency Prices",
            "",
            "420 Weather",
            "",
            "Prices refresh every minute.",
            "Figures are indicative only.",
        ]
        return self.make_page("400", "Markets", body, links=[
            INDEX_LINK,
            Link(label="CRYPTO", target_page="401", color="green"),
            Link(label="WEATHER", target_page="420", color="yellow"),
        ])

    async def _crypto_page(self):
        try:
            result = await self.fetcher.fetch_crypto_prices()
        except ExternalAPIError as e:
            logger.warning(f"Crypto prices unavailable, using fallback: {e}")
            return self.fallback_notice("401", "Crypto Prices", e.api_name, [
                "Prices are not available right now.",
                "Please check back in a minute.",
            ], links=[INDEX_LINK, MARKETS_LINK])

        body = ["", "COIN            PRICE (USD)   24H"]
        for coin in result.value:
            body.append(f"{coin['name']:<12} {format_price(coin['price']):>14} {format_change(coin['change'])}")
        body += ["", "Source: CoinGecko"]
        return self.make_page("401", "Crypto Prices", body, links=[INDEX_LINK, MARKETS_LINK])
