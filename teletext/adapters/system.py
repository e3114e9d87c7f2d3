# FILE: teletext/adapters/system.py
"""
System pages: main index (100), how it works (101), about (199),
help (999), not found (404) and the cursed page (666)
"""
import logging

from teletext.adapters.base import INDEX_LINK, ContentAdapter
from teletext.errors import PageNotFoundError
from teletext.models.page import Link
from teletext.models.requests import PageRequest, PageResult
from teletext.page_ids import parse_page_id
from teletext.services.grid import centered

logger = logging.getLogger(__name__)

HELP_LINK = Link(label="HELP", target_page="999", color="green")


class SystemAdapter(ContentAdapter):
    """Static system pages, cached for a day"""

    name = "system"
    cache_duration = 86400

    async def get_page(self, request: PageRequest) -> PageResult:
        address = parse_page_id(request.page_id)
        if address.sub_index is not None:
            raise PageNotFoundError(request.page_id)

        builders = {
            100: self._index_page,
            101: self._how_it_works_page,
            199: self._about_page,
            404: self._not_found_page,
            666: self._cursed_page,
            999: self._help_page,
        }
        builder = builders.get(address.number)
        if builder is None:
            return self.single(self.placeholder_page(request.page_id))
        return self.single(builder())

    def _index_page(self):
        body = [
            "",
            "MAIN INDEX",
            "",
            "1xx SYSTEM PAGES",
            "2xx NEWS & CURRENT AFFAIRS",
            "3xx SPORT",
            "4xx MARKETS & WEATHER",
            "5xx AI ORACLE",
            "6xx GAMES & ENTERTAINMENT",
            "7xx SETTINGS & PREFERENCES",
            "8xx DEVELOPER TOOLS",
            "",
            "QUICK ACCESS:",
            "101 How it works",
            "199 About & credits",
            "420 Weather",
            "999 Help",
        ]
        return self.make_page("100", "Main Index", body, heading="Modern Teletext", links=[
            Link(label="NEWS", target_page="200", color="red"),
            Link(label="SPORT", target_page="300", color="green"),
            Link(label="MARKETS", target_page="400", color="yellow"),
            Link(label="AI", target_page="500", color="blue"),
        ])

    def _how_it_works_page(self):
        body = [
            "",
            "Every screen is a page of 24 rows by",
            "40 columns, addressed by a number.",
            "",
            "Type three digits to jump to a page.",
            "Long content continues on sub-pages",
            "such as 200-1, 200-2 and so on.",
            "",
            "The coloured keys follow the links",
            "shown at the foot of each page:",
            "  RED     GREEN     YELLOW     BLUE",
            "",
            "Some pages take typed input: quiz",
            "answers, story choices and questions",
            "for the AI oracle.",
        ]
        return self.make_page("101", "How It Works", body, links=[INDEX_LINK, HELP_LINK])

    def _about_page(self):
        body = [
            "",
            centered("MODERN TELETEXT"),
            "",
            "A revival of broadcast teletext with",
            "live news, sport, markets, weather,",
            "games and an AI oracle.",
            "",
            "DATA SOURCES:",
            " NewsAPI          football-data.org",
            " OpenWeather      CoinGecko",
            " Open Trivia DB   Google Gemini",
            "",
            "In memory of Ceefax, 1974-2012.",
        ]
        return self.make_page("199", "About & Credits", body, links=[INDEX_LINK, HELP_LINK])

    def _help_page(self):
        body = [
            "",
            "NAVIGATION",
            " 0-9      Enter a page number",
            " RED      First link on the page",
            " GREEN    Second link",
            " YELLOW   Third link (usually NEXT)",
            " BLUE     Fourth link (usually BACK)",
            "",
            "USEFUL PAGES",
            " 100  Main index",
            " 500  AI oracle",
            " 600  Games",
            " 700  Settings",
            " 800  Developer tools",
        ]
        return self.make_page("999", "Help", body, links=[
            INDEX_LINK,
            Link(label="KEYS", target_page="702", color="green"),
        ])

    def _not_found_page(self):
        body = [
            "",
            "    ▄▄▄▄▄▄▄▄▄▄▄▄▄▄▄▄▄▄▄▄▄▄▄▄",
            "    █ 4 0 4   E R R O R  █",
            "    ▀▀▀▀▀▀▀▀▀▀▀▀▀▀▀▀▀▀▀▀▀▀▀▀",
            "",
            "PAGE NOT FOUND",
            "",
            "The page you requested does not",
            "exist in the system.",
            "",
            "This could mean:",
            " - The page number is invalid",
            " - The content is not yet available",
            " - You have discovered a glitch...",
            "",
            "Press 100 to return to index",
        ]
        return self.make_page("404", "Page Not Found", body, heading="Error",
                              links=[INDEX_LINK, HELP_LINK])

    def _cursed_page(self):
        body = [
            "",
            centered("YOU SHOULD NOT BE HERE"),
            "",
            "The signal flickers. Something old",
            "is watching from between the lines",
            "of the broadcast.",
            "",
            "    666  666  666  666  666  666",
            "",
            "Every page you read here is a page",
            "that reads you back.",
            "",
            "Turn back while the carrier still",
            "holds...",
        ]
        return self.make_page("666", "Cursed Page", body, heading="Cursed",
                              links=[Link(label="ESCAPE", target_page="100", color="red")],
                              meta={"effects": ["glitch", "flicker"]})
