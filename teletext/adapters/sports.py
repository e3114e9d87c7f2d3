# FILE: teletext/adapters/sports.py
"""
Sport pages (3xx): index, latest results and the league table
"""
import logging

from teletext.adapters.base import INDEX_LINK, ContentAdapter
from teletext.errors import ExternalAPIError, PageNotFoundError
from teletext.models.page import Link
from teletext.models.requests import PageRequest, PageResult
from teletext.page_ids import parse_page_id
from teletext.services.fetchers import ContentFetcher
from teletext.services.grid import truncate

logger = logging.getLogger(__name__)

SPORT_LINK = Link(label="SPORT", target_page="300", color="green")

FALLBACK_BODY = [
    "Scores will return as soon as the",
    "live feed is back on air.",
    "",
    "Meanwhile, try the sports headlines",
    "on page 207.",
]


class SportsAdapter(ContentAdapter):
    """Football results and standings from football-data.org"""

    name = "sports"
    cache_duration = 120

    def __init__(self, fetcher: ContentFetcher):
        self.fetcher = fetcher

    async def get_page(self, request: PageRequest) -> PageResult:
        address = parse_page_id(request.page_id)
        if address.sub_index is not None:
            raise PageNotFoundError(request.page_id)

        if address.number == 300:
            return self.single(self._index_page())
        if address.number == 301:
            return self.single(await self._results_page())
        if address.number == 302:
            return self.single(await self._table_page())
        return self.single(self.placeholder_page(request.page_id, links=[INDEX_LINK, SPORT_LINK]))

    def _index_page(self):
        competition = self.fetcher.settings.sports_competition
        body = [
            "",
            f"FOOTBALL - {competition}",
            "",
            "301 Latest Results",
            "302 League Table",
            "",
            "207 Sports Headlines",
            "",
            "Results refresh every 2 minutes",
        ]
        return self.make_page("300", "Sport", body, links=[
            INDEX_LINK,
            Link(label="RESULTS", target_page="301", color="green"),
            Link(label="TABLE", target_page="302", color="yellow"),
        ])

    async def _results_page(self):
        try:
            result = await self.fetcher.fetch_matches()
        except ExternalAPIError as e:
            logger.warning(f"Results unavailable, using fallback: {e}")
            return self.fallback_notice("301", "Latest Results", e.api_name, FALLBACK_BODY,
                                        links=[INDEX_LINK, SPORT_LINK])
        if not result.ok:
            return self.setup_page("301", "Latest Results", result.config_error,
                                   links=[INDEX_LINK, SPORT_LINK])

        body = [""]
        if not result.value:
            body.append("No finished matches yet.")
        for match in result.value:
            home = truncate(match["home"], 14)
            away = truncate(match["away"], 14)
            score = f"{_goals(match['home_score'])}-{_goals(match['away_score'])}"
            body.append(f"{home:<14} {score:^5} {away:<14}")
        return self.make_page("301", "Latest Results", body, links=[
            INDEX_LINK, SPORT_LINK, Link(label="TABLE", target_page="302", color="yellow"),
        ])

    async def _table_page(self):
        try:
            result = await self.fetcher.fetch_standings()
        except ExternalAPIError as e:
            logger.warning(f"Standings unavailable, using fallback: {e}")
            return self.fallback_notice("302", "League Table", e.api_name, FALLBACK_BODY,
                                        links=[INDEX_LINK, SPORT_LINK])
        if not result.ok:
            return self.setup_page("302", "League Table", result.config_error,
                                   links=[INDEX_LINK, SPORT_LINK])

        body = ["POS TEAM                   PL   PTS"]
        for row in result.value:
            team = truncate(row["team"], 22)
            body.append(f"{row['position']:>3} {team:<22} {row['played']:>3} {row['points']:>5}")
        return self.make_page("302", "League Table", body, links=[
            INDEX_LINK, SPORT_LINK, Link(label="RESULTS", target_page="301", color="yellow"),
        ])


def _goals(value) -> str:
    return "-" if value is None else str(value)
