# FILE: teletext/adapters/weather.py
"""
Weather pages (420-449): city index on 420, current conditions on 421-429
"""
import logging
from typing import Type

from teletext.adapters.base import INDEX_LINK, ContentAdapter
from teletext.errors import ExternalAPIError, PageNotFoundError
from teletext.models.page import Link
from teletext.models.requests import CityParams, NoParams, PageParams, PageRequest, PageResult
from teletext.page_ids import parse_page_id
from teletext.services.fetchers import ContentFetcher
from teletext.services.grid import centered

logger = logging.getLogger(__name__)

WEATHER_LINK = Link(label="WEATHER", target_page="420", color="green")

CITIES = {
    421: "London",
    422: "New York",
    423: "Tokyo",
    424: "Paris",
    425: "Sydney",
    426: "Berlin",
    427: "Mumbai",
    428: "Toronto",
    429: "Cairo",
}


def _reading(value, unit: str) -> str:
    if value is None:
        return "n/a"
    return f"{round(value)}{unit}"


class WeatherAdapter(ContentAdapter):
    """Current conditions from OpenWeather"""

    name = "weather"
    cache_duration = 600

    def __init__(self, fetcher: ContentFetcher):
        self.fetcher = fetcher

    def params_model_for(self, page_id: str) -> Type[PageParams]:
        if page_id == "420":
            return CityParams
        return NoParams

    def cache_duration_for(self, request: PageRequest) -> int:
        # A city searched on 420 is not the cached index
        if getattr(request.params, "city", None):
            return 0
        return self.cache_duration

    async def get_page(self, request: PageRequest) -> PageResult:
        address = parse_page_id(request.page_id)
        if address.sub_index is not None:
            raise PageNotFoundError(request.page_id)

        if address.number == 420:
            city = getattr(request.params, "city", None)
            if city:
                return self.single(await self._city_page("420", city.strip()))
            return self.single(self._index_page())

        city = CITIES.get(address.number)
        if city is None:
            return self.single(self.placeholder_page(request.page_id, links=[INDEX_LINK, WEATHER_LINK]))
        return self.single(await self._city_page(request.page_id, city))

    def _index_page(self):
        body = ["", "CURRENT CONDITIONS", ""]
        for number, city in CITIES.items():
            body.append(f"{number} {city}")
        body += ["", "Add ?city=<name> to page 420 to", "look up any other city."]
        return self.make_page("420", "Weather", body, links=[
            INDEX_LINK,
            Link(label="LONDON", target_page="421", color="green"),
            Link(label="NEW YORK", target_page="422", color="yellow"),
            Link(label="TOKYO", target_page="423", color="blue"),
        ])

    async def _city_page(self, page_id: str, city: str):
        title = f"Weather: {city}"
        try:
            result = await self.fetcher.fetch_weather(city)
        except ExternalAPIError as e:
            logger.warning(f"Weather for {city} unavailable: {e}")
            return self.fallback_notice(page_id, title, e.api_name, [
                f"No reading for {city} right now.",
                "Forecasts return when the feed does.",
            ], links=[INDEX_LINK, WEATHER_LINK])
        if not result.ok:
            return self.setup_page(page_id, title, result.config_error, links=[INDEX_LINK, WEATHER_LINK])

        weather = result.value
        body = [
            "",
            centered(weather["city"].upper()),
            "",
            centered(weather["description"].upper()),
            "",
            f"  Temperature   {_reading(weather['temp'], 'C')}",
            f"  Feels like    {_reading(weather['feels_like'], 'C')}",
            f"  Humidity      {_reading(weather['humidity'], '%')}",
            f"  Wind          {_reading(weather['wind'], ' m/s')}",
            "",
            "Source: OpenWeather",
        ]
        return self.make_page(page_id, title, body, links=[INDEX_LINK, WEATHER_LINK])
