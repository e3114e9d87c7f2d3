# FILE: teletext/services/fetchers.py
"""
Upstream content fetchers (news, sports, weather, markets, trivia)

Each fetch is a plain HTTP GET + JSON parse with an explicit timeout.
A missing API key comes back as FetchResult.unconfigured(...); network and
upstream failures raise ExternalAPIError for the adapter to recover from.
"""
import html
import logging
import random
from typing import Any, Dict, List, Optional

import httpx

from teletext.config import Settings
from teletext.errors import ExternalAPIError
from teletext.models.sessions import Question
from teletext.services.result import FetchResult

logger = logging.getLogger(__name__)

CRYPTO_IDS = ["bitcoin", "ethereum", "solana", "cardano", "dogecoin", "ripple"]


class ContentFetcher:
    """Shared HTTP client for every content adapter"""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.client = client or httpx.AsyncClient(timeout=settings.fetch_timeout_seconds)

    async def _get_json(
        self,
        api_name: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        try:
            response = await self.client.get(
                url, params=params, headers=headers, timeout=self.settings.fetch_timeout_seconds
            )
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            raise ExternalAPIError(f"timed out after {self.settings.fetch_timeout_seconds}s", api_name) from e
        except httpx.HTTPStatusError as e:
            raise ExternalAPIError(f"HTTP {e.response.status_code}", api_name) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ExternalAPIError(str(e) or type(e).__name__, api_name) from e

    async def fetch_headlines(self, category: str = "general", country: Optional[str] = "us",
                              limit: int = 9) -> FetchResult[List[Dict[str, str]]]:
        if not self.settings.news_api_key:
            return FetchResult.unconfigured("NewsAPI", "NEWS_API_KEY", signup_url="newsapi.org/register")

        params = {"category": category, "pageSize": limit}
        if country:
            params["country"] = country
        data = await self._get_json(
            "NewsAPI",
            self.settings.news_api_url,
            params=params,
            headers={"X-Api-Key": self.settings.news_api_key},
        )
        if data.get("status") != "ok":
            raise ExternalAPIError(data.get("message", "unexpected response"), "NewsAPI")

        headlines = []
        for article in data.get("articles", [])[:limit]:
            title = (article.get("title") or "").strip()
            if not title or title == "[Removed]":
                continue
            headlines.append({
                "title": title,
                "source": (article.get("source") or {}).get("name") or "Unknown",
                "description": (article.get("description") or "").strip(),
                "content": (article.get("content") or "").strip(),
                "published": article.get("publishedAt") or "",
            })
        return FetchResult.success(headlines)

    async def fetch_matches(self, limit: int = 10) -> FetchResult[List[Dict[str, Any]]]:
        if not self.settings.sports_api_key:
            return FetchResult.unconfigured("football-data.org", "SPORTS_API_KEY",
                                            signup_url="football-data.org/client/register")

        data = await self._get_json(
            "football-data.org",
            f"{self.settings.sports_api_url}/competitions/{self.settings.sports_competition}/matches",
            params={"status": "FINISHED"},
            headers={"X-Auth-Token": self.settings.sports_api_key},
        )
        matches = []
        for match in data.get("matches", [])[-limit:]:
            score = (match.get("score") or {}).get("fullTime") or {}
            matches.append({
                "home": (match.get("homeTeam") or {}).get("shortName") or "?",
                "away": (match.get("awayTeam") or {}).get("shortName") or "?",
                "home_score": score.get("home"),
                "away_score": score.get("away"),
                "date": (match.get("utcDate") or "")[:10],
            })
        return FetchResult.success(matches)

    async def fetch_standings(self, limit: int = 16) -> FetchResult[List[Dict[str, Any]]]:
        if not self.settings.sports_api_key:
            return FetchResult.unconfigured("football-data.org", "SPORTS_API_KEY",
                                            signup_url="football-data.org/client/register")

        data = await self._get_json(
            "football-data.org",
            f"{self.settings.sports_api_url}/competitions/{self.settings.sports_competition}/standings",
            headers={"X-Auth-Token": self.settings.sports_api_key},
        )
        standings = data.get("standings") or [{}]
        table = []
        for row in (standings[0].get("table") or [])[:limit]:
            table.append({
                "position": row.get("position") or 0,
                "team": (row.get("team") or {}).get("shortName") or "?",
                "played": row.get("playedGames") or 0,
                "points": row.get("points") or 0,
            })
        return FetchResult.success(table)

    async def fetch_weather(self, city: str) -> FetchResult[Dict[str, Any]]:
        if not self.settings.openweather_api_key:
            return FetchResult.unconfigured("OpenWeather", "OPENWEATHER_API_KEY",
                                            signup_url="openweathermap.org/api")

        data = await self._get_json(
            "OpenWeather",
            self.settings.openweather_api_url,
            params={"q": city, "appid": self.settings.openweather_api_key, "units": "metric"},
        )
        main = data.get("main") or {}
        weather = (data.get("weather") or [{}])[0]
        return FetchResult.success({
            "city": data.get("name") or city,
            "temp": main.get("temp"),
            "feels_like": main.get("feels_like"),
            "humidity": main.get("humidity"),
            "description": weather.get("description") or "unknown",
            "wind": (data.get("wind") or {}).get("speed"),
        })

    async def fetch_crypto_prices(self) -> FetchResult[List[Dict[str, Any]]]:
        data = await self._get_json(
            "CoinGecko",
            self.settings.coingecko_api_url,
            params={"ids": ",".join(CRYPTO_IDS), "vs_currencies": "usd", "include_24hr_change": "true"},
        )
        prices = []
        for coin_id in CRYPTO_IDS:
            quote = data.get(coin_id)
            if not quote:
                continue
            prices.append({
                "name": coin_id.upper(),
                "price": quote.get("usd"),
                "change": quote.get("usd_24h_change"),
            })
        return FetchResult.success(prices)

    async def fetch_trivia(self, amount: int = 5, rng: Optional[random.Random] = None) -> FetchResult[List[Question]]:
        rng = rng or random.Random()
        data = await self._get_json(
            "Open Trivia DB",
            self.settings.trivia_api_url,
            params={"amount": amount, "type": "multiple"},
        )
        if data.get("response_code") != 0:
            raise ExternalAPIError(f"response_code {data.get('response_code')}", "Open Trivia DB")

        questions = []
        for item in data.get("results", []):
            correct = html.unescape(item["correct_answer"])
            options = [html.unescape(a) for a in item["incorrect_answers"]] + [correct]
            rng.shuffle(options)
            questions.append(Question(
                question=html.unescape(item["question"]),
                options=options,
                correct_index=options.index(correct),
                category=html.unescape(item.get("category", "General")),
                difficulty=item.get("difficulty", "medium"),
            ))
        return FetchResult.success(questions)

    async def aclose(self):
        await self.client.aclose()
