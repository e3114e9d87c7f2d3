# FILE: tests/conftest.py

import asyncio
import os
from typing import Any, Dict, List

# Telemetry writes to LOGS_DIR; keep test runs off the disk
os.environ["TELEMETRY_ENABLED"] = "false"

import httpx
import pytest

from teletext.config import Settings, reload_settings
from teletext.providers.base import GenerationProvider
from teletext.services.container import ServiceContainer, set_services
from teletext.services.fetchers import ContentFetcher
from teletext.services.result import FetchResult
from teletext.services.telemetry import reset_telemetry


class FakeClock:
    """Manually advanced clock; sleep() advances it instead of waiting"""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds

    async def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class FakeProvider(GenerationProvider):
    """
    Scripted provider.

    Each call pops the next scripted item: an Exception is raised, a string
    is returned. Once the script runs out it echoes the prompt.
    """

    name = "fake"

    def __init__(self, script=None, delay: float = 0.0):
        self.script = list(script or [])
        self.delay = delay
        self.calls: List[str] = []
        self.active = 0
        self.max_active = 0

    async def generate(self, prompt, history=()):
        self.calls.append(prompt)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.script:
                item = self.script.pop(0)
                if isinstance(item, BaseException):
                    raise item
                return item
            return f"Answer: {prompt[-60:]}"
        finally:
            self.active -= 1


NEWS_ARTICLES = [
    {
        "title": "Teletext returns to living rooms across the country",
        "source": {"name": "Ceefax Times"},
        "description": "Retro text pages are back in fashion.",
        "content": "Viewers are rediscovering page 100 this winter. [+1200 chars]",
        "publishedAt": "2024-10-31T12:00:00Z",
    },
    {
        "title": "[Removed]",
        "source": {"name": "Removed"},
        "description": None,
        "content": None,
        "publishedAt": "",
    },
    {
        "title": "Local council approves new bus routes",
        "source": {"name": "Evening Post"},
        "description": "Three routes start in spring.",
        "content": "The routes link the station with the hospital.",
        "publishedAt": "2024-10-30T08:30:00Z",
    },
]

TRIVIA_RESULTS = [
    {
        "category": "Science &amp; Nature",
        "difficulty": "easy",
        "question": "Which planet is known as the &quot;Red Planet&quot;?",
        "correct_answer": "Mars",
        "incorrect_answers": ["Venus", "Jupiter", "Mercury"],
    },
    {
        "category": "Geography",
        "difficulty": "medium",
        "question": "What is the capital of Austria?",
        "correct_answer": "Vienna",
        "incorrect_answers": ["Graz", "Salzburg", "Linz"],
    },
]


class FakeUpstream:
    """httpx.MockTransport handler standing in for every content API"""

    def __init__(self):
        self.failing: set = set()
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if host in self.failing:
            return httpx.Response(503, json={"message": "unavailable"})
        if host == "newsapi.org":
            return httpx.Response(200, json={"status": "ok", "articles": NEWS_ARTICLES})
        if host == "api.football-data.org":
            if request.url.path.endswith("/matches"):
                return httpx.Response(200, json={"matches": [{
                    "homeTeam": {"shortName": "Arsenal"},
                    "awayTeam": {"shortName": "Chelsea"},
                    "score": {"fullTime": {"home": 2, "away": 1}},
                    "utcDate": "2024-10-26T14:00:00Z",
                }]})
            return httpx.Response(200, json={"standings": [{"table": [
                {"position": 1, "team": {"shortName": "Arsenal"}, "playedGames": 9, "points": 22},
                {"position": 2, "team": {"shortName": "Chelsea"}, "playedGames": 9, "points": 19},
            ]}]})
        if host == "api.openweathermap.org":
            return httpx.Response(200, json={
                "name": request.url.params.get("q"),
                "main": {"temp": 11.6, "feels_like": 9.2, "humidity": 81},
                "weather": [{"description": "light rain"}],
                "wind": {"speed": 4.1},
            })
        if host == "api.coingecko.com":
            return httpx.Response(200, json={
                "bitcoin": {"usd": 67321.5, "usd_24h_change": 2.41},
                "ethereum": {"usd": 2634.12, "usd_24h_change": -1.05},
            })
        if host == "opentdb.com":
            return httpx.Response(200, json={"response_code": 0, "results": TRIVIA_RESULTS})
        return httpx.Response(404, json={})


@pytest.fixture(autouse=True)
def reset_state():
    """Fresh settings and telemetry for every test"""
    reload_settings()
    reset_telemetry()
    yield
    set_services(None)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings with every content API key set and no background sweep"""
    return Settings(
        store_backend="memory",
        data_dir=str(tmp_path / "data"),
        logs_dir=str(tmp_path / "logs"),
        telemetry_enabled=False,
        store_sweep_interval_seconds=0,
        news_api_key="test-news-key",
        sports_api_key="test-sports-key",
        openweather_api_key="test-weather-key",
    )


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def fetcher(settings, upstream) -> ContentFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
    return ContentFetcher(settings, client=client)


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def services(settings, clock, provider, fetcher) -> ServiceContainer:
    """Container wired to fakes; the throttler shares the fake clock"""
    return ServiceContainer(
        settings=settings,
        clock=clock,
        provider=FetchResult.success(provider),
        fetcher=fetcher,
        throttler_sleep=clock.sleep,
        throttler_clock=clock,
    )


def page_text(page: Dict[str, Any]) -> str:
    """All rows of a JSON page joined, for content assertions"""
    return "\n".join(page["rows"])
