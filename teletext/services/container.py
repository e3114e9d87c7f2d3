# FILE: teletext/services/container.py
"""
Service wiring: stores, caches, provider, throttler, adapters and router

One container per process, built on startup and closed on shutdown. Tests
build their own with injected clocks, providers and fetchers.
"""
import asyncio
import logging
import time
from typing import Any, Callable, Dict, Optional

from teletext.adapters.ai import AIAdapter
from teletext.adapters.dev import DevAdapter
from teletext.adapters.games import GamesAdapter
from teletext.adapters.markets import MarketsAdapter
from teletext.adapters.news import NewsAdapter
from teletext.adapters.settings import SettingsAdapter
from teletext.adapters.sports import SportsAdapter
from teletext.adapters.system import SystemAdapter
from teletext.adapters.weather import WeatherAdapter
from teletext.config import Settings, get_settings
from teletext.providers.base import GenerationProvider
from teletext.providers.registry import build_provider
from teletext.services.fetchers import ContentFetcher
from teletext.services.page_cache import PageCache
from teletext.services.page_service import PageService
from teletext.services.response_cache import ResponseCache
from teletext.services.result import FetchResult
from teletext.services.router import PageRouter
from teletext.services.session_store import ConversationStore, QuizSessionStore, StorySessionStore
from teletext.services.telemetry import get_telemetry_summary
from teletext.services.throttler import RequestThrottler
from teletext.services.ttl_store import TTLStore, create_store

logger = logging.getLogger(__name__)

NAMESPACES = ("conversations", "quiz_sessions", "branching_sessions", "pages_cache", "ai_responses")


class ServiceContainer:
    """Everything a request needs, built once from settings"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.time,
        provider: Optional[FetchResult[GenerationProvider]] = None,
        fetcher: Optional[ContentFetcher] = None,
        throttler_sleep: Callable[[float], Any] = asyncio.sleep,
        throttler_clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or get_settings()
        if self.settings.store_backend == "file":
            self.settings.ensure_dirs()

        self.stores: Dict[str, TTLStore] = {
            namespace: create_store(self.settings.store_backend, namespace, self.settings.data_dir, clock=clock)
            for namespace in NAMESPACES
        }

        self.conversations = ConversationStore(
            self.stores["conversations"], self.settings.conversation_ttl_hours * 3600
        )
        self.quiz_sessions = QuizSessionStore(
            self.stores["quiz_sessions"], self.settings.quiz_ttl_minutes * 60
        )
        self.story_sessions = StorySessionStore(
            self.stores["branching_sessions"], self.settings.story_ttl_minutes * 60
        )
        self.response_cache = ResponseCache(
            self.stores["ai_responses"],
            ttl_seconds=self.settings.response_cache_ttl_seconds,
            history_turns=self.settings.response_cache_history_turns,
        )
        self.page_cache = PageCache(self.stores["pages_cache"], enabled=self.settings.page_cache_enabled)

        self.provider_result = provider or build_provider(self.settings)
        self.throttler: Optional[RequestThrottler] = None
        if self.provider_result.ok:
            self.throttler = RequestThrottler(
                self.provider_result.value,
                self.response_cache,
                max_retries=self.settings.throttle_max_retries,
                base_delay=self.settings.throttle_base_delay_seconds,
                timeout=self.settings.generation_timeout_seconds,
                clock=throttler_clock,
                sleep=throttler_sleep,
            )

        self.fetcher = fetcher or ContentFetcher(self.settings)
        self.ai = AIAdapter(self.conversations, self.throttler, self.provider_result.config_error)
        self.router = PageRouter({
            "system": SystemAdapter(),
            "news": NewsAdapter(self.fetcher),
            "sports": SportsAdapter(self.fetcher),
            "markets": MarketsAdapter(self.fetcher),
            "weather": WeatherAdapter(self.fetcher),
            "ai": self.ai,
            "games": GamesAdapter(self.fetcher, self.quiz_sessions, self.story_sessions, self.throttler),
            "settings": SettingsAdapter(),
            "dev": DevAdapter(self.status),
        })
        self.pages = PageService(self.router, self.page_cache)
        self._sweep_task: Optional[asyncio.Task] = None

    def status(self) -> Dict[str, Any]:
        if self.provider_result.ok:
            provider = self.provider_result.value.name
        else:
            provider = f"unconfigured ({self.provider_result.config_error.setting})"
        return {
            "provider": provider,
            "store_backend": self.settings.store_backend,
            "store_entries": {namespace: len(store) for namespace, store in self.stores.items()},
            "throttler": self.throttler.state() if self.throttler else None,
            "telemetry": get_telemetry_summary(),
        }

    def sweep(self) -> int:
        removed = sum(store.sweep() for store in self.stores.values())
        if removed:
            logger.debug(f"Store sweep removed {removed} expired entries")
        return removed

    async def _sweep_loop(self):
        interval = self.settings.store_sweep_interval_seconds
        while True:
            await asyncio.sleep(interval)
            self.sweep()

    def start(self):
        if self.settings.store_sweep_interval_seconds > 0 and self._sweep_task is None:
            self._sweep_task = asyncio.create_task(self._sweep_loop())

    async def aclose(self):
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None
        if self.throttler is not None:
            await self.throttler.aclose()
            await self.throttler.provider.aclose()
        await self.fetcher.aclose()
        logger.info("Services closed")


_services: Optional[ServiceContainer] = None


def get_services() -> ServiceContainer:
    """Get or create the process-wide service container"""
    global _services
    if _services is None:
        _services = ServiceContainer()
    return _services


def set_services(services: Optional[ServiceContainer]):
    """Install a prebuilt container (tests) or clear it with None"""
    global _services
    _services = services
