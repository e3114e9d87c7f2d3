# FILE: teletext/services/throttler.py
"""
Single-flight request throttler for the generation provider

All uncached calls go through one FIFO queue drained by a single background
task, so at most one generation call is in flight at any moment. A
rate-limited call sets a process-wide cooldown and is retried in place
after 1s, 2s and 4s before its caller gets RateLimitExceededError. Any
other failure is reported to the caller straight away.
"""
import asyncio
import logging
import re
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Sequence

from teletext.errors import ExternalAPIError, RateLimitExceededError, TeletextError
from teletext.models.sessions import HistoryTurn
from teletext.providers.base import GenerationProvider
from teletext.services.response_cache import ResponseCache
from teletext.services.telemetry import record_event

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

_RATE_LIMIT_RE = re.compile(
    r"\b429\b|resource[_ ]exhausted|rate[ _-]?limit|quota|too many requests",
    re.IGNORECASE,
)


def is_rate_limit_error(exc: BaseException) -> bool:
    """Classify provider failures that mean "slow down" rather than "broken"."""
    if isinstance(exc, RateLimitExceededError):
        return True
    if isinstance(exc, TeletextError):
        return bool(_RATE_LIMIT_RE.search(exc.message))

    for attr in ("status_code", "code", "status"):
        value = getattr(exc, attr, None)
        if value in (429, "429"):
            return True
        if isinstance(value, str) and value.upper() == "RESOURCE_EXHAUSTED":
            return True

    # httpx.HTTPStatusError and similar wrap the response
    response = getattr(exc, "response", None)
    if getattr(response, "status_code", None) == 429:
        return True

    return bool(_RATE_LIMIT_RE.search(str(exc)))


@dataclass
class PendingCall:
    prompt: str
    history: List[HistoryTurn]
    future: asyncio.Future
    retry_count: int = 0
    enqueued_at: float = field(default_factory=time.monotonic)

    def settle(self, result: Optional[str] = None, error: Optional[BaseException] = None):
        if self.future.done():
            return
        if error is not None:
            self.future.set_exception(error)
        else:
            self.future.set_result(result)


class RequestThrottler:
    """Serializes generation calls behind a cache, a queue and a cooldown"""

    def __init__(
        self,
        provider: GenerationProvider,
        cache: ResponseCache,
        max_retries: int = 3,
        base_delay: float = 1.0,
        timeout: Optional[float] = 5.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ):
        self.provider = provider
        self.cache = cache
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.timeout = timeout
        self.clock = clock
        self.sleep = sleep

        self.cooldown_until: Optional[float] = None
        self.queue: Deque[PendingCall] = deque()
        self.draining = False
        self.in_flight = 0
        self.calls_made = 0
        self._drain_task: Optional[asyncio.Task] = None
        self._current: Optional[PendingCall] = None

    def cooldown_remaining(self) -> float:
        if self.cooldown_until is None:
            return 0.0
        return max(0.0, self.cooldown_until - self.clock())

    async def invoke(self, prompt: str, history: Sequence[HistoryTurn] = ()) -> str:
        history = list(history)

        cached = self.cache.lookup(prompt, history)
        if cached is not None:
            record_event("ai_cache_hit")
            return cached

        call = PendingCall(prompt, history, asyncio.get_running_loop().create_future())
        self.queue.append(call)
        if self.cooldown_remaining() > 0 or self.draining:
            logger.info(f"AI request queued (position {len(self.queue)}, "
                        f"cooldown {self.cooldown_remaining():.1f}s)")
            record_event("ai_request_queued", queue_length=len(self.queue))
        self._ensure_draining()

        # A caller that gives up must not cancel the queued call
        return await asyncio.shield(call.future)

    def _ensure_draining(self):
        if self.draining:
            return
        self.draining = True
        self._drain_task = asyncio.create_task(self._drain())

    async def _drain(self):
        try:
            while self.queue:
                await self._wait_for_cooldown()
                self._current = self.queue.popleft()
                try:
                    await self._attempt(self._current)
                except Exception as e:
                    logger.error(f"AI request failed outside the provider call: {e}")
                    record_event("ai_generation_failed", reason=type(e).__name__)
                    self._current.settle(error=ExternalAPIError(str(e), self.provider.name))
                self._current = None
        finally:
            self.draining = False
            self._drain_task = None

    async def _wait_for_cooldown(self):
        while True:
            remaining = self.cooldown_remaining()
            if remaining <= 0:
                return
            await self.sleep(remaining)

    async def _call_provider(self, call: PendingCall) -> str:
        self.in_flight += 1
        self.calls_made += 1
        try:
            generation = self.provider.generate(call.prompt, call.history)
            if self.timeout is None:
                return await generation
            return await asyncio.wait_for(generation, self.timeout)
        finally:
            self.in_flight -= 1

    async def _attempt(self, call: PendingCall):
        while True:
            # An identical call ahead in the queue may have filled the cache
            cached = self.cache.lookup(call.prompt, call.history)
            if cached is not None:
                record_event("ai_cache_hit")
                call.settle(cached)
                return

            try:
                text = await self._call_provider(call)
            except asyncio.TimeoutError:
                logger.warning(f"AI generation timed out after {self.timeout}s")
                record_event("ai_generation_failed", reason="timeout")
                call.settle(error=ExternalAPIError(
                    f"generation timed out after {self.timeout}s", self.provider.name
                ))
                return
            except Exception as e:
                if not is_rate_limit_error(e):
                    logger.warning(f"AI generation failed: {e}")
                    record_event("ai_generation_failed", reason=type(e).__name__)
                    if not isinstance(e, TeletextError):
                        e = ExternalAPIError(str(e), self.provider.name)
                    call.settle(error=e)
                    return

                if call.retry_count >= self.max_retries:
                    attempts = call.retry_count + 1
                    logger.error(f"AI rate limit persisted after {attempts} attempts")
                    record_event("ai_rate_limit_exhausted", attempts=attempts)
                    call.settle(error=RateLimitExceededError(attempts))
                    return

                delay = self.base_delay * (2 ** call.retry_count)
                self.cooldown_until = self.clock() + delay
                call.retry_count += 1
                logger.warning(f"AI rate limited; retry {call.retry_count}/{self.max_retries} in {delay:.0f}s")
                record_event("ai_rate_limited", retry=call.retry_count, delay=delay)
                await self._wait_for_cooldown()
                continue

            self.cooldown_until = None
            try:
                self.cache.store(call.prompt, call.history, text)
            except Exception as e:
                logger.warning(f"Failed to cache AI response: {e}")
            call.settle(text)
            return

    async def aclose(self):
        """Stop draining and fail whatever is still queued"""
        task = self._drain_task
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        pending = list(self.queue)
        self.queue.clear()
        if self._current is not None:
            pending.insert(0, self._current)
            self._current = None
        for call in pending:
            call.settle(error=ExternalAPIError("service shutting down", self.provider.name))

    def state(self) -> Dict[str, Any]:
        return {
            "provider": self.provider.name,
            "cooldown_remaining_seconds": round(self.cooldown_remaining(), 3),
            "queue_length": len(self.queue),
            "draining": self.draining,
            "in_flight": self.in_flight,
            "calls_made": self.calls_made,
        }
