# FILE: tests/test_throttler.py
"""Tests for the single-flight request throttler"""
import asyncio

import pytest

from conftest import FakeProvider
from teletext.errors import ExternalAPIError, RateLimitExceededError
from teletext.services.response_cache import ResponseCache
from teletext.services.throttler import RequestThrottler, is_rate_limit_error
from teletext.services.ttl_store import InMemoryTTLStore


class RateLimited(Exception):
    status_code = 429


def make_throttler(provider, clock, **kwargs):
    cache = ResponseCache(InMemoryTTLStore(clock=clock), ttl_seconds=300)
    return RequestThrottler(provider, cache, clock=clock, sleep=clock.sleep, **kwargs)


@pytest.mark.asyncio
async def test_success_is_cached(clock):
    provider = FakeProvider(["first answer"])
    throttler = make_throttler(provider, clock)

    assert await throttler.invoke("hello") == "first answer"
    assert await throttler.invoke("hello") == "first answer"
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_rate_limit_backoff_then_give_up(clock):
    """Test 1s, 2s, 4s backoff and RateLimitExceededError after four attempts"""
    provider = FakeProvider([RateLimited("429 Too Many Requests")] * 4)
    throttler = make_throttler(provider, clock)

    with pytest.raises(RateLimitExceededError) as exc_info:
        await throttler.invoke("busy")

    assert clock.sleeps == [1.0, 2.0, 4.0]
    assert len(provider.calls) == 4
    assert exc_info.value.status_code == 429
    assert exc_info.value.attempts == 4


@pytest.mark.asyncio
async def test_rate_limit_recovers(clock):
    provider = FakeProvider([RateLimited("quota"), RateLimited("quota"), "finally"])
    throttler = make_throttler(provider, clock)

    assert await throttler.invoke("busy") == "finally"
    assert clock.sleeps == [1.0, 2.0]
    assert throttler.cooldown_remaining() == 0


@pytest.mark.asyncio
async def test_other_errors_fail_immediately(clock):
    provider = FakeProvider([ValueError("model exploded")])
    throttler = make_throttler(provider, clock)

    with pytest.raises(ExternalAPIError):
        await throttler.invoke("hello")
    assert clock.sleeps == []
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_timeout_is_external_error(clock):
    provider = FakeProvider(delay=1.0)
    throttler = make_throttler(provider, clock, timeout=0.01)

    with pytest.raises(ExternalAPIError) as exc_info:
        await throttler.invoke("slow")
    assert "timed out" in exc_info.value.message


@pytest.mark.asyncio
async def test_single_flight_in_fifo_order(clock):
    """Test that concurrent callers never overlap and are served in order"""
    provider = FakeProvider(delay=0.01)
    throttler = make_throttler(provider, clock)

    results = await asyncio.gather(*(throttler.invoke(f"prompt {i}") for i in range(4)))

    assert provider.max_active == 1
    assert provider.calls == [f"prompt {i}" for i in range(4)]
    assert results == [f"Answer: prompt {i}" for i in range(4)]


@pytest.mark.asyncio
async def test_queued_duplicate_uses_cache(clock):
    provider = FakeProvider(delay=0.01)
    throttler = make_throttler(provider, clock)

    first, second = await asyncio.gather(throttler.invoke("same"), throttler.invoke("same"))
    assert first == second
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_cooldown_delays_queued_callers(clock):
    """Test that a rate limit on one call holds back the calls behind it"""
    provider = FakeProvider([RateLimited("429"), "a", "b"])
    throttler = make_throttler(provider, clock)

    results = await asyncio.gather(throttler.invoke("one"), throttler.invoke("two"))
    assert results == ["a", "b"]
    assert clock.sleeps == [1.0]
    assert provider.calls == ["one", "one", "two"]


@pytest.mark.asyncio
async def test_aclose_fails_pending_calls(clock):
    provider = FakeProvider(delay=0.05)
    throttler = make_throttler(provider, clock)

    first = asyncio.ensure_future(throttler.invoke("one"))
    second = asyncio.ensure_future(throttler.invoke("two"))
    await asyncio.sleep(0.01)
    await throttler.aclose()

    for task in (first, second):
        with pytest.raises(ExternalAPIError):
            await task


def test_rate_limit_classification():
    assert is_rate_limit_error(RateLimited("slow down"))
    assert is_rate_limit_error(Exception("429 RESOURCE_EXHAUSTED"))
    assert is_rate_limit_error(Exception("Quota exceeded for model"))
    assert not is_rate_limit_error(Exception("invalid API key"))
    assert not is_rate_limit_error(ExternalAPIError("HTTP 500", "Gemini"))


def test_state_snapshot(clock):
    throttler = make_throttler(FakeProvider(), clock)
    state = throttler.state()
    assert state["provider"] == "fake"
    assert state["queue_length"] == 0
    assert state["in_flight"] == 0


@pytest.mark.asyncio
async def test_persistent_rate_limit_settles_every_caller(clock):
    """Test that N callers behind a provider stuck on 429 are served one at a time and all fail"""
    provider = FakeProvider([RateLimited("429")] * 12, delay=0.001)
    throttler = make_throttler(provider, clock)

    results = await asyncio.gather(
        *(throttler.invoke(f"prompt {i}") for i in range(3)), return_exceptions=True
    )

    assert provider.max_active == 1
    assert all(isinstance(result, RateLimitExceededError) for result in results)
    assert [result.attempts for result in results] == [4, 4, 4]
    assert clock.sleeps == [1.0, 2.0, 4.0] * 3
    assert provider.calls == ["prompt 0"] * 4 + ["prompt 1"] * 4 + ["prompt 2"] * 4
    assert throttler.state()["queue_length"] == 0
    assert throttler.draining is False


class BrokenStore(InMemoryTTLStore):
    def _write(self, key, entry):
        raise OSError("disk full")


@pytest.mark.asyncio
async def test_cache_write_failure_still_returns_answer(clock):
    provider = FakeProvider(["generated"])
    cache = ResponseCache(BrokenStore(clock=clock), ttl_seconds=300)
    throttler = RequestThrottler(provider, cache, clock=clock, sleep=clock.sleep)

    assert await asyncio.wait_for(throttler.invoke("hi"), 1.0) == "generated"
    assert throttler.draining is False


@pytest.mark.asyncio
async def test_cache_failure_in_queue_settles_caller_and_keeps_draining(clock):
    """Test that a failure outside the provider call fails only that caller"""
    provider = FakeProvider(delay=0.01)
    store = InMemoryTTLStore(clock=clock)
    throttler = RequestThrottler(provider, ResponseCache(store, ttl_seconds=300),
                                 clock=clock, sleep=clock.sleep)

    first = asyncio.ensure_future(throttler.invoke("one"))
    await asyncio.sleep(0)
    second = asyncio.ensure_future(throttler.invoke("two"))
    third = asyncio.ensure_future(throttler.invoke("three"))
    await asyncio.sleep(0)

    # The queued calls re-check the cache before calling the provider
    original_read = store._read
    failing = {"two"}

    def flaky_read(key):
        if throttler._current is not None and throttler._current.prompt in failing:
            failing.clear()
            raise KeyError("expires_at")
        return original_read(key)

    store._read = flaky_read

    assert await asyncio.wait_for(first, 1.0) == "Answer: one"
    with pytest.raises(ExternalAPIError):
        await asyncio.wait_for(second, 1.0)
    assert await asyncio.wait_for(third, 1.0) == "Answer: three"
    assert throttler.draining is False
