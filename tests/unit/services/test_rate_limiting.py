import asyncio

import pytest

from src.adapter.services.memory_rate_limit_storage import MemoryRateLimitStorage
from src.app.services.auth.rate_limiter import RateLimiter
from src.app.services.auth.resend_verification_throttle import (
    ResendVerificationThrottle,
    email_key,
    ip_key,
)


@pytest.fixture
def storage(clock):
    return MemoryRateLimitStorage(clock=clock)


@pytest.mark.asyncio
async def test_allow_counts_hits_within_window(storage):
    results = [await storage.allow("k", 3, 60) for _ in range(4)]

    assert results == [True, True, True, False]
    assert await storage.get_remaining_attempts("k", 3, 60) == 0


@pytest.mark.asyncio
async def test_window_restarts_after_reset_time(storage, clock):
    for _ in range(3):
        await storage.allow("k", 2, 60)
    reset_at = await storage.get_reset_time("k", 60)

    clock.advance(60)

    assert reset_at == int(clock.now)
    assert await storage.get_remaining_attempts("k", 2, 60) == 2
    assert await storage.allow("k", 2, 60)


@pytest.mark.asyncio
async def test_reset_time_for_unknown_key_is_one_window_ahead(storage, clock):
    assert await storage.get_reset_time("unknown", 300) == int(clock.now + 300)


@pytest.mark.asyncio
async def test_reset_and_clear(storage):
    await storage.allow("a", 1, 60)
    await storage.allow("b", 1, 60)

    await storage.reset("a")
    assert await storage.get_remaining_attempts("a", 1, 60) == 1
    assert await storage.get_remaining_attempts("b", 1, 60) == 0

    await storage.clear()
    assert await storage.get_remaining_attempts("b", 1, 60) == 1


@pytest.mark.asyncio
async def test_concurrent_hits_are_never_lost(storage):
    results = await asyncio.gather(*[storage.allow("k", 10, 60) for _ in range(25)])

    assert results.count(True) == 10
    assert await storage.get_remaining_attempts("k", 10, 60) == 0


@pytest.mark.asyncio
async def test_rate_limiter_prefixes_keys(storage):
    limiter = RateLimiter(storage, key_prefix="login_")

    await limiter.allow("10.0.0.1", 1, 60)

    assert await storage.get_remaining_attempts("login_10.0.0.1", 1, 60) == 0
    assert await storage.get_remaining_attempts("10.0.0.1", 1, 60) == 1


def test_email_key_is_normalised_hash():
    key = email_key("  Alice@Example.COM ")

    assert key == email_key("alice@example.com")
    assert key.startswith("email:")
    assert "alice" not in key
    assert ip_key("10.0.0.1") == "ip:10.0.0.1"


@pytest.mark.asyncio
async def test_throttle_allows_one_resend_per_email(storage):
    throttle = ResendVerificationThrottle(storage)

    assert await throttle.allow("10.0.0.1", "alice@example.com")
    assert not await throttle.allow("10.0.0.2", "alice@example.com")
    assert await throttle.allow("10.0.0.1", "bob@example.com")


@pytest.mark.asyncio
async def test_throttle_allows_five_requests_per_ip(storage):
    throttle = ResendVerificationThrottle(storage)

    results = [await throttle.allow("10.0.0.1", f"user{i}@example.com") for i in range(6)]

    assert results == [True] * 5 + [False]
    assert await throttle.get_remaining_ip_attempts("10.0.0.1") == 0


@pytest.mark.asyncio
async def test_email_rejection_still_consumes_ip_attempt(storage):
    throttle = ResendVerificationThrottle(storage)
    await throttle.allow("10.0.0.1", "alice@example.com")

    assert not await throttle.allow("10.0.0.1", "alice@example.com")

    assert await throttle.get_remaining_ip_attempts("10.0.0.1") == 3


@pytest.mark.asyncio
async def test_ip_rejection_does_not_touch_email_window(storage):
    throttle = ResendVerificationThrottle(storage, ip_limit=1)
    await throttle.allow("10.0.0.1", "alice@example.com")

    assert not await throttle.allow("10.0.0.1", "bob@example.com")

    assert await throttle.get_remaining_email_attempts("bob@example.com") == 1


@pytest.mark.asyncio
async def test_throttle_resets(storage, clock):
    throttle = ResendVerificationThrottle(storage)
    await throttle.allow("10.0.0.1", "alice@example.com")

    assert await throttle.get_email_reset_time("alice@example.com") == int(clock.now + 300)
    assert await throttle.get_ip_reset_time("10.0.0.1") == int(clock.now + 300)

    await throttle.reset_email("ALICE@example.com")
    assert await throttle.get_remaining_email_attempts("alice@example.com") == 1

    await throttle.reset_ip("10.0.0.1")
    assert await throttle.get_remaining_ip_attempts("10.0.0.1") == 5

    await throttle.allow("10.0.0.1", "alice@example.com")
    await throttle.clear()
    assert await throttle.get_remaining_email_attempts("alice@example.com") == 1
    assert throttle.storage is storage
