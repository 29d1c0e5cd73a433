import pytest

from app.adapters.memory_rate_limit_store import MemoryRateLimitStore
from app.domain.errors import RateLimitedError
from app.domain.models import RateLimitPolicy
from app.ports.rate_limit_port import RateLimitStorePort
from app.services.rate_limit_service import RateLimiter


@pytest.fixture
def store():
    return MemoryRateLimitStore()


@pytest.fixture
def limiter(store, clock):
    return RateLimiter(store=store, policy=RateLimitPolicy(), clock=clock)


async def _spend(limiter, clock, times):
    """Make ``times`` requests, each spaced past the backoff cap."""
    for _ in range(times):
        await limiter.check("u1")
        clock.advance(61)


@pytest.mark.asyncio
async def test_first_request_opens_window(limiter):
    headers = await limiter.check("u1")
    assert headers["X-RateLimit-Limit"] == "5"
    assert headers["X-RateLimit-Remaining"] == "4"
    assert headers["X-RateLimit-Reset"].startswith("2026-03-03T09:00:00")


@pytest.mark.asyncio
async def test_quota_exhausted_after_limit(limiter, clock):
    await _spend(limiter, clock, 5)

    with pytest.raises(RateLimitedError) as exc_info:
        await limiter.check("u1")

    err = exc_info.value
    assert err.status_code == 429
    assert err.extra["remaining"] == 0
    assert err.retry_after == 24 * 3600 - 5 * 61


@pytest.mark.asyncio
async def test_window_resets(limiter, clock):
    await _spend(limiter, clock, 5)
    clock.advance(hours=24)

    headers = await limiter.check("u1")
    assert headers["X-RateLimit-Remaining"] == "4"


@pytest.mark.asyncio
async def test_backoff_grows_exponentially(limiter, clock):
    await limiter.check("u1")
    clock.advance(0.5)
    with pytest.raises(RateLimitedError) as exc_info:
        await limiter.check("u1")
    assert exc_info.value.retry_after == 1

    clock.advance(0.5)
    await limiter.check("u1")  # second request needs 1s

    clock.advance(1.5)
    with pytest.raises(RateLimitedError) as exc_info:
        await limiter.check("u1")  # third request needs 2s
    assert "slow down" in exc_info.value.message


@pytest.mark.asyncio
async def test_users_are_limited_independently(limiter, clock):
    await _spend(limiter, clock, 5)
    headers = await limiter.check("u2")
    assert headers["X-RateLimit-Remaining"] == "4"


@pytest.mark.asyncio
async def test_status_does_not_count(limiter):
    assert (await limiter.status("u1"))["remaining"] == 5
    await limiter.check("u1")
    status = await limiter.status("u1")
    assert status["remaining"] == 4
    assert status["limit"] == 5


@pytest.mark.asyncio
async def test_purge_drops_closed_windows(limiter, store, clock):
    await limiter.check("u1")
    clock.advance(hours=25)
    assert await limiter.purge() == 1
    assert await store.get("interview_gen:u1") is None


class BrokenStore(RateLimitStorePort):
    async def get(self, key):
        raise ConnectionError("store down")

    async def put(self, key, entry, expires_at):
        raise ConnectionError("store down")

    async def purge_expired(self, now):
        return 0


@pytest.mark.asyncio
async def test_store_outage_allows_request(clock):
    limiter = RateLimiter(store=BrokenStore(), clock=clock)
    assert await limiter.check("u1") == {}
