"""
Per-user quota for interview generation.

Each user gets ``max_requests`` generations per window. Inside the window,
consecutive requests must also be spaced by an exponentially growing delay
(base × 2^(n-1), capped). State lives behind RateLimitStorePort so any
shared store can back it; store outages never block a request.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Callable

from app.domain.clock import as_utc, utcnow
from app.domain.errors import RateLimitedError
from app.domain.models import RateLimitPolicy
from app.ports.rate_limit_port import RateLimitEntry, RateLimitStorePort

logger = logging.getLogger(__name__)


class RateLimiter:
    def __init__(
        self,
        store: RateLimitStorePort,
        policy: RateLimitPolicy | None = None,
        clock: Callable[[], datetime] = utcnow,
        prefix: str = "interview_gen",
    ) -> None:
        self._store = store
        self._policy = policy or RateLimitPolicy()
        self._clock = clock
        self._prefix = prefix

    def _key(self, user_id: str) -> str:
        return f"{self._prefix}:{user_id}"

    @property
    def _window(self) -> timedelta:
        return timedelta(seconds=self._policy.window_seconds)

    async def check(self, user_id: str) -> dict[str, str]:
        """
        Count one request for ``user_id`` or raise RateLimitedError.
        Returns the X-RateLimit-* headers to attach to the response.
        """
        now = self._clock()
        key = self._key(user_id)
        limit = self._policy.max_requests

        try:
            entry = await self._store.get(key)
        except Exception as exc:
            logger.warning("Rate limit store unavailable, allowing request: %s", exc)
            return {}

        if entry is None or now - as_utc(entry.first_request) > self._window:
            entry = RateLimitEntry(count=1, first_request=now, last_request=now)
            await self._save(key, entry)
            return self._headers(entry)

        since_first = now - as_utc(entry.first_request)
        if entry.count >= limit:
            until_reset = self._window - since_first
            reset_at = as_utc(entry.first_request) + self._window
            logger.info("Generation quota exhausted for user %s", user_id)
            raise RateLimitedError(
                f"Rate limit exceeded. You have reached the maximum of {limit} "
                f"interview generations per {self._window_label()}.",
                retry_after=math.ceil(until_reset.total_seconds()),
                limit=limit,
                remaining=0,
                reset_at=reset_at.isoformat(),
            )

        required_ms = min(
            self._policy.base_delay_ms * 2 ** (entry.count - 1),
            self._policy.max_delay_ms,
        )
        since_last_ms = (now - as_utc(entry.last_request)).total_seconds() * 1000
        if since_last_ms < required_ms:
            raise RateLimitedError(
                "Too many requests. Please slow down.",
                retry_after=math.ceil((required_ms - since_last_ms) / 1000),
                limit=limit,
                remaining=limit - entry.count,
            )

        entry.count += 1
        entry.last_request = now
        await self._save(key, entry)
        return self._headers(entry)

    async def status(self, user_id: str) -> dict[str, object]:
        """Current quota for ``user_id`` without counting a request."""
        now = self._clock()
        limit = self._policy.max_requests
        entry = await self._store.get(self._key(user_id))
        if entry is None or now - as_utc(entry.first_request) > self._window:
            return {"limit": limit, "remaining": limit, "reset": None}
        return {
            "limit": limit,
            "remaining": max(0, limit - entry.count),
            "reset": (as_utc(entry.first_request) + self._window).isoformat(),
        }

    async def purge(self) -> int:
        return await self._store.purge_expired(self._clock())

    async def _save(self, key: str, entry: RateLimitEntry) -> None:
        try:
            await self._store.put(key, entry, as_utc(entry.first_request) + self._window)
        except Exception as exc:
            logger.warning("Failed to persist rate limit entry %s: %s", key, exc)

    def _headers(self, entry: RateLimitEntry) -> dict[str, str]:
        reset_at = as_utc(entry.first_request) + self._window
        return {
            "X-RateLimit-Limit": str(self._policy.max_requests),
            "X-RateLimit-Remaining": str(max(0, self._policy.max_requests - entry.count)),
            "X-RateLimit-Reset": reset_at.isoformat(),
        }

    def _window_label(self) -> str:
        hours = self._policy.window_seconds / 3600
        return f"{hours:g} hours" if hours >= 1 else f"{self._policy.window_seconds} seconds"
