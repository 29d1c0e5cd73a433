"""
In-process implementation of RateLimitStorePort.
Only correct for a single worker; swap for a shared store when scaling out.
"""

import asyncio
from datetime import datetime

from app.domain.clock import as_utc
from app.ports.rate_limit_port import RateLimitEntry, RateLimitStorePort


class MemoryRateLimitStore(RateLimitStorePort):
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._entries: dict[str, tuple[datetime, RateLimitEntry]] = {}

    async def get(self, key: str) -> RateLimitEntry | None:
        async with self._lock:
            item = self._entries.get(key)
            return item[1] if item else None

    async def put(self, key: str, entry: RateLimitEntry, expires_at: datetime) -> None:
        async with self._lock:
            self._entries[key] = (as_utc(expires_at), entry)

    async def purge_expired(self, now: datetime) -> int:
        now = as_utc(now)
        async with self._lock:
            stale = [key for key, (expires_at, _) in self._entries.items() if expires_at < now]
            for key in stale:
                del self._entries[key]
            return len(stale)
