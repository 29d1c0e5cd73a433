"""
Abstract counter store for rate limiting.
The default adapter keeps entries in process memory; a shared store
(Redis, Postgres) can replace it without touching call sites.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass
class RateLimitEntry:
    count: int
    first_request: datetime
    last_request: datetime


class RateLimitStorePort(ABC):
    @abstractmethod
    async def get(self, key: str) -> RateLimitEntry | None:
        """Return the live entry for ``key`` or None."""
        ...

    @abstractmethod
    async def put(self, key: str, entry: RateLimitEntry, expires_at: datetime) -> None:
        """Store ``entry`` until ``expires_at``."""
        ...

    @abstractmethod
    async def purge_expired(self, now: datetime) -> int:
        """Drop entries whose expiry has passed. Returns how many were removed."""
        ...
