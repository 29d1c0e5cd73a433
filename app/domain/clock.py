"""
Time authority for mock sessions.

Pure functions only: every timing decision is derived from stored
timestamps at the moment a request arrives. There is no in-process timer.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone

from app.domain.enums import SessionStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def elapsed_seconds(since: datetime, now: datetime) -> int:
    """Whole seconds between two instants, floored, never negative."""
    delta = (as_utc(now) - as_utc(since)).total_seconds()
    return max(0, math.floor(delta))


def is_expired(expires_at: datetime, status: SessionStatus, now: datetime) -> bool:
    return as_utc(now) > as_utc(expires_at) or status == SessionStatus.EXPIRED


def progress_percentage(index: int, total: int) -> int:
    """Half-up rounded percentage of questions already passed."""
    if total <= 0:
        return 0
    return math.floor(index / total * 100 + 0.5)


@dataclass(frozen=True)
class TimerReading:
    """Outcome of one client/server reconciliation."""

    time_remaining: int
    server_elapsed: int
    drift: int
    client_trusted: bool


def reconcile_timer(
    time_remaining: int,
    last_sync: datetime,
    client_time_remaining: int,
    now: datetime,
    *,
    drift_threshold: int,
    ceiling: int | None = None,
) -> TimerReading:
    """
    Reconcile the stored countdown with the one reported by the client.

    The client is trusted while its value stays within ``drift_threshold``
    seconds of what the server expects; beyond that the server's own
    elapsed-time arithmetic wins. The result is never negative and never
    exceeds ``ceiling`` (the limit the current question started with).
    """
    server_elapsed = elapsed_seconds(last_sync, now)
    drift = abs(time_remaining - server_elapsed - client_time_remaining)

    if drift > drift_threshold:
        remaining = max(0, time_remaining - server_elapsed)
        trusted = False
    else:
        remaining = max(0, client_time_remaining)
        trusted = True

    if ceiling is not None:
        remaining = min(remaining, ceiling)

    return TimerReading(
        time_remaining=remaining,
        server_elapsed=server_elapsed,
        drift=drift,
        client_trusted=trusted,
    )
