from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any


class MockSessionPort(ABC):
    """Port for mock session persistence."""

    @abstractmethod
    async def create_mock_session(self, data: dict[str, Any]) -> dict[str, Any]:
        """
        Insert a new session record and return it with its generated ID.
        Raises ConflictError if the store rejects a second live session for the user.
        """
        ...

    @abstractmethod
    async def get_mock_session(self, session_id: str, user_id: str) -> dict[str, Any] | None:
        """Fetch a session only if it belongs to ``user_id``."""
        ...

    @abstractmethod
    async def update_mock_session(self, session_id: str, data: dict[str, Any]) -> None:
        """Update a session record (status, timer fields, responses)."""
        ...

    @abstractmethod
    async def find_live_session(self, user_id: str) -> dict[str, Any] | None:
        """Return the user's active or paused session, if any."""
        ...

    @abstractmethod
    async def expire_stale_sessions(self, now: datetime) -> int:
        """Flip every live session whose deadline has passed to 'expired'. Returns the count."""
        ...
