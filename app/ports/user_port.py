from abc import ABC, abstractmethod
from typing import Any


class UserPort(ABC):
    """Read-only access to application users; account management lives elsewhere."""

    @abstractmethod
    async def get_user(self, user_id: str) -> dict[str, Any] | None:
        """Fetch the public profile row for an authenticated user."""
        ...
