from abc import ABC, abstractmethod
from typing import Any


class InterviewPort(ABC):
    """Port for interview persistence."""

    @abstractmethod
    async def create_interview(self, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a new interview record."""
        ...

    @abstractmethod
    async def get_interview(self, interview_id: str, user_id: str | None = None) -> dict[str, Any] | None:
        """Fetch an interview by ID, optionally scoped to its owner."""
        ...

    @abstractmethod
    async def update_interview(self, interview_id: str, data: dict[str, Any]) -> None:
        """Update an interview record (questions, responses, status, score)."""
        ...

    @abstractmethod
    async def delete_interview(self, interview_id: str, user_id: str | None = None) -> bool:
        """Delete an interview. Returns False when nothing matched."""
        ...

    @abstractmethod
    async def list_user_interviews(
        self, user_id: str, status: str | None = None, skip: int = 0, limit: int = 10
    ) -> list[dict[str, Any]]:
        """List a user's interviews, newest first."""
        ...

    @abstractmethod
    async def count_user_interviews(self, user_id: str, status: str | None = None) -> int:
        """Count a user's interviews, optionally filtered by status."""
        ...
