from abc import ABC, abstractmethod
from typing import Any


class QuestionPort(ABC):
    """Port for the shared question bank."""

    @abstractmethod
    async def create_questions(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Insert new questions; returns the stored rows in input order."""
        ...

    @abstractmethod
    async def get_questions(self, question_ids: list[str]) -> list[dict[str, Any]]:
        """Fetch questions by ID, returned in the order of ``question_ids``. Unknown IDs are skipped."""
        ...

    @abstractmethod
    async def find_matching_questions(
        self,
        category: str,
        difficulty: str,
        language: str,
        concept: str,
        limit: int,
    ) -> list[dict[str, Any]]:
        """Find reusable questions for the hybrid generation strategy."""
        ...
