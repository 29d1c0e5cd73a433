"""
Abstract interface for the language-model collaborator.
Concrete implementations (OpenAI, Gemini, etc.) must implement this port.
"""

from abc import ABC, abstractmethod

from app.domain.models import (
    EvaluatedResponse,
    Evaluation,
    EvaluationRequest,
    Interview,
    PerformanceSummary,
    QuestionDraft,
    QuestionSpec,
)


class AIPort(ABC):
    """Port for question generation and answer grading."""

    @abstractmethod
    async def generate_questions(self, spec: QuestionSpec) -> list[QuestionDraft]:
        """
        Generate ``spec.count`` new questions for a category/difficulty/topic.
        May raise; callers must not keep a half-built interview around.
        """
        ...

    @abstractmethod
    async def evaluate_response(self, request: EvaluationRequest) -> Evaluation:
        """Grade a single answer against the question's model answer."""
        ...

    @abstractmethod
    async def generate_session_summary(
        self, interview: Interview, responses: list[EvaluatedResponse]
    ) -> PerformanceSummary:
        """Summarise a finished interview from its graded answers."""
        ...
