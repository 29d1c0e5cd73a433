"""
Pydantic models for requests, responses, and internal data transfer.
Pure data — no I/O, no side effects.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, computed_field, model_validator

from app.domain.clock import as_utc, is_expired, progress_percentage
from app.domain.enums import (
    Difficulty,
    InterviewStatus,
    Language,
    QuestionCategory,
    QuestionDifficulty,
    SessionStatus,
)


def _none_as_empty(value: Any) -> Any:
    # Array columns come back as null when never written.
    return [] if value is None else value


StrList = Annotated[list[str], BeforeValidator(_none_as_empty)]


# ── Policies ──────────────────────────────────────────────────


class SessionPolicy(BaseModel):
    """Timing constants for mock sessions, sourced from settings."""

    model_config = ConfigDict(frozen=True)

    session_ttl_hours: float = Field(3, gt=0)
    default_question_seconds: int = Field(1200, ge=1)
    drift_threshold_seconds: int = Field(5, ge=0)


class RateLimitPolicy(BaseModel):
    """Interview generation quota with exponential backoff."""

    model_config = ConfigDict(frozen=True)

    max_requests: int = Field(5, ge=1)
    window_seconds: int = Field(24 * 60 * 60, ge=1)
    base_delay_ms: int = Field(1000, ge=0)
    max_delay_ms: int = Field(60000, ge=0)


# ── Evaluation ────────────────────────────────────────────────


class Evaluation(BaseModel):
    """Structured grading of one answer. All scores are 0–100."""

    correctness_score: float = Field(..., ge=0, le=100)
    problem_solving_score: float = Field(..., ge=0, le=100)
    communication_score: float = Field(..., ge=0, le=100)
    overall_score: float = Field(..., ge=0, le=100)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    improvement_suggestions: list[str] = Field(default_factory=list)
    detailed_feedback: str = ""


class TopicScore(BaseModel):
    topic: str
    score: float


class PerformanceSummary(BaseModel):
    """Session-level analysis written onto a finished interview."""

    correctness_average: float
    problem_solving_average: float
    communication_average: float
    topic_wise_strengths: list[TopicScore] = Field(default_factory=list)
    topic_wise_weaknesses: list[TopicScore] = Field(default_factory=list)
    readiness_estimate: str = ""


class EvaluationRequest(BaseModel):
    """Everything the grader needs for a single answer."""

    question: str
    model_answer: str
    user_answer: str
    time_taken: int = Field(..., ge=0, description="Seconds the candidate spent")
    time_limit: int = Field(..., ge=1, description="Question limit in minutes")


# ── Questions ─────────────────────────────────────────────────


class ComplexityAnalysis(BaseModel):
    time: str = ""
    space: str = ""


class QuestionSpec(BaseModel):
    """Parameters for one question-generation call."""

    category: QuestionCategory
    difficulty: QuestionDifficulty
    topic: str
    count: int = Field(1, ge=1, le=10)
    language: Language = Language.PYTHON


class QuestionDraft(BaseModel):
    """A generated question before it is stored in the question bank."""

    text: str = Field(..., min_length=1, description="The interview question")
    model_answer: str = Field(..., min_length=1, description="Interview-ready reference answer")
    time_limit: int | None = Field(None, ge=1, le=60, description="Suggested limit in minutes")
    complexity_analysis: ComplexityAnalysis | None = None
    hints: list[str] = Field(default_factory=list)
    concepts_tested: list[str] = Field(default_factory=list)
    common_mistakes: list[str] = Field(default_factory=list)
    interviewer_expectations: list[str] = Field(default_factory=list)
    follow_up_questions: list[str] = Field(default_factory=list)


class QuestionBatch(BaseModel):
    """Schema enforced by Instructor for question generation."""

    questions: list[QuestionDraft] = Field(..., min_length=1)


class Question(BaseModel):
    """A stored, reusable question. Not owned by any single interview."""

    model_config = ConfigDict(validate_assignment=True)

    id: str
    text: str
    category: QuestionCategory
    difficulty: QuestionDifficulty
    language: Language = Language.PYTHON
    model_answer: str
    time_limit: int = Field(..., ge=1, le=60)
    complexity_analysis: ComplexityAnalysis | None = None
    hints: StrList = Field(default_factory=list)
    concepts_tested: list[str] = Field(..., min_length=1)
    common_mistakes: StrList = Field(default_factory=list)
    interviewer_expectations: StrList = Field(default_factory=list)
    follow_up_questions: StrList = Field(default_factory=list)
    created_at: datetime | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def time_limit_seconds(self) -> int:
        return self.time_limit * 60

    def public_view(self) -> dict[str, Any]:
        """Fields a candidate may see while answering (no model answer)."""
        return {
            "id": self.id,
            "text": self.text,
            "category": self.category.value,
            "difficulty": self.difficulty.value,
            "time_limit": self.time_limit,
            "time_limit_seconds": self.time_limit_seconds,
            "hints": list(self.hints),
            "concepts_tested": list(self.concepts_tested),
        }


# ── Responses ─────────────────────────────────────────────────


class SessionResponse(BaseModel):
    """An answer captured during a mock session, not yet graded."""

    question_id: str
    answer: str
    time_taken: int = Field(..., ge=0)
    submitted_at: datetime


class EvaluatedResponse(BaseModel):
    """An answer stored on the interview together with its grading."""

    question_id: str
    user_answer: str
    time_taken: int = Field(..., ge=0)
    submitted_at: datetime
    evaluation: Evaluation


# ── Interview ─────────────────────────────────────────────────


class Interview(BaseModel):
    """A planned set of questions for one user and topic."""

    id: str
    user_id: str
    topic: str
    difficulty: Difficulty
    language: Language = Language.PYTHON
    question_count: int = Field(..., ge=1, le=10)
    question_ids: StrList = Field(default_factory=list)
    responses: Annotated[list[EvaluatedResponse], BeforeValidator(_none_as_empty)] = Field(
        default_factory=list
    )
    status: InterviewStatus = InterviewStatus.PENDING
    overall_score: float | None = Field(None, ge=0, le=100)
    performance_summary: PerformanceSummary | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None

    @model_validator(mode="after")
    def _responses_unique(self) -> "Interview":
        seen = [r.question_id for r in self.responses]
        if len(seen) != len(set(seen)):
            raise ValueError("each question may be answered at most once")
        return self

    def has_response(self, question_id: str) -> bool:
        return any(r.question_id == question_id for r in self.responses)

    def completion_percentage(self) -> int:
        return progress_percentage(len(self.responses), self.question_count)


# ── Mock Session ──────────────────────────────────────────────


class MockSession(BaseModel):
    """A timed attempt at working through one interview's questions."""

    id: str
    user_id: str
    interview_id: str
    current_question_index: int = Field(0, ge=0)
    total_questions: int = Field(..., ge=1)
    current_question_seconds: int = Field(..., ge=0)
    time_remaining: int = Field(..., ge=0)
    total_time_elapsed: int = Field(0, ge=0)
    start_time: datetime
    last_sync_time: datetime
    responses: Annotated[list[SessionResponse], BeforeValidator(_none_as_empty)] = Field(
        default_factory=list
    )
    status: SessionStatus = SessionStatus.ACTIVE
    expires_at: datetime
    created_at: datetime | None = None

    @model_validator(mode="after")
    def _index_in_bounds(self) -> "MockSession":
        if self.current_question_index > self.total_questions:
            raise ValueError("current_question_index exceeds total_questions")
        if len(self.responses) > self.total_questions:
            raise ValueError("more responses than questions")
        return self

    def is_expired(self, now: datetime) -> bool:
        return is_expired(self.expires_at, self.status, now)

    def progress_percentage(self) -> int:
        return progress_percentage(self.current_question_index, self.total_questions)

    def summary(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "interview_id": self.interview_id,
            "current_question_index": self.current_question_index,
            "total_questions": self.total_questions,
            "time_remaining": self.time_remaining,
            "total_time_elapsed": self.total_time_elapsed,
            "status": self.status.value,
            "progress_percentage": self.progress_percentage(),
            "expires_at": as_utc(self.expires_at).isoformat(),
        }


# ── Requests ──────────────────────────────────────────────────


class InterviewGenerateRequest(BaseModel):
    """Request body for POST /interviews/generate."""

    topic: str = Field(..., min_length=1, max_length=200)
    difficulty: Difficulty
    question_count: int = Field(..., ge=1, le=10)
    categories: list[QuestionCategory] | None = Field(None, min_length=1)
    language: Language = Language.PYTHON


class DirectAnswerSubmit(BaseModel):
    """Request body for POST /interviews/{id}/answer."""

    question_id: str
    user_answer: str = Field(..., min_length=1)
    time_taken: int = Field(..., ge=0)


class InterviewCompleteRequest(BaseModel):
    """Request body for PATCH /interviews/{id}/complete."""

    status: Literal["completed", "abandoned"]
    force: bool = False


class MockSessionStart(BaseModel):
    """Request to start a mock session."""

    interview_id: str


class TimerSyncRequest(BaseModel):
    """Periodic countdown report from the client."""

    client_time_remaining: int


class MockAnswerSubmit(BaseModel):
    """Answer for the session's current question."""

    answer: str = Field(..., min_length=1)
    time_taken: int = Field(..., ge=0)


class UserProfile(BaseModel):
    """Response model for GET /users/me."""

    id: str
    email: str | None = None
    full_name: str | None = None
    created_at: datetime | None = None
