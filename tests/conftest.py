"""
Shared fixtures: an in-memory DatabasePort, a scripted AIPort and a
controllable clock. Env vars are seeded before anything imports settings.
"""

import os

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length-0123")
os.environ.setdefault("OPENAI_API_KEY", "sk-test")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

import copy
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from app.domain.clock import as_utc
from app.domain.errors import ConflictError
from app.domain.models import (
    EvaluatedResponse,
    Evaluation,
    EvaluationRequest,
    Interview,
    PerformanceSummary,
    QuestionDraft,
    QuestionSpec,
    SessionPolicy,
)
from app.ports.ai_port import AIPort
from app.ports.database_port import DatabasePort
from app.services.interview_service import InterviewService
from app.services.mock_session_service import MockSessionService
from app.services.scoring_service import ScoringService

T0 = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)
USER_ID = "user-1"
OTHER_USER_ID = "user-2"


class FakeClock:
    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 0, **kwargs: float) -> None:
        self.now += timedelta(seconds=seconds, **kwargs)


class InMemoryDB(DatabasePort):
    """Dict-backed store with the same contracts as the Supabase adapter."""

    def __init__(self) -> None:
        self.users: dict[str, dict[str, Any]] = {}
        self.interviews: dict[str, dict[str, Any]] = {}
        self.questions: dict[str, dict[str, Any]] = {}
        self.sessions: dict[str, dict[str, Any]] = {}
        self._seq = 0

    def _stamp(self) -> str:
        self._seq += 1
        return (T0 + timedelta(seconds=self._seq)).isoformat()

    # ── Users ─────────────────────────────────────────────────

    async def get_user(self, user_id: str) -> dict[str, Any] | None:
        return copy.deepcopy(self.users.get(user_id))

    # ── Interviews ────────────────────────────────────────────

    async def create_interview(self, data: dict[str, Any]) -> dict[str, Any]:
        row = {"id": str(uuid.uuid4()), "created_at": self._stamp(), **copy.deepcopy(data)}
        self.interviews[row["id"]] = row
        return copy.deepcopy(row)

    async def get_interview(self, interview_id, user_id=None):
        row = self.interviews.get(interview_id)
        if row is None or (user_id and row["user_id"] != user_id):
            return None
        return copy.deepcopy(row)

    async def update_interview(self, interview_id, data):
        if interview_id in self.interviews:
            self.interviews[interview_id].update(copy.deepcopy(data))

    async def delete_interview(self, interview_id, user_id=None):
        row = self.interviews.get(interview_id)
        if row is None or (user_id and row["user_id"] != user_id):
            return False
        del self.interviews[interview_id]
        return True

    def _user_rows(self, user_id, status):
        rows = [
            r for r in self.interviews.values()
            if r["user_id"] == user_id and (status is None or r["status"] == status)
        ]
        return sorted(rows, key=lambda r: r["created_at"], reverse=True)

    async def list_user_interviews(self, user_id, status=None, skip=0, limit=10):
        return copy.deepcopy(self._user_rows(user_id, status)[skip: skip + limit])

    async def count_user_interviews(self, user_id, status=None):
        return len(self._user_rows(user_id, status))

    # ── Question Bank ─────────────────────────────────────────

    async def create_questions(self, rows):
        created = []
        for data in rows:
            row = {"id": str(uuid.uuid4()), "created_at": self._stamp(), **copy.deepcopy(data)}
            self.questions[row["id"]] = row
            created.append(copy.deepcopy(row))
        return created

    async def get_questions(self, question_ids):
        return [copy.deepcopy(self.questions[q]) for q in question_ids if q in self.questions]

    async def find_matching_questions(self, category, difficulty, language, concept, limit):
        matches = [
            r for r in self.questions.values()
            if r["category"] == category
            and r["difficulty"] == difficulty
            and r["language"] == language
            and concept in r.get("concepts_tested", [])
        ]
        return copy.deepcopy(matches[:limit])

    # ── Mock Sessions ─────────────────────────────────────────

    async def create_mock_session(self, data):
        # Mirrors the partial unique index on live sessions per user.
        if any(
            s["user_id"] == data["user_id"] and s["status"] in ("active", "paused")
            for s in self.sessions.values()
        ):
            raise ConflictError("You already have an active mock session")
        row = {"id": str(uuid.uuid4()), "created_at": self._stamp(), **copy.deepcopy(data)}
        self.sessions[row["id"]] = row
        return copy.deepcopy(row)

    async def get_mock_session(self, session_id, user_id):
        row = self.sessions.get(session_id)
        if row is None or row["user_id"] != user_id:
            return None
        return copy.deepcopy(row)

    async def update_mock_session(self, session_id, data):
        if session_id in self.sessions:
            self.sessions[session_id].update(copy.deepcopy(data))

    async def find_live_session(self, user_id):
        live = [
            s for s in self.sessions.values()
            if s["user_id"] == user_id and s["status"] in ("active", "paused")
        ]
        return copy.deepcopy(live[-1]) if live else None

    async def expire_stale_sessions(self, now):
        count = 0
        for s in self.sessions.values():
            if s["status"] in ("active", "paused") and as_utc(
                datetime.fromisoformat(s["expires_at"].replace("Z", "+00:00"))
            ) < as_utc(now):
                s["status"] = "expired"
                count += 1
        return count

    # ── Seeding helpers ───────────────────────────────────────

    def add_question(self, **overrides: Any) -> str:
        row = {
            "id": str(uuid.uuid4()),
            "text": "Reverse a linked list.",
            "category": "data-structures",
            "difficulty": "easy",
            "language": "python",
            "model_answer": "Iterate with three pointers.",
            "time_limit": 20,
            "hints": ["Track the previous node"],
            "concepts_tested": ["linked-lists"],
            "created_at": self._stamp(),
        }
        row.update(overrides)
        self.questions[row["id"]] = row
        return row["id"]

    def add_interview(self, question_ids: list[str], user_id: str = USER_ID, **overrides: Any) -> str:
        row = {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "topic": "linked-lists",
            "difficulty": "easy",
            "language": "python",
            "question_count": max(1, len(question_ids)),
            "question_ids": list(question_ids),
            "responses": [],
            "status": "pending",
            "created_at": self._stamp(),
        }
        row.update(overrides)
        self.interviews[row["id"]] = row
        return row["id"]


class FakeAI(AIPort):
    """
    Scripted grader. Scores come from ``scores`` keyed by answer text
    (default 80); answers listed in ``failing_answers`` raise.
    """

    def __init__(self) -> None:
        self.scores: dict[str, float] = {}
        self.failing_answers: set[str] = set()
        self.fail_summary = False
        self.fail_generation = False
        self.evaluations: list[EvaluationRequest] = []
        self.generated: list[QuestionSpec] = []
        self.summaries = 0

    async def generate_questions(self, spec: QuestionSpec) -> list[QuestionDraft]:
        self.generated.append(spec)
        if self.fail_generation:
            raise RuntimeError("model unavailable")
        return [
            QuestionDraft(
                text=f"{spec.category.value} question {i + 1} on {spec.topic}",
                model_answer="A thorough model answer.",
                concepts_tested=["problem-solving"],
            )
            for i in range(spec.count)
        ]

    async def evaluate_response(self, request: EvaluationRequest) -> Evaluation:
        self.evaluations.append(request)
        if request.user_answer in self.failing_answers:
            raise RuntimeError("grader timeout")
        score = self.scores.get(request.user_answer, 80.0)
        return Evaluation(
            correctness_score=score,
            problem_solving_score=score,
            communication_score=score,
            overall_score=score,
            strengths=["Clear"],
            detailed_feedback="Good.",
        )

    async def generate_session_summary(
        self, interview: Interview, responses: list[EvaluatedResponse]
    ) -> PerformanceSummary:
        self.summaries += 1
        if self.fail_summary:
            raise RuntimeError("summary failed")
        return PerformanceSummary(
            correctness_average=70,
            problem_solving_average=70,
            communication_average=70,
            readiness_estimate="Ready for screening rounds",
        )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def db() -> InMemoryDB:
    return InMemoryDB()


@pytest.fixture
def ai() -> FakeAI:
    return FakeAI()


@pytest.fixture
def scoring(db, ai, clock) -> ScoringService:
    return ScoringService(db=db, ai=ai, clock=clock)


@pytest.fixture
def sessions(db, ai, clock, scoring) -> MockSessionService:
    return MockSessionService(db=db, ai=ai, policy=SessionPolicy(), clock=clock, scoring=scoring)


@pytest.fixture
def interviews(db, ai, clock, scoring) -> InterviewService:
    return InterviewService(db=db, ai=ai, clock=clock, scoring=scoring)


@pytest.fixture
def three_question_interview(db) -> str:
    """Interview with limits of 20, 30 and 40 minutes, owned by USER_ID."""
    ids = [
        db.add_question(text="Q1", time_limit=20),
        db.add_question(text="Q2", time_limit=30, difficulty="medium"),
        db.add_question(text="Q3", time_limit=40, difficulty="hard"),
    ]
    return db.add_interview(ids)
