"""
Mock session engine — the timed practice state machine.

States: active ⇄ paused → completed | expired. Completed and expired are
terminal. Expiry is discovered lazily: every operation checks it first and
persists the 'expired' status before refusing, so no mutation is ever
applied after the deadline. The 'one live session per user' rule is a
lookup-then-create check, backed by a unique index when the store has one.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable

from app.domain.clock import reconcile_timer, utcnow
from app.domain.enums import InterviewStatus, SessionStatus
from app.domain.errors import ConflictError, ExpiredError, InvalidStateError, NotFoundError
from app.domain.models import Interview, MockSession, Question, SessionPolicy, SessionResponse
from app.ports.ai_port import AIPort
from app.ports.database_port import DatabasePort
from app.services.scoring_service import ScoringService

logger = logging.getLogger(__name__)

_IMMUTABLE_FIELDS = {"id", "user_id", "interview_id", "created_at"}


class MockSessionService:
    """
    Orchestrates a mock interview session:
    1. Start over an existing interview's ordered questions.
    2. Reconcile the client countdown with the server clock.
    3. Accept answers one at a time, re-arming the per-question timer.
    4. Finalize (grade + score) on the last answer.
    """

    def __init__(
        self,
        db: DatabasePort,
        ai: AIPort,
        policy: SessionPolicy | None = None,
        clock: Callable[[], datetime] = utcnow,
        scoring: ScoringService | None = None,
    ) -> None:
        self._db = db
        self._policy = policy or SessionPolicy()
        self._clock = clock
        self._scoring = scoring or ScoringService(db=db, ai=ai, clock=clock)

    # ── Lifecycle ─────────────────────────────────────────────

    async def start_session(self, user_id: str, interview_id: str) -> dict[str, Any]:
        """Create a session bound to the interview and return its first question."""
        now = self._clock()
        interview, questions = await self._load_interview(interview_id, user_id)

        if not interview.question_ids:
            raise InvalidStateError("Interview has no questions")
        if interview.status.is_terminal:
            raise InvalidStateError(f"Interview is already {interview.status.value}")

        existing = await self._db.find_live_session(user_id)
        if existing:
            live = MockSession.model_validate(existing)
            if live.is_expired(now):
                await self._expire(live)
            else:
                raise ConflictError("You already have an active mock session", session_id=live.id)

        first = self._question_at(interview, questions, 0)
        if first is None:
            raise InvalidStateError("First question of the interview no longer exists")
        seconds = self._question_seconds(first)

        data = {
            "user_id": user_id,
            "interview_id": interview.id,
            "current_question_index": 0,
            "total_questions": len(interview.question_ids),
            "current_question_seconds": seconds,
            "time_remaining": seconds,
            "total_time_elapsed": 0,
            "start_time": now.isoformat(),
            "last_sync_time": now.isoformat(),
            "responses": [],
            "status": SessionStatus.ACTIVE.value,
            "expires_at": (now + timedelta(hours=self._policy.session_ttl_hours)).isoformat(),
        }
        try:
            row = await self._db.create_mock_session(data)
        except ConflictError as exc:
            # Lost a race with a concurrent start; report the winner.
            winner = await self._db.find_live_session(user_id)
            raise ConflictError(
                "You already have an active mock session",
                session_id=str(winner["id"]) if winner else None,
            ) from exc
        session = MockSession.model_validate(row)

        if interview.status == InterviewStatus.PENDING:
            await self._db.update_interview(
                interview.id,
                {"status": InterviewStatus.IN_PROGRESS.value, "started_at": now.isoformat()},
            )

        logger.info(
            "Mock session %s started for interview %s (%d questions)",
            session.id,
            interview.id,
            session.total_questions,
        )
        return {"session": session.summary(), "current_question": first.public_view()}

    async def get_session_state(self, session_id: str, user_id: str) -> dict[str, Any]:
        session = await self._load(session_id, user_id)
        await self._ensure_not_expired(session, self._clock())

        interview, questions = await self._load_interview(session.interview_id, user_id)
        current = self._question_at(interview, questions, session.current_question_index)
        return {
            "session": session.summary(),
            "current_question": current.public_view() if current else None,
        }

    async def sync_timer(
        self, session_id: str, user_id: str, client_time_remaining: int
    ) -> dict[str, Any]:
        """Reconcile the client's countdown with server-side elapsed time."""
        session = await self._load(session_id, user_id)
        now = self._clock()
        await self._ensure_not_expired(session, now)
        self._require_status(session, SessionStatus.ACTIVE)

        reading = reconcile_timer(
            session.time_remaining,
            session.last_sync_time,
            client_time_remaining,
            now,
            drift_threshold=self._policy.drift_threshold_seconds,
            ceiling=session.current_question_seconds,
        )
        if not reading.client_trusted:
            logger.warning(
                "Session %s timer drift %ss exceeds threshold; using server time",
                session.id,
                reading.drift,
            )

        session.time_remaining = reading.time_remaining
        session.last_sync_time = now
        session.total_time_elapsed += reading.server_elapsed
        await self._save(session)

        return {
            "server_time_remaining": session.time_remaining,
            "total_time_elapsed": session.total_time_elapsed,
        }

    async def submit_answer(
        self, session_id: str, user_id: str, answer: str, time_taken: int
    ) -> dict[str, Any]:
        """Record the answer for the current question and advance or finalize."""
        session = await self._load(session_id, user_id)
        now = self._clock()
        await self._ensure_not_expired(session, now)
        self._require_status(session, SessionStatus.ACTIVE)

        interview, questions = await self._load_interview(session.interview_id, user_id)
        if interview.status.is_terminal:
            # Closed through the interview endpoints while this session was live.
            raise InvalidStateError(f"Interview is already {interview.status.value}")
        current = self._question_at(interview, questions, session.current_question_index)
        if current is None:
            raise InvalidStateError("No current question found")

        session.responses.append(
            SessionResponse(
                question_id=current.id,
                answer=answer,
                time_taken=time_taken,
                submitted_at=now,
            )
        )

        if session.current_question_index + 1 < session.total_questions:
            session.current_question_index += 1
            upcoming = self._question_at(interview, questions, session.current_question_index)
            seconds = self._question_seconds(upcoming)
            session.current_question_seconds = seconds
            session.time_remaining = seconds
            session.last_sync_time = now
            await self._save(session)
            return {
                "session_completed": False,
                "next_question": upcoming.public_view() if upcoming else None,
                "session": session.summary(),
            }

        try:
            await self._scoring.finalize_session(interview, questions, session.responses)
        except Exception:
            # Session is left as stored, so the last answer can be resubmitted.
            logger.exception(
                "Finalization failed for mock session %s (interview %s)", session.id, interview.id
            )
            raise

        session.current_question_index = session.total_questions
        session.time_remaining = 0
        session.status = SessionStatus.COMPLETED
        await self._save(session)
        logger.info("Mock session %s completed; interview %s finalized", session.id, interview.id)

        return {
            "session_completed": True,
            "session": {
                "id": session.id,
                "interview_id": session.interview_id,
                "total_questions": session.total_questions,
                "total_time_elapsed": session.total_time_elapsed,
            },
        }

    async def pause_session(self, session_id: str, user_id: str) -> dict[str, Any]:
        session = await self._load(session_id, user_id)
        await self._ensure_not_expired(session, self._clock())
        self._require_status(session, SessionStatus.ACTIVE)

        session.status = SessionStatus.PAUSED
        await self._save(session)
        return {"message": "Mock session paused successfully", "session": session.summary()}

    async def resume_session(self, session_id: str, user_id: str) -> dict[str, Any]:
        session = await self._load(session_id, user_id)
        now = self._clock()
        # A session can run out its absolute deadline while paused.
        await self._ensure_not_expired(session, now)
        self._require_status(session, SessionStatus.PAUSED)

        session.status = SessionStatus.ACTIVE
        session.last_sync_time = now
        await self._save(session)
        return {"message": "Mock session resumed successfully", "session": session.summary()}

    async def end_session(self, session_id: str, user_id: str) -> dict[str, Any]:
        """Abandon the session. Answers collected so far are not graded."""
        session = await self._load(session_id, user_id)
        session.status = SessionStatus.EXPIRED
        await self._save(session)
        logger.info("Mock session %s ended by user", session.id)
        return {"message": "Mock session ended successfully"}

    # ── Internals ─────────────────────────────────────────────

    async def _load(self, session_id: str, user_id: str) -> MockSession:
        row = await self._db.get_mock_session(session_id, user_id)
        if not row:
            raise NotFoundError("Mock session not found")
        return MockSession.model_validate(row)

    async def _load_interview(
        self, interview_id: str, user_id: str
    ) -> tuple[Interview, list[Question]]:
        row = await self._db.get_interview(interview_id, user_id)
        if not row:
            raise NotFoundError("Interview not found")
        interview = Interview.model_validate(row)
        rows = await self._db.get_questions(interview.question_ids)
        return interview, [Question.model_validate(q) for q in rows]

    @staticmethod
    def _question_at(
        interview: Interview, questions: list[Question], index: int
    ) -> Question | None:
        if index >= len(interview.question_ids):
            return None
        wanted = interview.question_ids[index]
        return next((q for q in questions if q.id == wanted), None)

    def _question_seconds(self, question: Question | None) -> int:
        if question is None or not question.time_limit_seconds:
            return self._policy.default_question_seconds
        return question.time_limit_seconds

    @staticmethod
    def _require_status(session: MockSession, status: SessionStatus) -> None:
        if session.status != status:
            raise InvalidStateError(
                f"Session is {session.status.value}, expected {status.value}"
            )

    async def _ensure_not_expired(self, session: MockSession, now: datetime) -> None:
        if not session.is_expired(now):
            return
        if session.status.is_live:
            await self._expire(session)
        raise ExpiredError("Mock session has expired")

    async def _expire(self, session: MockSession) -> None:
        session.status = SessionStatus.EXPIRED
        await self._db.update_mock_session(session.id, {"status": SessionStatus.EXPIRED.value})
        logger.info("Mock session %s expired", session.id)

    async def _save(self, session: MockSession) -> None:
        await self._db.update_mock_session(
            session.id,
            session.model_dump(mode="json", exclude=_IMMUTABLE_FIELDS),
        )
