"""
Interview service — generation, listing and the direct (non-timed) answer flow.

Generation is hybrid: matching questions already in the bank are reused
before new ones are requested from the language model. A failed generation
never leaves a half-filled interview behind.
"""

import logging
import math
from datetime import datetime
from typing import Any, Callable

from app.domain.clock import utcnow
from app.domain.enums import (
    Difficulty,
    InterviewStatus,
    Language,
    QuestionCategory,
    QuestionDifficulty,
    can_transition,
)
from app.domain.errors import InvalidStateError, NotFoundError, UpstreamError
from app.domain.models import (
    DirectAnswerSubmit,
    EvaluatedResponse,
    Interview,
    InterviewGenerateRequest,
    Question,
    QuestionDraft,
    QuestionSpec,
)
from app.ports.ai_port import AIPort
from app.ports.database_port import DatabasePort
from app.services.scoring_service import ScoringService

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    QuestionCategory.DATA_STRUCTURES,
    QuestionCategory.ALGORITHMS,
    QuestionCategory.CODING,
]

_MIXED_ROTATION = [QuestionDifficulty.EASY, QuestionDifficulty.MEDIUM, QuestionDifficulty.HARD]

# Minutes, used when the model does not suggest a limit.
DEFAULT_TIME_LIMITS = {
    QuestionDifficulty.EASY: 20,
    QuestionDifficulty.MEDIUM: 30,
    QuestionDifficulty.HARD: 40,
}


def difficulty_for(requested: Difficulty, category_index: int) -> QuestionDifficulty:
    """Resolve 'mixed' by rotating easy → medium → hard across categories."""
    if requested == Difficulty.MIXED:
        return _MIXED_ROTATION[category_index % len(_MIXED_ROTATION)]
    return QuestionDifficulty(requested.value)


class InterviewService:
    """CRUD and grading for interviews outside of timed mock sessions."""

    def __init__(
        self,
        db: DatabasePort,
        ai: AIPort,
        clock: Callable[[], datetime] = utcnow,
        scoring: ScoringService | None = None,
    ) -> None:
        self._db = db
        self._ai = ai
        self._clock = clock
        self._scoring = scoring or ScoringService(db=db, ai=ai, clock=clock)

    # ── Generation ────────────────────────────────────────────

    async def generate_interview(
        self, user_id: str, request: InterviewGenerateRequest
    ) -> dict[str, Any]:
        """Create an interview and attach exactly ``question_count`` questions."""
        row = await self._db.create_interview(
            {
                "user_id": user_id,
                "topic": request.topic,
                "difficulty": request.difficulty.value,
                "language": request.language.value,
                "question_count": request.question_count,
                "question_ids": [],
                "responses": [],
                "status": InterviewStatus.PENDING.value,
            }
        )
        interview_id = str(row["id"])

        try:
            question_ids = await self._collect_questions(request)
            await self._db.update_interview(interview_id, {"question_ids": question_ids})
        except Exception as exc:
            logger.error("Question generation failed for interview %s: %s", interview_id, exc)
            await self._db.delete_interview(interview_id)
            raise UpstreamError(f"Failed to generate interview: {exc}") from exc

        interview, questions = await self._load(interview_id, user_id)
        logger.info(
            "Interview %s generated with %d question(s) on '%s'",
            interview.id,
            len(questions),
            interview.topic,
        )
        return self._present(interview, questions)

    async def _collect_questions(self, request: InterviewGenerateRequest) -> list[str]:
        categories = request.categories or DEFAULT_CATEGORIES
        per_category = math.ceil(request.question_count / len(categories))
        collected: list[str] = []

        for index, category in enumerate(categories):
            if len(collected) >= request.question_count:
                break
            count = min(per_category, request.question_count - len(collected))
            difficulty = difficulty_for(request.difficulty, index)

            existing = await self._db.find_matching_questions(
                category=category.value,
                difficulty=difficulty.value,
                language=request.language.value,
                concept=request.topic,
                limit=count,
            )
            ids = [str(r["id"]) for r in existing if str(r["id"]) not in collected][:count]

            if len(ids) < count:
                drafts = await self._ai.generate_questions(
                    QuestionSpec(
                        category=category,
                        difficulty=difficulty,
                        topic=request.topic,
                        count=count - len(ids),
                        language=request.language,
                    )
                )
                rows = await self._db.create_questions(
                    [
                        self._question_row(d, category, difficulty, request.language, request.topic)
                        for d in drafts
                    ]
                )
                ids.extend(str(r["id"]) for r in rows)
            else:
                logger.info("Reusing %d bank question(s) for %s/%s", len(ids), category.value, difficulty.value)

            collected.extend(ids)

        if len(collected) < request.question_count:
            raise ValueError(
                f"Only {len(collected)} of {request.question_count} questions could be assembled"
            )
        return collected[: request.question_count]

    @staticmethod
    def _question_row(
        draft: QuestionDraft,
        category: QuestionCategory,
        difficulty: QuestionDifficulty,
        language: Language,
        topic: str,
    ) -> dict[str, Any]:
        time_limit = draft.time_limit or DEFAULT_TIME_LIMITS[difficulty]
        concepts = list(draft.concepts_tested)
        if topic not in concepts:
            # Keeps the question discoverable by the hybrid lookup.
            concepts.append(topic)
        return {
            "text": draft.text,
            "category": category.value,
            "difficulty": difficulty.value,
            "language": language.value,
            "model_answer": draft.model_answer,
            "time_limit": time_limit,
            "time_limit_seconds": time_limit * 60,
            "complexity_analysis": (
                draft.complexity_analysis.model_dump() if draft.complexity_analysis else None
            ),
            "hints": draft.hints,
            "concepts_tested": concepts,
            "common_mistakes": draft.common_mistakes,
            "interviewer_expectations": draft.interviewer_expectations,
            "follow_up_questions": draft.follow_up_questions,
        }

    # ── Queries ───────────────────────────────────────────────

    async def list_interviews(
        self, user_id: str, status: InterviewStatus | None = None, page: int = 1, limit: int = 10
    ) -> dict[str, Any]:
        status_value = status.value if status else None
        skip = (page - 1) * limit
        rows = await self._db.list_user_interviews(user_id, status=status_value, skip=skip, limit=limit)
        total = await self._db.count_user_interviews(user_id, status=status_value)
        return {
            "interviews": [Interview.model_validate(r).model_dump(mode="json") for r in rows],
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "total_pages": math.ceil(total / limit) if limit else 0,
            },
        }

    async def get_interview(self, interview_id: str, user_id: str) -> dict[str, Any]:
        interview, questions = await self._load(interview_id, user_id)
        return self._present(interview, questions)

    async def delete_interview(self, interview_id: str, user_id: str) -> None:
        deleted = await self._db.delete_interview(interview_id, user_id)
        if not deleted:
            raise NotFoundError("Interview not found")

    async def get_user_stats(self, user_id: str) -> dict[str, Any]:
        total = await self._db.count_user_interviews(user_id)
        completed = await self._db.count_user_interviews(user_id, status=InterviewStatus.COMPLETED.value)
        in_progress = await self._db.count_user_interviews(
            user_id, status=InterviewStatus.IN_PROGRESS.value
        )

        average = 0.0
        if completed:
            rows = await self._db.list_user_interviews(
                user_id, status=InterviewStatus.COMPLETED.value, skip=0, limit=completed
            )
            scores = [r.get("overall_score") or 0 for r in rows]
            average = sum(scores) / len(scores) if scores else 0.0

        recent = await self._db.list_user_interviews(user_id, skip=0, limit=5)
        return {
            "stats": {
                "total_interviews": total,
                "completed_interviews": completed,
                "in_progress_interviews": in_progress,
                "average_score": math.floor(average + 0.5),
            },
            "recent_interviews": [
                {
                    "id": r["id"],
                    "topic": r.get("topic"),
                    "difficulty": r.get("difficulty"),
                    "status": r.get("status"),
                    "overall_score": r.get("overall_score"),
                    "created_at": r.get("created_at"),
                }
                for r in recent
            ],
        }

    # ── Direct answer flow ────────────────────────────────────

    async def submit_answer(
        self, interview_id: str, user_id: str, body: DirectAnswerSubmit
    ) -> dict[str, Any]:
        """
        Grade one answer immediately. When the last question is answered the
        interview is completed and scored, the same way a mock session ends.
        """
        now = self._clock()
        interview, questions = await self._load(interview_id, user_id)

        if interview.status.is_terminal:
            raise InvalidStateError(f"Interview is already {interview.status.value}")
        if body.question_id not in interview.question_ids:
            raise NotFoundError("Question not found in this interview")
        if interview.has_response(body.question_id):
            raise InvalidStateError("Answer already submitted for this question")

        question = next((q for q in questions if q.id == body.question_id), None)
        if question is None:
            raise NotFoundError("Question not found")

        if interview.status == InterviewStatus.PENDING:
            interview.status = InterviewStatus.IN_PROGRESS
            interview.started_at = now

        evaluation = await self._scoring.evaluate(question, body.user_answer, body.time_taken)
        interview.responses.append(
            EvaluatedResponse(
                question_id=question.id,
                user_answer=body.user_answer,
                time_taken=body.time_taken,
                submitted_at=now,
                evaluation=evaluation,
            )
        )

        if len(interview.responses) >= interview.question_count:
            interview.status = InterviewStatus.COMPLETED
            interview.completed_at = now
            await self._scoring.aggregate(interview)

        await self._scoring.save(interview)

        return {
            "evaluation": evaluation.model_dump(mode="json"),
            "interview": {
                "id": interview.id,
                "status": interview.status.value,
                "completion_percentage": interview.completion_percentage(),
                "overall_score": interview.overall_score,
            },
        }

    async def complete_interview(
        self, interview_id: str, user_id: str, status: str, force: bool = False
    ) -> dict[str, Any]:
        """
        Administrative close. Score and summary are only computed when
        missing, unless ``force`` asks for a fresh pass.
        """
        interview, _ = await self._load(interview_id, user_id)
        target = InterviewStatus(status)

        if not can_transition(interview.status, target):
            raise InvalidStateError(
                f"Cannot move interview from {interview.status.value} to {target.value}"
            )

        if interview.status != target:
            interview.status = target
            interview.completed_at = self._clock()

        if target == InterviewStatus.COMPLETED and interview.responses:
            await self._scoring.aggregate(interview, force=force)

        await self._scoring.save(interview)

        return {
            "id": interview.id,
            "status": interview.status.value,
            "overall_score": interview.overall_score,
            "performance_summary": (
                interview.performance_summary.model_dump(mode="json")
                if interview.performance_summary
                else None
            ),
            "completed_at": interview.completed_at.isoformat() if interview.completed_at else None,
        }

    # ── Internals ─────────────────────────────────────────────

    async def _load(self, interview_id: str, user_id: str) -> tuple[Interview, list[Question]]:
        row = await self._db.get_interview(interview_id, user_id)
        if not row:
            raise NotFoundError("Interview not found")
        interview = Interview.model_validate(row)
        rows = await self._db.get_questions(interview.question_ids)
        return interview, [Question.model_validate(q) for q in rows]

    @staticmethod
    def _present(interview: Interview, questions: list[Question]) -> dict[str, Any]:
        body = interview.model_dump(mode="json")
        body["completion_percentage"] = interview.completion_percentage()
        body["questions"] = [q.model_dump(mode="json") for q in questions]
        return body
