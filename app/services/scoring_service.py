"""
Interview aggregation — grading, overall score and performance summary.

Used in two places:
  - finalization of a mock session (every collected answer graded at once);
  - the direct answer flow and the administrative "complete" path.

Grader failures never abort the batch: each answer and the summary fall
back to neutral values so a user's submission is never lost.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable

from app.domain.clock import utcnow
from app.domain.enums import InterviewStatus, can_transition
from app.domain.errors import InvalidStateError
from app.domain.models import (
    EvaluatedResponse,
    Evaluation,
    EvaluationRequest,
    Interview,
    PerformanceSummary,
    Question,
    SessionResponse,
)
from app.domain.scoring import fallback_evaluation, fallback_summary, overall_score
from app.ports.ai_port import AIPort
from app.ports.database_port import DatabasePort

logger = logging.getLogger(__name__)

_PERSISTED_FIELDS = {
    "responses",
    "status",
    "overall_score",
    "performance_summary",
    "started_at",
    "completed_at",
}


class ScoringService:
    """Turns raw answers into a scored, summarised interview."""

    def __init__(
        self,
        db: DatabasePort,
        ai: AIPort,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._db = db
        self._ai = ai
        self._clock = clock

    async def evaluate(self, question: Question, answer: str, time_taken: int) -> Evaluation:
        """Grade one answer, substituting the neutral evaluation on any grader error."""
        request = EvaluationRequest(
            question=question.text,
            model_answer=question.model_answer,
            user_answer=answer,
            time_taken=time_taken,
            time_limit=question.time_limit,
        )
        try:
            return await self._ai.evaluate_response(request)
        except Exception as exc:
            logger.error("Evaluation failed for question %s: %s", question.id, exc)
            return fallback_evaluation()

    async def finalize_session(
        self,
        interview: Interview,
        questions: list[Question],
        responses: list[SessionResponse],
        force: bool = False,
    ) -> Interview:
        """
        Copy a finished session's answers onto its interview, grade them,
        mark the interview completed and persist score and summary.

        An abandoned interview is never reopened. An interview that is
        already completed keeps its score unless ``force`` asks for a re-grade.
        """
        if not can_transition(interview.status, InterviewStatus.COMPLETED):
            raise InvalidStateError(f"Interview is already {interview.status.value}")
        if interview.status == InterviewStatus.COMPLETED and not force:
            raise InvalidStateError("Interview is already completed and scored")

        by_id = {q.id: q for q in questions}
        resolvable: list[tuple[SessionResponse, Question]] = []
        for response in responses:
            question = by_id.get(response.question_id)
            if question is None:
                logger.warning(
                    "Skipping response for unknown question %s on interview %s",
                    response.question_id,
                    interview.id,
                )
                continue
            resolvable.append((response, question))

        evaluations = await asyncio.gather(
            *(self.evaluate(q, r.answer, r.time_taken) for r, q in resolvable)
        )

        evaluated = [
            EvaluatedResponse(
                question_id=r.question_id,
                user_answer=r.answer,
                time_taken=r.time_taken,
                submitted_at=r.submitted_at,
                evaluation=evaluation,
            )
            for (r, _), evaluation in zip(resolvable, evaluations)
        ]
        fresh_ids = {e.question_id for e in evaluated}
        interview.responses = [
            r for r in interview.responses if r.question_id not in fresh_ids
        ] + evaluated

        interview.status = InterviewStatus.COMPLETED
        interview.completed_at = self._clock()

        # The response set just changed, so any earlier score is stale.
        await self.aggregate(interview, force=True)
        await self.save(interview)

        logger.info(
            "Interview %s finalized: %d graded answer(s), overall=%s",
            interview.id,
            len(evaluated),
            interview.overall_score,
        )
        return interview

    async def aggregate(self, interview: Interview, force: bool = False) -> Interview:
        """
        Fill in overall score and performance summary.
        Values already present are kept unless ``force`` is set.
        """
        if not interview.responses:
            return interview

        if force or interview.overall_score is None:
            interview.overall_score = overall_score(interview.responses)

        if force or interview.performance_summary is None:
            interview.performance_summary = await self._summarize(interview)

        return interview

    async def save(self, interview: Interview) -> None:
        await self._db.update_interview(
            interview.id,
            interview.model_dump(mode="json", include=_PERSISTED_FIELDS),
        )

    async def _summarize(self, interview: Interview) -> PerformanceSummary:
        responses = list(interview.responses)
        try:
            return await self._ai.generate_session_summary(interview, responses)
        except Exception as exc:
            logger.error("Session summary failed for interview %s: %s", interview.id, exc)
            return fallback_summary(responses)
