"""
Concrete implementation of AIPort using OpenAI GPT-4o-mini + Instructor.
"""

import logging

import instructor
from openai import AsyncOpenAI

from app.domain.models import (
    EvaluatedResponse,
    Evaluation,
    EvaluationRequest,
    Interview,
    PerformanceSummary,
    QuestionBatch,
    QuestionDraft,
    QuestionSpec,
)
from app.ports.ai_port import AIPort

logger = logging.getLogger(__name__)

_LANGUAGE_NAMES = {
    "python": "Python",
    "cpp": "C++",
    "java": "Java",
    "javascript": "JavaScript",
}


class OpenAIAdapter(AIPort):
    """Talks to OpenAI's chat completions API for schema-enforced output."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini") -> None:
        self._raw_client = AsyncOpenAI(api_key=api_key, timeout=30.0)
        self._instructor_client = instructor.from_openai(self._raw_client)
        self._model = model

    async def generate_questions(self, spec: QuestionSpec) -> list[QuestionDraft]:
        """Use Instructor to force GPT output into the QuestionBatch schema."""

        language = _LANGUAGE_NAMES.get(spec.language.value, "Python")
        result = await self._instructor_client.chat.completions.create(
            model=self._model,
            response_model=QuestionBatch,
            max_retries=2,
            messages=[
                {
                    "role": "system",
                    "content": (
                        "You are a senior technical interviewer writing practice questions. "
                        "Every question needs a complete model answer, a time limit in minutes, "
                        "hints, the concepts it tests, common mistakes, interviewer expectations "
                        "and follow-up questions. Code in answers must be written in "
                        f"{language}."
                    ),
                },
                {
                    "role": "user",
                    "content": (
                        f"## Category\n{spec.category.value}\n\n"
                        f"## Difficulty\n{spec.difficulty.value}\n\n"
                        f"## Topic\n{spec.topic}\n\n"
                        f"Write exactly {spec.count} question(s) now."
                    ),
                },
            ],
        )
        questions = result.questions[: spec.count]
        if len(questions) < spec.count:
            raise ValueError(
                f"Model returned {len(questions)} question(s), expected {spec.count}"
            )
        return questions

    async def evaluate_response(self, request: EvaluationRequest) -> Evaluation:
        """Grade one answer on correctness, problem solving and communication."""

        return await self._instructor_client.chat.completions.create(
            model=self._model,
            response_model=Evaluation,
            max_retries=2,
            messages=[
                {
                    "role": "system",
                    "content": (
                        "You are a strict but fair technical interviewer. Score the candidate's "
                        "answer from 0-100 on correctness, problem solving and communication, "
                        "then give an overall score, strengths, weaknesses, improvement "
                        "suggestions and detailed feedback."
                    ),
                },
                {
                    "role": "user",
                    "content": (
                        f"## Question\n{request.question}\n\n"
                        f"## Model Answer\n{request.model_answer[:4000]}\n\n"
                        f"## Candidate Answer\n{request.user_answer[:4000]}\n\n"
                        f"## Timing\n{request.time_taken}s used of {request.time_limit * 60}s allowed\n\n"
                        "Evaluate this answer now."
                    ),
                },
            ],
            max_tokens=800,
        )

    async def generate_session_summary(
        self, interview: Interview, responses: list[EvaluatedResponse]
    ) -> PerformanceSummary:
        """Produce per-dimension averages, topic strengths/weaknesses and readiness."""

        question_scores = "\n".join(
            f"Question {i + 1}: Correctness={r.evaluation.correctness_score}, "
            f"ProblemSolving={r.evaluation.problem_solving_score}, "
            f"Communication={r.evaluation.communication_score}"
            for i, r in enumerate(responses)
        )
        overall = "N/A" if interview.overall_score is None else f"{interview.overall_score:.1f}"

        return await self._instructor_client.chat.completions.create(
            model=self._model,
            response_model=PerformanceSummary,
            max_retries=2,
            messages=[
                {
                    "role": "system",
                    "content": (
                        "You are an interview coach summarising a practice session. "
                        "Report average scores per dimension, topic-wise strengths and "
                        "weaknesses with scores, and a one-sentence readiness estimate."
                    ),
                },
                {
                    "role": "user",
                    "content": (
                        f"## Topic\n{interview.topic} ({interview.difficulty.value})\n\n"
                        f"## Questions\n{interview.question_count}\n\n"
                        f"## Overall Score\n{overall}\n\n"
                        f"## Per-question Scores\n{question_scores}\n\n"
                        "Summarise this session now."
                    ),
                },
            ],
            max_tokens=600,
        )
