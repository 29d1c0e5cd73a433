"""Score aggregation helpers and the neutral fallbacks used when grading fails."""

from __future__ import annotations

from statistics import fmean
from typing import Iterable

from app.domain.models import Evaluation, EvaluatedResponse, PerformanceSummary

FALLBACK_SCORE = 50.0
LIMITED_READINESS = "Evaluation completed with limited AI analysis"


def fallback_evaluation() -> Evaluation:
    """Neutral grading substituted for an answer the grader could not score."""
    return Evaluation(
        correctness_score=FALLBACK_SCORE,
        problem_solving_score=FALLBACK_SCORE,
        communication_score=FALLBACK_SCORE,
        overall_score=FALLBACK_SCORE,
        strengths=["Response submitted"],
        weaknesses=["Evaluation failed"],
        improvement_suggestions=["Please try again"],
        detailed_feedback="Unable to evaluate response due to technical issues.",
    )


def overall_score(responses: Iterable[EvaluatedResponse]) -> float | None:
    """Unweighted mean of per-answer overall scores; None when nothing was graded."""
    scores = [r.evaluation.overall_score for r in responses]
    if not scores:
        return None
    return fmean(scores)


def fallback_summary(responses: list[EvaluatedResponse]) -> PerformanceSummary:
    """Per-dimension means computed locally when the summary call fails."""

    def _mean(attr: str) -> float:
        values = [getattr(r.evaluation, attr) for r in responses]
        return fmean(values) if values else FALLBACK_SCORE

    return PerformanceSummary(
        correctness_average=_mean("correctness_score"),
        problem_solving_average=_mean("problem_solving_score"),
        communication_average=_mean("communication_score"),
        topic_wise_strengths=[],
        topic_wise_weaknesses=[],
        readiness_estimate=LIMITED_READINESS,
    )
