"""
Interview endpoints — generation, listing, direct answers, stats.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, Response, status

from app.dependencies import get_interview_service, get_rate_limiter
from app.domain.enums import InterviewStatus
from app.domain.models import DirectAnswerSubmit, InterviewCompleteRequest, InterviewGenerateRequest
from app.services.auth_service import get_current_user
from app.services.interview_service import InterviewService
from app.services.rate_limit_service import RateLimiter

router = APIRouter(prefix="/interviews", tags=["Interviews"])


async def enforce_generation_limit(
    response: Response,
    current_user: dict[str, Any] = Depends(get_current_user),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> None:
    """Count one generation against the caller's quota and expose the headers."""
    headers = await limiter.check(str(current_user["id"]))
    response.headers.update(headers)


# Static paths are registered before /{interview_id}.


@router.get("/stats")
async def get_stats(
    current_user: dict[str, Any] = Depends(get_current_user),
    svc: InterviewService = Depends(get_interview_service),
):
    return await svc.get_user_stats(str(current_user["id"]))


@router.get("/rate-limit")
async def get_rate_limit_status(
    current_user: dict[str, Any] = Depends(get_current_user),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    """Remaining interview generations in the current window."""
    return await limiter.status(str(current_user["id"]))


@router.post(
    "/generate",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_generation_limit)],
)
async def generate_interview(
    body: InterviewGenerateRequest,
    current_user: dict[str, Any] = Depends(get_current_user),
    svc: InterviewService = Depends(get_interview_service),
):
    """Assemble a new interview from the question bank, generating what is missing."""
    return await svc.generate_interview(str(current_user["id"]), body)


@router.get("")
async def list_interviews(
    status_filter: InterviewStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: dict[str, Any] = Depends(get_current_user),
    svc: InterviewService = Depends(get_interview_service),
):
    return await svc.list_interviews(
        str(current_user["id"]), status=status_filter, page=page, limit=limit
    )


@router.get("/{interview_id}")
async def get_interview(
    interview_id: str,
    current_user: dict[str, Any] = Depends(get_current_user),
    svc: InterviewService = Depends(get_interview_service),
):
    return await svc.get_interview(interview_id, str(current_user["id"]))


@router.post("/{interview_id}/answer")
async def submit_answer(
    interview_id: str,
    body: DirectAnswerSubmit,
    current_user: dict[str, Any] = Depends(get_current_user),
    svc: InterviewService = Depends(get_interview_service),
):
    """Grade a single answer outside of a timed session."""
    return await svc.submit_answer(interview_id, str(current_user["id"]), body)


@router.patch("/{interview_id}/complete")
async def complete_interview(
    interview_id: str,
    body: InterviewCompleteRequest,
    current_user: dict[str, Any] = Depends(get_current_user),
    svc: InterviewService = Depends(get_interview_service),
):
    return await svc.complete_interview(
        interview_id, str(current_user["id"]), body.status, force=body.force
    )


@router.delete("/{interview_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_interview(
    interview_id: str,
    current_user: dict[str, Any] = Depends(get_current_user),
    svc: InterviewService = Depends(get_interview_service),
):
    await svc.delete_interview(interview_id, str(current_user["id"]))
    return None
