"""
Mock session endpoints — thin HTTP layer over MockSessionService.
Domain errors propagate to the handler registered in main.py.
"""

from typing import Any

from fastapi import APIRouter, Depends, status

from app.dependencies import get_mock_session_service
from app.domain.models import MockAnswerSubmit, MockSessionStart, TimerSyncRequest
from app.services.auth_service import get_current_user
from app.services.mock_session_service import MockSessionService

router = APIRouter(prefix="/mock-sessions", tags=["Mock Sessions"])


@router.post("/start", status_code=status.HTTP_201_CREATED)
async def start_mock_session(
    body: MockSessionStart,
    current_user: dict[str, Any] = Depends(get_current_user),
    svc: MockSessionService = Depends(get_mock_session_service),
):
    """Start a timed session over an interview's questions."""
    return await svc.start_session(str(current_user["id"]), body.interview_id)


@router.get("/{session_id}")
async def get_mock_session(
    session_id: str,
    current_user: dict[str, Any] = Depends(get_current_user),
    svc: MockSessionService = Depends(get_mock_session_service),
):
    return await svc.get_session_state(session_id, str(current_user["id"]))


@router.post("/{session_id}/sync")
async def sync_timer(
    session_id: str,
    body: TimerSyncRequest,
    current_user: dict[str, Any] = Depends(get_current_user),
    svc: MockSessionService = Depends(get_mock_session_service),
):
    """Reconcile the client's countdown with the server clock."""
    return await svc.sync_timer(
        session_id, str(current_user["id"]), body.client_time_remaining
    )


@router.post("/{session_id}/answer")
async def submit_answer(
    session_id: str,
    body: MockAnswerSubmit,
    current_user: dict[str, Any] = Depends(get_current_user),
    svc: MockSessionService = Depends(get_mock_session_service),
):
    """Answer the current question. The last answer finalizes the interview."""
    return await svc.submit_answer(
        session_id, str(current_user["id"]), body.answer, body.time_taken
    )


@router.patch("/{session_id}/pause")
async def pause_mock_session(
    session_id: str,
    current_user: dict[str, Any] = Depends(get_current_user),
    svc: MockSessionService = Depends(get_mock_session_service),
):
    return await svc.pause_session(session_id, str(current_user["id"]))


@router.patch("/{session_id}/resume")
async def resume_mock_session(
    session_id: str,
    current_user: dict[str, Any] = Depends(get_current_user),
    svc: MockSessionService = Depends(get_mock_session_service),
):
    return await svc.resume_session(session_id, str(current_user["id"]))


@router.patch("/{session_id}/end")
async def end_mock_session(
    session_id: str,
    current_user: dict[str, Any] = Depends(get_current_user),
    svc: MockSessionService = Depends(get_mock_session_service),
):
    """Abandon the session without grading."""
    return await svc.end_session(session_id, str(current_user["id"]))
