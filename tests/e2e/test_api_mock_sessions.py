from datetime import timedelta

import jwt
import pytest
from fastapi.testclient import TestClient

from app.adapters.memory_rate_limit_store import MemoryRateLimitStore
from app.config import settings
from app.dependencies import get_ai_service, get_clock, get_db, get_rate_limit_store
from conftest import OTHER_USER_ID, T0, USER_ID
from main import app


def _token(user_id: str, **claims) -> str:
    payload = {"sub": user_id, "aud": "authenticated", "exp": T0 + timedelta(days=3650)}
    payload.update(claims)
    return jwt.encode(payload, settings.supabase_jwt_secret, algorithm="HS256")


def _auth(user_id: str = USER_ID) -> dict[str, str]:
    return {"Authorization": f"Bearer {_token(user_id)}"}


@pytest.fixture
def client(db, ai, clock):
    db.users[USER_ID] = {"id": USER_ID, "email": "candidate@example.com", "full_name": "Sam Lee"}
    db.users[OTHER_USER_ID] = {"id": OTHER_USER_ID, "email": "other@example.com"}
    store = MemoryRateLimitStore()

    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_ai_service] = lambda: ai
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_rate_limit_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _start(client, interview_id, user_id=USER_ID):
    return client.post(
        "/mock-sessions/start", json={"interview_id": interview_id}, headers=_auth(user_id)
    )


# ── auth ──────────────────────────────────────────────────────


def test_health(client):
    assert client.get("/").json()["status"] == "ok"


def test_missing_token_is_unauthorized(client, three_question_interview):
    resp = client.post("/mock-sessions/start", json={"interview_id": three_question_interview})
    assert resp.status_code == 401
    assert resp.json()["error"] == "unauthorized"


def test_bad_signature_is_unauthorized(client):
    forged = jwt.encode({"sub": USER_ID}, "some-other-secret-of-sufficient-size", algorithm="HS256")
    resp = client.get("/users/me", headers={"Authorization": f"Bearer {forged}"})
    assert resp.status_code == 401


def test_expired_token_is_unauthorized(client):
    token = _token(USER_ID, exp=T0 - timedelta(days=1))
    resp = client.get("/users/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Token has expired"


def test_me(client):
    resp = client.get("/users/me", headers=_auth())
    assert resp.status_code == 200
    assert resp.json()["email"] == "candidate@example.com"


# ── end-to-end scenarios ──────────────────────────────────────


def test_full_session_scores_interview(client, db, ai, three_question_interview):
    ai.scores = {"a1": 80, "a2": 50, "a3": 90}
    resp = _start(client, three_question_interview)
    assert resp.status_code == 201
    session_id = resp.json()["session"]["id"]

    for answer in ("a1", "a2", "a3"):
        resp = client.post(
            f"/mock-sessions/{session_id}/answer",
            json={"answer": answer, "time_taken": 120},
            headers=_auth(),
        )
        assert resp.status_code == 200

    assert resp.json()["session_completed"] is True
    assert db.sessions[session_id]["status"] == "completed"

    interview = client.get(f"/interviews/{three_question_interview}", headers=_auth()).json()
    assert interview["status"] == "completed"
    assert interview["overall_score"] == pytest.approx((80 + 50 + 90) / 3)
    assert interview["completion_percentage"] == 100


def test_second_start_returns_conflict_with_first_id(client, db, three_question_interview):
    first = _start(client, three_question_interview).json()["session"]["id"]
    other = db.add_interview([db.add_question()])

    resp = _start(client, other)

    assert resp.status_code == 409
    assert resp.json() == {
        "error": "conflict",
        "message": "You already have an active mock session",
        "session_id": first,
    }


def test_overdue_session_is_gone(client, db, clock, three_question_interview):
    session_id = _start(client, three_question_interview).json()["session"]["id"]
    db.sessions[session_id]["expires_at"] = (clock.now - timedelta(seconds=1)).isoformat()

    resp = client.post(
        f"/mock-sessions/{session_id}/sync",
        json={"client_time_remaining": 1000},
        headers=_auth(),
    )

    assert resp.status_code == 410
    assert resp.json()["error"] == "expired"
    assert db.sessions[session_id]["status"] == "expired"
    assert client.get(f"/mock-sessions/{session_id}", headers=_auth()).status_code == 410


def test_sync_drift_server_wins(client, clock, three_question_interview):
    session_id = _start(client, three_question_interview).json()["session"]["id"]
    clock.advance(150)

    resp = client.post(
        f"/mock-sessions/{session_id}/sync",
        json={"client_time_remaining": 1150},
        headers=_auth(),
    )

    assert resp.status_code == 200
    assert resp.json()["server_time_remaining"] == 1200 - 150


def test_grader_failure_falls_back(client, db, ai, three_question_interview):
    ai.failing_answers = {"a2"}
    session_id = _start(client, three_question_interview).json()["session"]["id"]
    for answer in ("a1", "a2", "a3"):
        client.post(
            f"/mock-sessions/{session_id}/answer",
            json={"answer": answer, "time_taken": 30},
            headers=_auth(),
        )

    responses = db.interviews[three_question_interview]["responses"]
    assert len(responses) == 3
    assert responses[1]["evaluation"]["overall_score"] == 50
    assert responses[1]["evaluation"]["correctness_score"] == 50


# ── ownership and state errors ────────────────────────────────


def test_other_user_gets_not_found(client, three_question_interview):
    session_id = _start(client, three_question_interview).json()["session"]["id"]
    resp = client.get(f"/mock-sessions/{session_id}", headers=_auth(OTHER_USER_ID))
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


def test_pause_twice_is_invalid_state(client, three_question_interview):
    session_id = _start(client, three_question_interview).json()["session"]["id"]
    assert client.patch(f"/mock-sessions/{session_id}/pause", headers=_auth()).status_code == 200
    resp = client.patch(f"/mock-sessions/{session_id}/pause", headers=_auth())
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_state"


def test_pause_resume_end(client, db, three_question_interview):
    session_id = _start(client, three_question_interview).json()["session"]["id"]

    paused = client.patch(f"/mock-sessions/{session_id}/pause", headers=_auth()).json()
    assert paused["session"]["status"] == "paused"
    resumed = client.patch(f"/mock-sessions/{session_id}/resume", headers=_auth()).json()
    assert resumed["session"]["status"] == "active"

    resp = client.patch(f"/mock-sessions/{session_id}/end", headers=_auth())
    assert resp.status_code == 200
    assert db.sessions[session_id]["status"] == "expired"


def test_empty_answer_rejected_by_validation(client, three_question_interview):
    session_id = _start(client, three_question_interview).json()["session"]["id"]
    resp = client.post(
        f"/mock-sessions/{session_id}/answer",
        json={"answer": "", "time_taken": 1},
        headers=_auth(),
    )
    assert resp.status_code == 422
