"""
Concrete implementation of DatabasePort using the Supabase Python client.
"""

from datetime import datetime
from typing import Any

from postgrest.exceptions import APIError
from supabase import Client

from app.domain.enums import SessionStatus
from app.domain.errors import ConflictError
from app.ports.database_port import DatabasePort

_LIVE_STATUSES = [SessionStatus.ACTIVE.value, SessionStatus.PAUSED.value]

# Postgres unique_violation; raised by the one-live-session-per-user index.
_UNIQUE_VIOLATION = "23505"


class SupabaseAdapter(DatabasePort):
    """All database I/O goes through the Supabase REST client."""

    def __init__(self, client: Client) -> None:
        self._client = client

    # ── Users ─────────────────────────────────────────────────

    async def get_user(self, user_id: str) -> dict[str, Any] | None:
        result = (
            self._client.table("users")
            .select("*")
            .eq("id", user_id)
            .maybe_single()
            .execute()
        )
        return result.data if result else None

    # ── Interviews ────────────────────────────────────────────

    async def create_interview(self, data: dict[str, Any]) -> dict[str, Any]:
        result = self._client.table("interviews").insert(data).execute()
        return result.data[0]

    async def get_interview(
        self, interview_id: str, user_id: str | None = None
    ) -> dict[str, Any] | None:
        query = self._client.table("interviews").select("*").eq("id", interview_id)
        if user_id:
            query = query.eq("user_id", user_id)
        result = query.maybe_single().execute()
        return result.data if result else None

    async def update_interview(self, interview_id: str, data: dict[str, Any]) -> None:
        self._client.table("interviews").update(data).eq("id", interview_id).execute()

    async def delete_interview(self, interview_id: str, user_id: str | None = None) -> bool:
        query = self._client.table("interviews").delete().eq("id", interview_id)
        if user_id:
            query = query.eq("user_id", user_id)
        result = query.execute()
        return bool(result.data)

    async def list_user_interviews(
        self, user_id: str, status: str | None = None, skip: int = 0, limit: int = 10
    ) -> list[dict[str, Any]]:
        query = self._client.table("interviews").select("*").eq("user_id", user_id)
        if status:
            query = query.eq("status", status)
        result = (
            query.order("created_at", desc=True)
            .range(skip, skip + limit - 1)
            .execute()
        )
        return result.data or []

    async def count_user_interviews(self, user_id: str, status: str | None = None) -> int:
        query = (
            self._client.table("interviews")
            .select("id", count="exact")
            .eq("user_id", user_id)
        )
        if status:
            query = query.eq("status", status)
        result = query.execute()
        return result.count if result.count is not None else len(result.data or [])

    # ── Question Bank ─────────────────────────────────────────

    async def create_questions(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        if not rows:
            return []
        result = self._client.table("questions").insert(rows).execute()
        return result.data or []

    async def get_questions(self, question_ids: list[str]) -> list[dict[str, Any]]:
        if not question_ids:
            return []
        result = (
            self._client.table("questions")
            .select("*")
            .in_("id", question_ids)
            .execute()
        )
        by_id = {str(row["id"]): row for row in result.data or []}
        return [by_id[qid] for qid in question_ids if qid in by_id]

    async def find_matching_questions(
        self,
        category: str,
        difficulty: str,
        language: str,
        concept: str,
        limit: int,
    ) -> list[dict[str, Any]]:
        result = (
            self._client.table("questions")
            .select("*")
            .eq("category", category)
            .eq("difficulty", difficulty)
            .eq("language", language)
            .contains("concepts_tested", [concept])
            .limit(limit)
            .execute()
        )
        return result.data or []

    # ── Mock Sessions ─────────────────────────────────────────

    async def create_mock_session(self, data: dict[str, Any]) -> dict[str, Any]:
        try:
            result = self._client.table("mock_sessions").insert(data).execute()
        except APIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                raise ConflictError("You already have an active mock session") from exc
            raise
        return result.data[0]

    async def get_mock_session(self, session_id: str, user_id: str) -> dict[str, Any] | None:
        result = (
            self._client.table("mock_sessions")
            .select("*")
            .eq("id", session_id)
            .eq("user_id", user_id)
            .maybe_single()
            .execute()
        )
        return result.data if result else None

    async def update_mock_session(self, session_id: str, data: dict[str, Any]) -> None:
        self._client.table("mock_sessions").update(data).eq("id", session_id).execute()

    async def find_live_session(self, user_id: str) -> dict[str, Any] | None:
        result = (
            self._client.table("mock_sessions")
            .select("*")
            .eq("user_id", user_id)
            .in_("status", _LIVE_STATUSES)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        return result.data[0] if result.data else None

    async def expire_stale_sessions(self, now: datetime) -> int:
        result = (
            self._client.table("mock_sessions")
            .update({"status": SessionStatus.EXPIRED.value})
            .in_("status", _LIVE_STATUSES)
            .lt("expires_at", now.isoformat())
            .execute()
        )
        return len(result.data or [])
