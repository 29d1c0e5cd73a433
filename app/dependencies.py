"""
Dependency Injection container.

Wires abstract ports → concrete adapters. To swap a provider
(e.g., the in-memory rate limit store for a shared one), change the
adapter instantiation here. Nothing else in the codebase changes.
"""

from datetime import datetime
from functools import lru_cache
from typing import Callable

from fastapi import Depends
from supabase import create_client

from app.adapters.memory_rate_limit_store import MemoryRateLimitStore
from app.adapters.openai_adapter import OpenAIAdapter
from app.adapters.supabase_adapter import SupabaseAdapter
from app.config import settings
from app.domain.clock import utcnow
from app.domain.models import RateLimitPolicy, SessionPolicy
from app.ports.ai_port import AIPort
from app.ports.database_port import DatabasePort
from app.ports.rate_limit_port import RateLimitStorePort


# ── Singletons (cached) ──────────────────────────────────────


@lru_cache(maxsize=1)
def _get_supabase_client():
    # Use service role key — bypasses RLS for server-side operations
    return create_client(settings.supabase_url, settings.supabase_service_role_key)


@lru_cache(maxsize=1)
def _get_openai_adapter() -> OpenAIAdapter:
    return OpenAIAdapter(api_key=settings.openai_api_key, model=settings.openai_model)


@lru_cache(maxsize=1)
def _get_supabase_adapter() -> SupabaseAdapter:
    return SupabaseAdapter(client=_get_supabase_client())


@lru_cache(maxsize=1)
def _get_rate_limit_store() -> MemoryRateLimitStore:
    return MemoryRateLimitStore()


# ── FastAPI Dependencies (return abstract types) ──────────────


def get_ai_service() -> AIPort:
    """Inject the AI adapter."""
    return _get_openai_adapter()


def get_db() -> DatabasePort:
    """Inject the database adapter."""
    return _get_supabase_adapter()


def get_rate_limit_store() -> RateLimitStorePort:
    return _get_rate_limit_store()


def get_clock() -> Callable[[], datetime]:
    """Inject the time source. Tests override this to control time."""
    return utcnow


def get_session_policy() -> SessionPolicy:
    return settings.session_policy()


def get_rate_limit_policy() -> RateLimitPolicy:
    return settings.rate_limit_policy()


# ── Domain Services ───────────────────────────────────────────

from app.services.interview_service import InterviewService  # noqa: E402
from app.services.mock_session_service import MockSessionService  # noqa: E402
from app.services.rate_limit_service import RateLimiter  # noqa: E402
from app.services.scoring_service import ScoringService  # noqa: E402


def get_scoring_service(
    db: DatabasePort = Depends(get_db),
    ai: AIPort = Depends(get_ai_service),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> ScoringService:
    return ScoringService(db=db, ai=ai, clock=clock)


def get_mock_session_service(
    db: DatabasePort = Depends(get_db),
    ai: AIPort = Depends(get_ai_service),
    policy: SessionPolicy = Depends(get_session_policy),
    clock: Callable[[], datetime] = Depends(get_clock),
    scoring: ScoringService = Depends(get_scoring_service),
) -> MockSessionService:
    """Injects DB, AI, timing policy and clock into the session engine."""
    return MockSessionService(db=db, ai=ai, policy=policy, clock=clock, scoring=scoring)


def get_interview_service(
    db: DatabasePort = Depends(get_db),
    ai: AIPort = Depends(get_ai_service),
    clock: Callable[[], datetime] = Depends(get_clock),
    scoring: ScoringService = Depends(get_scoring_service),
) -> InterviewService:
    return InterviewService(db=db, ai=ai, clock=clock, scoring=scoring)


def get_rate_limiter(
    store: RateLimitStorePort = Depends(get_rate_limit_store),
    policy: RateLimitPolicy = Depends(get_rate_limit_policy),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> RateLimiter:
    return RateLimiter(store=store, policy=policy, clock=clock)
