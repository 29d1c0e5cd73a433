"""
Application configuration loaded from environment variables.
Uses pydantic-settings for typed, validated config.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from app.domain.models import RateLimitPolicy, SessionPolicy


class Settings(BaseSettings):
    """All environment variables required by the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── Supabase ──────────────────────────────────────────────
    supabase_url: str
    supabase_key: str                # anon key (client-facing)
    supabase_service_role_key: str   # service role key (bypasses RLS)
    supabase_jwt_secret: str

    # ── OpenAI ────────────────────────────────────────────────
    openai_api_key: str
    openai_model: str = "gpt-4o-mini"

    # ── Mock sessions ─────────────────────────────────────────
    session_ttl_hours: float = 3
    default_question_seconds: int = 1200
    timer_drift_threshold_seconds: int = 5

    # ── Interview generation rate limit ───────────────────────
    generation_rate_limit: int = 5
    generation_rate_window_hours: int = 24
    generation_backoff_base_ms: int = 1000
    generation_backoff_max_ms: int = 60000

    # ── Scheduler ─────────────────────────────────────────────
    scheduler_enabled: bool = True
    expiry_sweep_minutes: int = 15

    # ── App ───────────────────────────────────────────────────
    app_name: str = "mockprep"
    debug: bool = False

    def session_policy(self) -> SessionPolicy:
        return SessionPolicy(
            session_ttl_hours=self.session_ttl_hours,
            default_question_seconds=self.default_question_seconds,
            drift_threshold_seconds=self.timer_drift_threshold_seconds,
        )

    def rate_limit_policy(self) -> RateLimitPolicy:
        return RateLimitPolicy(
            max_requests=self.generation_rate_limit,
            window_seconds=self.generation_rate_window_hours * 60 * 60,
            base_delay_ms=self.generation_backoff_base_ms,
            max_delay_ms=self.generation_backoff_max_ms,
        )


# Singleton — import this wherever config is needed
settings = Settings()  # type: ignore[call-arg]
