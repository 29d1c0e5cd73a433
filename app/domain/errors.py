"""
Domain error taxonomy.

Services raise these; main.py turns them into a JSON body of the form
``{"error": <kind>, "message": <text>, ...extra}`` with the matching status.
"""

from typing import Any


class AppError(Exception):
    """Base class for every failure a caller is expected to handle."""

    kind = "internal"
    status_code = 500

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.kind, "message": self.message}
        body.update({k: v for k, v in self.extra.items() if v is not None})
        return body


class UnauthorizedError(AppError):
    kind = "unauthorized"
    status_code = 401


class NotFoundError(AppError):
    kind = "not_found"
    status_code = 404


class ConflictError(AppError):
    """Raised when the caller already holds a live mock session."""

    kind = "conflict"
    status_code = 409

    def __init__(self, message: str, session_id: str | None = None) -> None:
        super().__init__(message, session_id=session_id)
        self.session_id = session_id


class InvalidStateError(AppError):
    kind = "invalid_state"
    status_code = 400


class ExpiredError(AppError):
    kind = "expired"
    status_code = 410


class UpstreamError(AppError):
    kind = "upstream_failure"
    status_code = 502


class RateLimitedError(AppError):
    kind = "rate_limited"
    status_code = 429

    def __init__(
        self,
        message: str,
        retry_after: int,
        limit: int,
        remaining: int,
        reset_at: str | None = None,
    ) -> None:
        super().__init__(
            message,
            retry_after=retry_after,
            limit=limit,
            remaining=remaining,
            reset_at=reset_at,
        )
        self.retry_after = retry_after
