"""
Authentication service.
Verifies Supabase-issued JWTs and resolves the current user.
"""

from typing import Any

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt

from app.config import settings
from app.dependencies import get_db
from app.domain.errors import UnauthorizedError
from app.ports.database_port import DatabasePort

_bearer_scheme = HTTPBearer(auto_error=False)


def decode_token(token: str, secret: str) -> str:
    """
    Verify the token signature and expiry, returning the user id (sub claim).
    Supabase tokens carry audience "authenticated", which is not checked.
    """
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            options={"verify_aud": False},
            leeway=30,  # tolerate small clock drift
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise UnauthorizedError(f"Invalid token: {e}")

    user_id = payload.get("sub")
    if not user_id:
        raise UnauthorizedError("Token missing user ID (sub claim)")
    return str(user_id)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    db: DatabasePort = Depends(get_db),
) -> dict[str, Any]:
    """
    FastAPI dependency: decode the bearer token locally, then fetch the
    user row. Only users with a row in public.users are accepted.
    """
    if credentials is None:
        raise UnauthorizedError("Missing bearer token")

    user_id = decode_token(credentials.credentials, settings.supabase_jwt_secret)

    user = await db.get_user(user_id)
    if not user:
        raise UnauthorizedError("User not found")
    return user
