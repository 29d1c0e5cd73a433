"""
mockprep — FastAPI Application Entry Point

Registers all routers, applies middleware, and serves the API.
"""

import logging
import contextlib
import traceback
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.domain.errors import AppError, RateLimitedError
from app.routers import interviews, mock_sessions, users

# ── Logging ───────────────────────────────────────────────────
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
)
logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("🚀 %s is starting up", settings.app_name)
    from app.scheduler import start_scheduler, shutdown_scheduler
    start_scheduler()
    yield
    # Shutdown
    shutdown_scheduler()
    logger.info("🛑 %s is shutting down", settings.app_name)


# ── App factory ───────────────────────────────────────────────
app = FastAPI(
    title=settings.app_name,
    description=(
        "Mock interview practice — question generation, timed sessions "
        "with server-authoritative timers, and AI grading."
    ),
    version="0.1.0",
    lifespan=lifespan,
)

# ── CORS ──────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)


# ── Domain Error Handler ──────────────────────────────────────
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after)}
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


# ── Global Exception Handler ─────────────────────────────────
# Ensures ALL unhandled errors return proper JSON with CORS headers
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}: "
        f"{type(exc).__name__}: {exc}\n{traceback.format_exc()}"
    )
    return JSONResponse(
        status_code=500,
        content={"error": "internal", "message": f"Internal server error: {type(exc).__name__}"},
    )


# ── Routers ───────────────────────────────────────────────────
app.include_router(users.router)
app.include_router(interviews.router)
app.include_router(mock_sessions.router)


# ── Health Check ──────────────────────────────────────────────
@app.get("/", tags=["Health"])
async def health_check():
    return {"status": "ok", "service": settings.app_name}
