"""
Tryout PTN API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Database and Redis connections
- Background job scheduler
- Upload directories
- CORS middleware and error envelope handlers
- API routing
- Health check endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from tryout.api import api_router
from tryout.core import redis as redis_state
from tryout.core.config import settings
from tryout.core.database import close_db, get_session_maker, init_db
from tryout.core.handlers import register_exception_handlers
from tryout.core.redis import close_redis, init_redis
from tryout.core.scheduler import (
    list_registered_jobs,
    start_scheduler,
    stop_scheduler,
    trigger_job_manually,
)
from tryout.core.uploads import ensure_directories
from tryout.modules.otp import register_otp_jobs

logging.basicConfig(
    level=logging.DEBUG if settings.is_development else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("tryout")

CORS_ALLOWED_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown of Redis, the database, the upload
    directories and the background job scheduler. Outside production a
    failing dependency is logged and the app starts anyway.
    """
    logger.info(f"Starting Tryout PTN API in {settings.python_env} mode...")

    # Redis is optional: the rate limiter falls back to memory
    try:
        await init_redis()
        logger.info("[OK] Redis connected")
    except Exception as e:
        logger.warning(f"[FAIL] Redis connection failed: {e}")

    try:
        await init_db()
        logger.info("[OK] Database connected")
    except Exception as e:
        logger.error(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    try:
        ensure_directories()
        logger.info(f"[OK] Upload directory ready: {settings.upload_dir}")
    except OSError as e:
        logger.error(f"[FAIL] Upload directory not writable: {e}")
        if settings.is_production:
            raise

    try:
        register_otp_jobs()
        await start_scheduler()
        logger.info("[OK] Background scheduler started")
    except Exception as e:
        logger.error(f"[FAIL] Background scheduler failed to start: {e}")
        if settings.is_production:
            raise

    yield

    logger.info("Shutting down Tryout PTN API...")

    await stop_scheduler()
    logger.info("[OK] Background scheduler stopped")

    await close_redis()
    await close_db()
    logger.info("[OK] Cleanup complete")


app = FastAPI(
    title="Tryout PTN API",
    description="Registration, OTP verification and payment verification for the Tryout PTN event",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")

register_exception_handlers(app)

# Tokens travel in the Authorization header, not cookies
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=CORS_ALLOWED_HEADERS,
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to Tryout PTN API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, str]:
    """Readiness check: the database must answer."""
    async with get_session_maker()() as session:
        await session.execute(text("SELECT 1"))
    return {"status": "ready"}


# ============================================
# Debug Endpoints (development only)
# ============================================


@app.get("/debug/redis", tags=["Debug"], include_in_schema=settings.is_development)
async def debug_redis():
    """Test Redis connection."""
    if not settings.is_development:
        raise HTTPException(status_code=404, detail="Not Found")

    client = redis_state.get_redis()
    if client is None:
        return {"redis": "not initialized"}
    try:
        await client.ping()
        return {"redis": "connected"}
    except Exception as e:
        return {"redis": "error", "message": str(e)}


@app.get("/debug/jobs", tags=["Debug"], include_in_schema=settings.is_development)
async def list_jobs():
    """List registered background jobs."""
    if not settings.is_development:
        raise HTTPException(status_code=404, detail="Not Found")
    return {"jobs": list_registered_jobs()}


@app.post("/debug/jobs/{job_id}/trigger", tags=["Debug"], include_in_schema=settings.is_development)
async def trigger_job(job_id: str):
    """
    Run a background job now, bypassing its schedule.

    Available jobs:
        - otp_purge_expired
    """
    if not settings.is_development:
        raise HTTPException(status_code=404, detail="Not Found")

    try:
        return await trigger_job_manually(job_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
