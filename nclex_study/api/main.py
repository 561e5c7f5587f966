"""
FastAPI application for nclex-study.

Provides REST API for:
- Spaced repetition reviews (answers, due items, progress)
- Standard and computer-adaptive exam simulations
- LLM question generation
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from nclex_study import __version__
from nclex_study.api.routers import content_router, review_router, simulation_router
from nclex_study.config import get_settings
from nclex_study.core.errors import (
    ConcurrentUpdateError,
    ContentProviderUnavailableError,
    ExhaustedContentError,
    InvalidContentError,
    InvalidInputError,
    NclexStudyError,
    NotFoundError,
    StoreUnavailableError,
)
from nclex_study.core.logging_setup import configure_logging
from nclex_study.db.database import get_engine, init_db

# Most specific first
ERROR_STATUS: list[tuple[type[NclexStudyError], int]] = [
    (InvalidInputError, 400),
    (NotFoundError, 404),
    (ExhaustedContentError, 409),
    (ConcurrentUpdateError, 409),
    (InvalidContentError, 502),
    (ContentProviderUnavailableError, 503),
    (StoreUnavailableError, 503),
]


def status_for(error: NclexStudyError) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(error, error_type):
            return status
    return 500


def _check_database_health() -> tuple[str, str | None]:
    """
    Check database connectivity.

    Returns:
        Tuple of (status, error_message). Status is "ok" or "error".
    """
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return "ok", None
    except SQLAlchemyError as e:
        return "error", str(e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    configure_logging(settings)
    logger.info("Starting nclex-study service...")
    init_db()
    logger.info(f"Service started on {settings.api_host}:{settings.api_port}")

    yield

    logger.info("Shutting down nclex-study service...")


app = FastAPI(
    title="NCLEX Study",
    description="""
    Study core for NCLEX exam preparation.

    ## Features

    - **Spaced Repetition**: SM-2 scheduling per user and question
    - **Simulations**: Standard and computer-adaptive (CAT) exam sessions
    - **Content**: LLM question generation with validated output
    """,
    version=__version__,
    lifespan=lifespan,
)


@app.exception_handler(NclexStudyError)
async def study_error_handler(request: Request, exc: NclexStudyError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.warning(f"{request.method} {request.url.path} -> {status}: {exc.message}")
    return JSONResponse(status_code=status, content=exc.to_dict())


# ========================================
# Health & Status Endpoints
# ========================================


@app.get("/", tags=["Health"])
def root() -> dict[str, str]:
    """Root endpoint returning service info."""
    return {
        "service": "nclex-study",
        "version": __version__,
        "status": "ok",
    }


@app.get("/health", tags=["Health"])
def health_check() -> dict[str, Any]:
    """Health check with a live database probe."""
    db_status, db_error = _check_database_health()
    return {
        "status": "healthy" if db_status == "ok" else "degraded",
        "database": {"status": db_status, "error": db_error},
        "ai_configured": get_settings().has_ai_configured(),
        "version": __version__,
    }


# ========================================
# Include Routers
# ========================================

app.include_router(review_router.router, prefix="/api/reviews", tags=["Reviews"])
app.include_router(simulation_router.router, prefix="/api/simulations", tags=["Simulations"])
app.include_router(content_router.router, prefix="/api/content", tags=["Content"])
