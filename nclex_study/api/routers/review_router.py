"""
Review router.

Endpoints for recording answers and reading spaced-repetition state.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends
from loguru import logger
from pydantic import BaseModel, Field

from nclex_study.api.dependencies import get_review_service
from nclex_study.config import Settings, get_settings
from nclex_study.scheduling import SpacedRepetitionService

router = APIRouter()


# ========================================
# Request/Response Models
# ========================================


class AnswerRequest(BaseModel):
    """Model for a reviewed answer."""

    user_id: str = Field(..., min_length=1)
    question_id: str = Field(..., min_length=1)
    is_correct: bool
    quality_score: float | None = Field(
        default=None, ge=0, le=5, description="Recall quality 0-5; derived from response_ms if omitted"
    )
    response_ms: int | None = Field(default=None, ge=0)


class ReviewOutcomeResponse(BaseModel):
    next_review: datetime
    interval: int
    ease_factor: float
    repetitions: int


class ReviewStateResponse(BaseModel):
    user_id: str
    question_id: str
    ease_factor: float
    interval: int
    repetitions: int
    next_review: datetime | None
    last_is_correct: bool | None
    last_reviewed: datetime | None


class LearningProgressResponse(BaseModel):
    total_cards: int
    mastered: int
    learning: int
    needs_review: int
    retention: float


# ========================================
# Review Endpoints
# ========================================


@router.post("/answer", response_model=ReviewOutcomeResponse, summary="Record a reviewed answer")
def record_answer(
    request: AnswerRequest,
    service: SpacedRepetitionService = Depends(get_review_service),
    settings: Settings = Depends(get_settings),
) -> ReviewOutcomeResponse:
    """
    Apply SM-2 to an answer and return the new schedule.

    When ``quality_score`` is omitted it is derived from correctness and
    ``response_ms`` against the configured expected response time.
    """
    quality = request.quality_score
    if quality is None:
        quality = service.scheduler.grade_from_response(
            request.is_correct,
            response_ms=request.response_ms or 0,
            expected_ms=settings.expected_response_ms,
        )

    outcome = service.process_answer(request.user_id, request.question_id, request.is_correct, quality)
    return ReviewOutcomeResponse(**outcome.to_dict())


@router.get("/{user_id}/due", response_model=list[ReviewStateResponse], summary="Get due questions")
def get_due_questions(
    user_id: str,
    service: SpacedRepetitionService = Depends(get_review_service),
) -> list[ReviewStateResponse]:
    """Questions due for review now, earliest first."""
    due = service.get_due_questions(user_id)
    logger.debug(f"{len(due)} questions due for {user_id}")
    return [
        ReviewStateResponse(
            user_id=s.user_id,
            question_id=s.question_id,
            ease_factor=s.ease_factor,
            interval=s.interval,
            repetitions=s.repetitions,
            next_review=s.next_review,
            last_is_correct=s.last_is_correct,
            last_reviewed=s.last_reviewed,
        )
        for s in due
    ]


@router.get("/{user_id}/progress", response_model=LearningProgressResponse, summary="Get learning progress")
def get_learning_progress(
    user_id: str,
    service: SpacedRepetitionService = Depends(get_review_service),
) -> LearningProgressResponse:
    """Mastered / learning / due counts and retention for a user."""
    return LearningProgressResponse(**service.get_learning_progress(user_id).to_dict())
