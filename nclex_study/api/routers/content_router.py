"""
Content router.

Generates NCLEX questions through the configured LLM and adds them to the
question bank.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from loguru import logger
from pydantic import BaseModel, Field

from nclex_study.adaptive import QuestionStore, parse_difficulty
from nclex_study.api.dependencies import get_question_generator, get_question_store
from nclex_study.content import QuestionGenerator

router = APIRouter()


# ========================================
# Request/Response Models
# ========================================


class GenerateRequest(BaseModel):
    topic: str = Field(..., min_length=1)
    count: int = Field(default=5, ge=1, le=25)
    difficulty: str | int = Field(default="medium")
    question_type: str = Field(default="standard", description="'standard' or 'cat'")
    category: str | None = None
    save: bool = Field(default=True, description="Add the generated questions to the question bank")


class GenerateResponse(BaseModel):
    question_ids: list[str]
    saved: int
    degraded: bool
    reason: str | None


# ========================================
# Content Endpoints
# ========================================


@router.post("/generate", response_model=GenerateResponse, summary="Generate questions")
def generate_questions(
    request: GenerateRequest,
    generator: QuestionGenerator = Depends(get_question_generator),
    store: QuestionStore = Depends(get_question_store),
) -> GenerateResponse:
    """
    Generate questions on a topic.

    ``degraded`` is true when backup questions were served because the
    provider was unreachable or returned invalid content.
    """
    difficulty = parse_difficulty(request.difficulty)
    batch = generator.generate(request.topic, request.count)

    saved = []
    if request.save:
        saved = generator.save(batch, store, difficulty, request.question_type, request.category)
        logger.info(f"Saved {len(saved)} generated questions on '{request.topic}'")

    return GenerateResponse(
        question_ids=[q.id for q in batch.questions],
        saved=len(saved),
        degraded=batch.degraded,
        reason=batch.reason,
    )
