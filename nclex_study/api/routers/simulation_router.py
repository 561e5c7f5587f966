"""
Simulation router.

Endpoints for standard and computer-adaptive (CAT) exam simulations.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from nclex_study.adaptive import SimulationService
from nclex_study.api.dependencies import get_simulation_service

router = APIRouter()


# ========================================
# Request/Response Models
# ========================================


class StartRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    session_type: str = Field(default="standard", description="'standard' or 'cat'")
    difficulty: str | int | None = Field(default=None, description="easy/medium/hard or 1-3")
    total_questions: int | None = Field(default=None, ge=1)


class AnswerSubmission(BaseModel):
    question_id: str = Field(..., min_length=1)
    answer: str
    time_spent: float = Field(default=0, ge=0, description="Seconds spent on the question")


class QuestionResponse(BaseModel):
    """A question without its answer key."""

    id: str
    text: str
    type: str
    options: list[dict[str, str]]
    category: str | None
    difficulty: int


class AttemptResponse(BaseModel):
    attempt_id: str
    user_id: str
    session_type: str
    total_questions: int
    answered: int
    current_difficulty: int
    score: int
    mastery_estimate: float
    started_at: str
    completed_at: str | None
    strengths: list[str]
    weaknesses: list[str]


class StartResponse(BaseModel):
    attempt: AttemptResponse
    questions: list[QuestionResponse]


class AdvanceResponse(BaseModel):
    is_correct: bool
    explanation: str | None
    next_question: QuestionResponse | None
    completed: bool
    current_difficulty: int
    score: int
    mastery_estimate: float


# ========================================
# Simulation Endpoints
# ========================================


@router.post("/start", response_model=StartResponse, summary="Start a simulation")
def start_simulation(
    request: StartRequest,
    service: SimulationService = Depends(get_simulation_service),
) -> dict[str, Any]:
    """
    Start a simulation.

    Standard sessions return the whole question set; CAT sessions return one
    question at the starting difficulty.
    """
    started = service.start_attempt(
        request.user_id,
        session_type=request.session_type,
        difficulty=request.difficulty,
        total_questions=request.total_questions,
    )
    return started.to_dict()


@router.post("/{attempt_id}/answer", response_model=AdvanceResponse, summary="Answer a question")
def answer_question(
    attempt_id: str,
    submission: AnswerSubmission,
    service: SimulationService = Depends(get_simulation_service),
) -> dict[str, Any]:
    """
    Grade an answer and return the next question.

    Responds 409 with ``code="exhausted_content"`` when a CAT session has no
    unanswered question at the new difficulty; the answer is still recorded.
    """
    result = service.advance_attempt(
        attempt_id,
        submission.question_id,
        submission.answer,
        time_spent=submission.time_spent,
    )
    return result.to_dict()


@router.get("/{attempt_id}", response_model=AttemptResponse, summary="Get a simulation attempt")
def get_simulation(
    attempt_id: str,
    service: SimulationService = Depends(get_simulation_service),
) -> dict[str, Any]:
    return service.get_attempt(attempt_id).to_dict()
