"""
FastAPI dependency providers.

Services are built per request over SQLAlchemy stores that share the
process-wide engine. Tests swap these out via ``app.dependency_overrides``.
"""
from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from nclex_study.adaptive import SimulationService
from nclex_study.config import Settings, get_settings
from nclex_study.content import LLMContentProvider, QuestionGenerator
from nclex_study.db import SqlAlchemyAttemptStore, SqlAlchemyQuestionStore, SqlAlchemyReviewStore
from nclex_study.scheduling import SM2Config, SM2Scheduler, SpacedRepetitionService


def get_review_service(settings: Settings = Depends(get_settings)) -> SpacedRepetitionService:
    return SpacedRepetitionService(
        SqlAlchemyReviewStore(),
        SM2Scheduler(SM2Config.from_settings(settings)),
    )


def get_simulation_service(
    settings: Settings = Depends(get_settings),
    review_service: SpacedRepetitionService = Depends(get_review_service),
) -> SimulationService:
    return SimulationService(
        SqlAlchemyAttemptStore(),
        SqlAlchemyQuestionStore(),
        review_service=review_service,
        settings=settings,
    )


@lru_cache(maxsize=1)
def _content_provider() -> LLMContentProvider:
    return LLMContentProvider(get_settings())


def get_question_generator(settings: Settings = Depends(get_settings)) -> QuestionGenerator:
    return QuestionGenerator(_content_provider(), allow_fallback=settings.ai_allow_fallback)


def get_question_store() -> SqlAlchemyQuestionStore:
    return SqlAlchemyQuestionStore()
