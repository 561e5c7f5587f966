"""
Spaced Repetition.

Components:
- SM2Scheduler: Pure SM-2 interval / ease-factor computation
- DueItemSelector: Due items and learning progress
- SpacedRepetitionService: Validated, transactional answer processing
- InMemoryReviewStore: Lock-per-key review store (SQLAlchemy store lives in nclex_study.db)
"""
from nclex_study.scheduling.due_selector import DueItemSelector
from nclex_study.scheduling.models import (
    LearningProgress,
    ReviewOutcome,
    ReviewState,
    ReviewUpdate,
)
from nclex_study.scheduling.service import SpacedRepetitionService
from nclex_study.scheduling.sm2 import SM2Config, SM2Scheduler
from nclex_study.scheduling.store import InMemoryReviewStore, ReviewItemStore

__all__ = [
    "SM2Config",
    "SM2Scheduler",
    "DueItemSelector",
    "SpacedRepetitionService",
    "ReviewItemStore",
    "InMemoryReviewStore",
    "ReviewState",
    "ReviewUpdate",
    "ReviewOutcome",
    "LearningProgress",
]
