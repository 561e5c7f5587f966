"""
Spaced Repetition Service.

Entry points used by the API and CLI:
- process_answer: validate, run SM-2, persist atomically
- get_due_questions: items due now, earliest first
- get_learning_progress: aggregate mastery statistics
"""

from __future__ import annotations

import math
from dataclasses import replace
from datetime import datetime
from numbers import Real

from loguru import logger

from nclex_study.core.clock import as_naive_utc, utcnow
from nclex_study.core.errors import InvalidInputError
from nclex_study.scheduling.due_selector import DueItemSelector
from nclex_study.scheduling.models import LearningProgress, ReviewOutcome, ReviewState
from nclex_study.scheduling.sm2 import SM2Scheduler
from nclex_study.scheduling.store import ReviewItemStore

MIN_QUALITY = 0
MAX_QUALITY = 5


def normalize_id(value: object, name: str) -> str:
    """Coerce an opaque identifier to a non-empty string."""
    if value is None or isinstance(value, bool):
        raise InvalidInputError(f"{name} is required", **{name: value})
    text = str(value).strip()
    if not text:
        raise InvalidInputError(f"{name} must not be empty", **{name: value})
    return text


def validate_quality(quality: object) -> float:
    """Reject recall quality outside [0, 5]."""
    if isinstance(quality, bool) or not isinstance(quality, Real):
        raise InvalidInputError("quality_score must be a number", quality_score=quality)
    value = float(quality)
    if math.isnan(value) or not MIN_QUALITY <= value <= MAX_QUALITY:
        raise InvalidInputError(
            f"quality_score must be between {MIN_QUALITY} and {MAX_QUALITY}",
            quality_score=quality,
        )
    return value


class SpacedRepetitionService:
    """Applies SM-2 to answers and reports on review state for one store."""

    def __init__(
        self,
        store: ReviewItemStore,
        scheduler: SM2Scheduler | None = None,
    ):
        self.store = store
        self.scheduler = scheduler or SM2Scheduler()
        self.selector = DueItemSelector(store)

    def process_answer(
        self,
        user_id: object,
        question_id: object,
        is_correct: bool,
        quality_score: object,
        now: datetime | None = None,
    ) -> ReviewOutcome:
        """
        Record an answer and reschedule the question for this user.

        Args:
            user_id: Learner identifier
            question_id: Question identifier
            is_correct: Outcome, stored for reporting only
            quality_score: Recall quality 0-5
            now: Review timestamp (defaults to current UTC time)

        Returns:
            ReviewOutcome with next_review, interval and ease_factor

        Raises:
            InvalidInputError: On bad identifiers or quality
            StoreUnavailableError: If the read-modify-write could not be committed
        """
        uid = normalize_id(user_id, "user_id")
        qid = normalize_id(question_id, "question_id")
        quality = validate_quality(quality_score)
        if not isinstance(is_correct, bool):
            raise InvalidInputError("is_correct must be a boolean", is_correct=is_correct)
        reviewed_at = as_naive_utc(now) if now is not None else utcnow()

        def apply(state: ReviewState) -> ReviewState:
            # Never-reviewed items start from the configured initial EF
            if state.is_new:
                update = self.scheduler.compute_next_review(None, None, quality)
            else:
                update = self.scheduler.compute_next_review(state.ease_factor, state.interval, quality)
            repetitions = state.repetitions + 1 if self.scheduler.is_successful(quality) else 0
            return replace(
                state,
                ease_factor=update.new_ease_factor,
                interval=update.next_interval,
                repetitions=repetitions,
                next_review=self.scheduler.next_review_at(reviewed_at, update.next_interval),
                last_is_correct=is_correct,
                last_reviewed=reviewed_at,
            )

        stored = self.store.update(uid, qid, apply)

        logger.info(
            f"Recorded review for {uid}/{qid}: quality={quality:g}, "
            f"interval={stored.interval}d, ef={stored.ease_factor:.2f}"
        )

        return ReviewOutcome(
            next_review=stored.next_review,
            interval=stored.interval,
            ease_factor=stored.ease_factor,
            repetitions=stored.repetitions,
        )

    def get_due_questions(self, user_id: object, as_of: datetime | None = None) -> list[ReviewState]:
        uid = normalize_id(user_id, "user_id")
        return self.selector.due_items(uid, as_naive_utc(as_of) if as_of else utcnow())

    def get_learning_progress(self, user_id: object, now: datetime | None = None) -> LearningProgress:
        uid = normalize_id(user_id, "user_id")
        return self.selector.learning_progress(uid, as_naive_utc(now) if now else utcnow())
