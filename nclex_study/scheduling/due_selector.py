"""
Due-Item Selector.

Surfaces review items whose next review has passed (oldest overdue first)
and aggregates per-user learning progress.
"""

from __future__ import annotations

from datetime import datetime

from loguru import logger

from nclex_study.scheduling.models import DEFAULT_EASE_FACTOR, LearningProgress, ReviewState
from nclex_study.scheduling.store import ReviewItemStore

MASTERED_MIN_REPETITIONS = 3  # strictly greater than
LEARNING_MAX_INTERVAL = 7


class DueItemSelector:
    """Reads review state and reports what is due and how far along a user is."""

    def __init__(self, store: ReviewItemStore):
        self.store = store

    def due_items(self, user_id: str, as_of: datetime) -> list[ReviewState]:
        """
        Get review items with ``next_review <= as_of``.

        Returns:
            Items ordered earliest-due first
        """
        items = self.store.query_due(user_id, as_of)
        items = sorted(items, key=lambda s: s.next_review)
        logger.debug(f"{len(items)} items due for user {user_id}")
        return items

    def learning_progress(self, user_id: str, now: datetime) -> LearningProgress:
        """Compute mastered / learning / needs-review counts and retention."""
        items = self.store.list_for_user(user_id)
        progress = LearningProgress(total_cards=len(items))

        for item in items:
            if item.ease_factor > DEFAULT_EASE_FACTOR and item.repetitions > MASTERED_MIN_REPETITIONS:
                progress.mastered += 1
            if item.interval <= LEARNING_MAX_INTERVAL:
                progress.learning += 1
            if item.is_due(now):
                progress.needs_review += 1

        total_attempts = sum(item.repetitions for item in items)
        correct_attempts = sum(1 for item in items if item.last_is_correct)
        progress.retention = (correct_attempts / total_attempts) * 100 if total_attempts > 0 else 0.0

        return progress
