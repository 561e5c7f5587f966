"""
SM-2 Spaced Repetition Scheduler.

SM-2 Grade Scale:
0 - Complete blackout, wrong response
1 - Incorrect, but upon seeing answer remembered
2 - Incorrect, but answer seemed easy to recall
3 - Correct, but with significant difficulty
4 - Correct, with some hesitation
5 - Correct, with perfect recall
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from nclex_study.scheduling.models import (
    DEFAULT_EASE_FACTOR,
    DEFAULT_INTERVAL,
    MINIMUM_EASE_FACTOR,
    ReviewUpdate,
)

PASSING_QUALITY = 3


@dataclass
class SM2Config:
    """Configuration for SM-2 algorithm."""

    initial_ease_factor: float = DEFAULT_EASE_FACTOR
    minimum_ease_factor: float = MINIMUM_EASE_FACTOR
    bootstrap_interval: int = 6  # Days after the first successful review
    max_interval: int | None = None  # No cap unless configured

    @classmethod
    def from_settings(cls, settings) -> SM2Config:
        return cls(**settings.get_sm2_config())


class SM2Scheduler:
    """
    Implements the SM-2 spaced repetition algorithm.

    Each review item has:
    - Ease Factor (EF): How easy the item is (2.5 default, min 1.3)
    - Interval: Days until next review
    - Repetitions: Consecutive successful recalls (tracked by the caller)

    The scheduler is pure: it never reads the clock and never touches a store.
    """

    def __init__(self, config: SM2Config | None = None):
        self.config = config or SM2Config()

    def compute_next_review(
        self,
        prior_ease_factor: float | None,
        prior_interval: int | None,
        quality: float,
    ) -> ReviewUpdate:
        """
        Calculate the next interval and ease factor for a recall of ``quality``.

        Args:
            prior_ease_factor: Current EF (None for a never-reviewed item)
            prior_interval: Current interval in days (None for a never-reviewed item)
            quality: Recall quality in [0, 5], validated by the caller

        Returns:
            ReviewUpdate with the next interval and the new EF
        """
        ease_factor = (
            self.config.initial_ease_factor if prior_ease_factor is None else prior_ease_factor
        )
        interval = DEFAULT_INTERVAL if prior_interval is None else prior_interval

        # EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
        ef_delta = 0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02)
        new_ef = max(self.config.minimum_ease_factor, ease_factor + ef_delta)

        if quality < PASSING_QUALITY:
            # Failed recall - see it again tomorrow
            next_interval = DEFAULT_INTERVAL
        elif interval == DEFAULT_INTERVAL:
            next_interval = self.config.bootstrap_interval
        else:
            next_interval = round(interval * new_ef)

        if self.config.max_interval is not None:
            next_interval = min(next_interval, self.config.max_interval)

        return ReviewUpdate(next_interval=max(DEFAULT_INTERVAL, next_interval), new_ease_factor=new_ef)

    @staticmethod
    def next_review_at(now: datetime, interval_days: int) -> datetime:
        """Absolute timestamp of the next review."""
        return now + timedelta(days=interval_days)

    @staticmethod
    def is_successful(quality: float) -> bool:
        return quality >= PASSING_QUALITY

    def grade_from_response(
        self,
        is_correct: bool,
        response_ms: int,
        expected_ms: int = 10000,
    ) -> int:
        """
        Convert a response to an SM-2 grade.

        Args:
            is_correct: Whether the answer was correct
            response_ms: Time taken to respond
            expected_ms: Expected response time

        Returns:
            Grade 0-5
        """
        if not is_correct:
            if response_ms < expected_ms * 0.5:
                return 2  # Quick wrong = almost knew it
            elif response_ms < expected_ms:
                return 1
            else:
                return 0

        if response_ms < expected_ms * 0.5:
            return 5
        elif response_ms < expected_ms:
            return 4
        else:
            return 3
