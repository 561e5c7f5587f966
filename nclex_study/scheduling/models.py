"""
Spaced repetition data models.

ReviewState is the per-user, per-question scheduling record. The other
dataclasses are value objects returned by the scheduler and the service.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

DEFAULT_EASE_FACTOR = 2.5
DEFAULT_INTERVAL = 1
MINIMUM_EASE_FACTOR = 1.3


@dataclass
class ReviewState:
    """SM-2 state for a single (user, question) pair."""

    user_id: str
    question_id: str
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval: int = DEFAULT_INTERVAL  # Days until next review
    repetitions: int = 0  # Consecutive successful reviews
    next_review: datetime | None = None
    last_is_correct: bool | None = None
    last_reviewed: datetime | None = None
    version: int = 0  # 0 = never persisted

    @property
    def key(self) -> tuple[str, str]:
        return (self.user_id, self.question_id)

    @property
    def is_new(self) -> bool:
        return self.next_review is None

    def is_due(self, as_of: datetime) -> bool:
        """Check whether the item is due at ``as_of``. Never-reviewed items are not due."""
        return self.next_review is not None and self.next_review <= as_of

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for name in ("next_review", "last_reviewed"):
            if data[name] is not None:
                data[name] = data[name].isoformat()
        return data


@dataclass(frozen=True)
class ReviewUpdate:
    """Output of one SM-2 step."""

    next_interval: int
    new_ease_factor: float


@dataclass(frozen=True)
class ReviewOutcome:
    """What ``process_answer`` reports back to callers."""

    next_review: datetime
    interval: int
    ease_factor: float
    repetitions: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "next_review": self.next_review.isoformat(),
            "interval": self.interval,
            "ease_factor": self.ease_factor,
            "repetitions": self.repetitions,
        }


@dataclass
class LearningProgress:
    """
    Aggregate view over a user's review items.

    ``learning`` and ``needs_review`` are independent axes and may overlap.
    ``retention`` divides the number of items last answered correctly by the
    sum of repetitions across items; it approximates accuracy, it is not a
    running accuracy.
    """

    total_cards: int = 0
    mastered: int = 0
    learning: int = 0
    needs_review: int = 0
    retention: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_cards": self.total_cards,
            "mastered": self.mastered,
            "learning": self.learning,
            "needs_review": self.needs_review,
            "retention": self.retention,
        }
