"""
Review state table.

One row per (user, question) pair holding SM-2 scheduling state. The
``version`` column is bumped on every write and guards compare-and-swap
updates from concurrent answer submissions.
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from nclex_study.scheduling.models import DEFAULT_EASE_FACTOR, DEFAULT_INTERVAL, ReviewState

from .base import Base


class ReviewStateRecord(Base):
    __tablename__ = "review_states"
    __table_args__ = (
        UniqueConstraint("user_id", "question_id", name="uq_review_states_user_question"),
        Index("ix_review_states_user_next_review", "user_id", "next_review"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    question_id: Mapped[str] = mapped_column(String(128), nullable=False)

    # SM-2 state
    ease_factor: Mapped[float] = mapped_column(Float, default=DEFAULT_EASE_FACTOR, nullable=False)
    interval: Mapped[int] = mapped_column(Integer, default=DEFAULT_INTERVAL, nullable=False)
    repetitions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    next_review: Mapped[datetime | None] = mapped_column(DateTime)

    last_is_correct: Mapped[bool | None] = mapped_column(Boolean)
    last_reviewed: Mapped[datetime | None] = mapped_column(DateTime)

    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<ReviewStateRecord(user={self.user_id}, question={self.question_id}, "
            f"interval={self.interval}, ef={self.ease_factor})>"
        )

    def to_state(self) -> ReviewState:
        return ReviewState(
            user_id=self.user_id,
            question_id=self.question_id,
            ease_factor=self.ease_factor,
            interval=self.interval,
            repetitions=self.repetitions,
            next_review=self.next_review,
            last_is_correct=self.last_is_correct,
            last_reviewed=self.last_reviewed,
            version=self.version,
        )
