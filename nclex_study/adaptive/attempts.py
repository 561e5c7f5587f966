"""
Simulation attempts.

A SimulationAttempt is one exam-simulation session. Its answer list is
append-only and never grows past ``total_questions``.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

from nclex_study.core.errors import ConcurrentUpdateError, InvalidInputError


class SessionType(str, Enum):
    STANDARD = "standard"
    CAT = "cat"  # computer-adaptive

    @classmethod
    def parse(cls, value: object) -> SessionType:
        if isinstance(value, SessionType):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidInputError(f"Unknown session type '{value}'", session_type=value) from None


@dataclass(frozen=True)
class AnswerRecord:
    question_id: str
    answer_given: str
    is_correct: bool
    time_spent: float  # seconds

    def to_dict(self) -> dict[str, Any]:
        return {
            "question_id": self.question_id,
            "answer_given": self.answer_given,
            "is_correct": self.is_correct,
            "time_spent": self.time_spent,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnswerRecord:
        return cls(
            question_id=str(data["question_id"]),
            answer_given=str(data.get("answer_given", "")),
            is_correct=bool(data.get("is_correct", False)),
            time_spent=float(data.get("time_spent", 0)),
        )


@dataclass
class SimulationAttempt:
    """State of one simulation session."""

    attempt_id: str
    user_id: str
    session_type: SessionType
    total_questions: int
    starting_difficulty: int
    current_difficulty: int
    started_at: datetime
    answers: list[AnswerRecord] = field(default_factory=list)
    score: int = 0  # running percent correct
    mastery_estimate: float = 0.5
    completed_at: datetime | None = None
    strengths: list[str] = field(default_factory=list)
    weaknesses: list[str] = field(default_factory=list)
    version: int = 0

    @property
    def is_adaptive(self) -> bool:
        return self.session_type is SessionType.CAT

    @property
    def is_complete(self) -> bool:
        return len(self.answers) >= self.total_questions

    @property
    def answered_ids(self) -> frozenset[str]:
        return frozenset(a.question_id for a in self.answers)

    @property
    def correct_count(self) -> int:
        return sum(1 for a in self.answers if a.is_correct)

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempt_id": self.attempt_id,
            "user_id": self.user_id,
            "session_type": self.session_type.value,
            "total_questions": self.total_questions,
            "answered": len(self.answers),
            "current_difficulty": self.current_difficulty,
            "score": self.score,
            "mastery_estimate": self.mastery_estimate,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
        }


class AttemptStore(Protocol):
    """Persistence contract for simulation attempts."""

    def create(self, attempt: SimulationAttempt) -> SimulationAttempt: ...

    def get(self, attempt_id: str) -> SimulationAttempt | None: ...

    def save(self, attempt: SimulationAttempt) -> SimulationAttempt: ...

    def next_id(self) -> str: ...


class InMemoryAttemptStore:
    """Attempt store held in a dict; ``save`` is compare-and-swap on ``version``."""

    def __init__(self) -> None:
        self._attempts: dict[str, SimulationAttempt] = {}
        self._lock = threading.Lock()
        self._ids = itertools.count(1)

    def next_id(self) -> str:
        return str(next(self._ids))

    def create(self, attempt: SimulationAttempt) -> SimulationAttempt:
        with self._lock:
            stored = replace(attempt, answers=list(attempt.answers), version=1)
            self._attempts[attempt.attempt_id] = stored
        return self._copy(stored)

    def get(self, attempt_id: str) -> SimulationAttempt | None:
        attempt = self._attempts.get(attempt_id)
        return self._copy(attempt) if attempt is not None else None

    def save(self, attempt: SimulationAttempt) -> SimulationAttempt:
        with self._lock:
            current = self._attempts.get(attempt.attempt_id)
            if current is None or current.version != attempt.version:
                raise ConcurrentUpdateError(
                    "Simulation attempt changed since it was read", attempt_id=attempt.attempt_id
                )
            stored = replace(attempt, answers=list(attempt.answers), version=attempt.version + 1)
            self._attempts[attempt.attempt_id] = stored
        return self._copy(stored)

    @staticmethod
    def _copy(attempt: SimulationAttempt) -> SimulationAttempt:
        return replace(
            attempt,
            answers=list(attempt.answers),
            strengths=list(attempt.strengths),
            weaknesses=list(attempt.weaknesses),
        )
