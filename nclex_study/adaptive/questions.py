"""
Question records and the Question Store contract.

The store is an external collaborator: the simulation service only asks it
for a question by id or for one question at an exact difficulty.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass
class Question:
    """An NCLEX-style multiple choice question."""

    question_id: str
    text: str
    correct_answer: str
    difficulty: int
    question_type: str = "standard"  # 'standard', 'cat'
    options: list[dict[str, str]] = field(default_factory=list)  # [{"value": "a", "label": "..."}]
    explanation: str | None = None
    category: str | None = None
    ai_generated: bool = False

    def is_correct(self, answer: object) -> bool:
        return str(answer).strip() == self.correct_answer.strip()

    def to_public_dict(self) -> dict[str, Any]:
        """Fields safe to send to a learner (no answer key)."""
        return {
            "id": self.question_id,
            "text": self.text,
            "type": self.question_type,
            "options": self.options,
            "category": self.category,
            "difficulty": self.difficulty,
        }


class QuestionStore(Protocol):
    """Read contract for the question bank."""

    def get(self, question_id: str) -> Question | None: ...

    def get_by_difficulty(
        self,
        difficulty: int,
        exclude_ids: set[str] | frozenset[str] = frozenset(),
        question_type: str | None = None,
    ) -> Question | None: ...

    def list_by_difficulty(
        self, difficulty: int, question_type: str | None = None, limit: int = 25
    ) -> list[Question]: ...

    def add(self, question: Question) -> Question: ...


class InMemoryQuestionStore:
    """Question bank held in a dict, preserving insertion order."""

    def __init__(self, questions: list[Question] | None = None):
        self._questions: dict[str, Question] = {}
        self._lock = threading.Lock()
        for question in questions or []:
            self.add(question)

    def get(self, question_id: str) -> Question | None:
        return self._questions.get(question_id)

    def get_by_difficulty(
        self,
        difficulty: int,
        exclude_ids: set[str] | frozenset[str] = frozenset(),
        question_type: str | None = None,
    ) -> Question | None:
        for question in self._questions.values():
            if question.difficulty != difficulty or question.question_id in exclude_ids:
                continue
            if question_type is not None and question.question_type != question_type:
                continue
            return question
        return None

    def list_by_difficulty(
        self, difficulty: int, question_type: str | None = None, limit: int = 25
    ) -> list[Question]:
        matches = [
            q
            for q in self._questions.values()
            if q.difficulty == difficulty and (question_type is None or q.question_type == question_type)
        ]
        return matches[:limit]

    def add(self, question: Question) -> Question:
        with self._lock:
            self._questions[question.question_id] = question
        return question
