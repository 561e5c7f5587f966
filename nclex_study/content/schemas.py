"""
Schema for generated question content.

LLM output is parsed into these models or rejected with InvalidContentError;
nothing downstream sees unvalidated JSON.
"""

from __future__ import annotations

import json
import re

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, model_validator

from nclex_study.adaptive.questions import Question
from nclex_study.core.errors import InvalidContentError

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?|\n?```")


class AnswerOption(BaseModel):
    value: str = Field(..., min_length=1)
    label: str = Field(..., min_length=1)


class ConceptNote(BaseModel):
    title: str
    description: str


class Explanation(BaseModel):
    main: str
    concepts: list[ConceptNote] = Field(default_factory=list)


class GeneratedQuestion(BaseModel):
    """One question as produced by the content provider."""

    id: str = Field(..., min_length=1)
    question: str = Field(..., min_length=1)
    options: list[AnswerOption] = Field(..., min_length=2)
    correctAnswer: str = Field(..., min_length=1)
    explanation: Explanation | None = None

    @model_validator(mode="after")
    def _answer_is_an_option(self) -> GeneratedQuestion:
        values = [o.value for o in self.options]
        if len(set(values)) != len(values):
            raise ValueError("option values must be unique")
        if self.correctAnswer not in values:
            raise ValueError(f"correctAnswer '{self.correctAnswer}' is not one of {values}")
        return self

    def to_question(
        self,
        difficulty: int,
        question_type: str = "standard",
        category: str | None = None,
    ) -> Question:
        return Question(
            question_id=self.id,
            text=self.question,
            correct_answer=self.correctAnswer,
            difficulty=difficulty,
            question_type=question_type,
            options=[o.model_dump() for o in self.options],
            explanation=self.explanation.main if self.explanation else None,
            category=category,
            ai_generated=True,
        )


_QUESTION_LIST = TypeAdapter(list[GeneratedQuestion])


def strip_code_fences(raw: str) -> str:
    """Remove markdown ```json fences that models like to wrap JSON in."""
    return _FENCE_RE.sub("", raw).strip()


def parse_generated_questions(raw: str | None) -> list[GeneratedQuestion]:
    """
    Parse provider output into validated questions.

    Accepts a JSON array, or an object with a ``questions`` array.

    Raises:
        InvalidContentError: Empty output, malformed JSON or schema violations
    """
    if not raw or not raw.strip():
        raise InvalidContentError("Content provider returned no content")

    try:
        data = json.loads(strip_code_fences(raw))
    except json.JSONDecodeError as e:
        raise InvalidContentError(f"Content is not valid JSON: {e.msg}", position=e.pos) from e

    if isinstance(data, dict) and isinstance(data.get("questions"), list):
        data = data["questions"]
    if not isinstance(data, list):
        raise InvalidContentError("Content must be a list of questions")
    if not data:
        raise InvalidContentError("Content contained no questions")

    try:
        return _QUESTION_LIST.validate_python(data)
    except ValidationError as e:
        raise InvalidContentError(
            f"Content failed validation ({e.error_count()} errors)", errors=e.errors()[:3]
        ) from e
