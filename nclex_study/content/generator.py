"""
Question generation with degraded-mode fallback.

Either every returned question passed schema validation, or the batch is
the backup set and is flagged ``degraded`` with a reason.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from nclex_study.adaptive.difficulty import Difficulty
from nclex_study.adaptive.questions import Question, QuestionStore
from nclex_study.content.fallback import backup_questions
from nclex_study.content.provider import ContentProvider
from nclex_study.content.schemas import GeneratedQuestion, parse_generated_questions
from nclex_study.core.errors import (
    ContentProviderUnavailableError,
    InvalidContentError,
    InvalidInputError,
)


@dataclass
class ContentBatch:
    questions: list[GeneratedQuestion] = field(default_factory=list)
    degraded: bool = False
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "questions": [q.model_dump() for q in self.questions],
            "degraded": self.degraded,
            "reason": self.reason,
        }


class QuestionGenerator:
    """Generates validated questions and optionally stores them."""

    def __init__(self, provider: ContentProvider, allow_fallback: bool = True):
        self.provider = provider
        self.allow_fallback = allow_fallback

    def generate(
        self,
        topic: str,
        count: int = 5,
        exclude_ids: Iterable[str] = (),
        allow_fallback: bool | None = None,
    ) -> ContentBatch:
        """
        Generate ``count`` questions on ``topic``.

        Raises:
            InvalidInputError: Empty topic or non-positive count
            InvalidContentError / ContentProviderUnavailableError: When
                fallback is disabled
        """
        if not isinstance(topic, str) or not topic.strip():
            raise InvalidInputError("topic must be a non-empty string", topic=topic)
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise InvalidInputError("count must be a positive integer", count=count)

        excluded = frozenset(exclude_ids)
        fallback = self.allow_fallback if allow_fallback is None else allow_fallback

        try:
            raw = self.provider.generate_questions(topic.strip(), count, excluded)
            questions = [q for q in parse_generated_questions(raw) if q.id not in excluded]
            if not questions:
                raise InvalidContentError("All generated questions were excluded")
        except (InvalidContentError, ContentProviderUnavailableError) as e:
            if not fallback:
                raise
            logger.warning(f"Question generation for '{topic}' degraded: {e.message}")
            return ContentBatch(questions=backup_questions(excluded), degraded=True, reason=e.code)

        logger.info(f"Generated {len(questions[:count])} questions for '{topic}'")
        return ContentBatch(questions=questions[:count])

    @staticmethod
    def save(
        batch: ContentBatch,
        store: QuestionStore,
        difficulty: int = Difficulty.MEDIUM,
        question_type: str = "standard",
        category: str | None = None,
    ) -> list[Question]:
        """Convert a batch into Questions at ``difficulty`` and add them to ``store``."""
        saved = []
        for generated in batch.questions:
            question = generated.to_question(int(difficulty), question_type, category)
            store.add(question)
            saved.append(question)
        logger.debug(f"Saved {len(saved)} {question_type} questions at difficulty {int(difficulty)}")
        return saved
