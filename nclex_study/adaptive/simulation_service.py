"""
Simulation Service: exam simulations with computer-adaptive difficulty.

Flow per answer:
1. Load attempt and question (NotFound if either is missing)
2. Grade the answer and append it (never past total_questions)
3. CAT sessions: step the difficulty and fetch one question at exactly
   that difficulty, excluding questions already answered
4. Feed the answer into spaced repetition (when configured), then persist the
   attempt (compare-and-swap); a failed review leaves the attempt untouched
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from numbers import Real
from typing import Any

from loguru import logger

from nclex_study.adaptive.attempts import (
    AnswerRecord,
    AttemptStore,
    SessionType,
    SimulationAttempt,
)
from nclex_study.adaptive.difficulty import (
    AdaptiveDifficultyController,
    DifficultyBounds,
    mastery_from_score,
    parse_difficulty,
)
from nclex_study.adaptive.questions import Question, QuestionStore
from nclex_study.analytics.performance import NullPerformanceAnalyzer, PerformanceAnalyzer
from nclex_study.config import Settings, get_settings
from nclex_study.core.clock import as_naive_utc, utcnow
from nclex_study.core.errors import ExhaustedContentError, InvalidInputError, NotFoundError
from nclex_study.scheduling.service import SpacedRepetitionService, normalize_id


@dataclass
class StartedAttempt:
    attempt: SimulationAttempt
    questions: list[Question] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempt": self.attempt.to_dict(),
            "questions": [q.to_public_dict() for q in self.questions],
        }


@dataclass
class AdvanceResult:
    """Outcome of one simulation answer."""

    is_correct: bool
    next_question: Question | None
    completed: bool
    current_difficulty: int
    score: int
    mastery_estimate: float
    explanation: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_correct": self.is_correct,
            "explanation": self.explanation,
            "next_question": self.next_question.to_public_dict() if self.next_question else None,
            "completed": self.completed,
            "current_difficulty": self.current_difficulty,
            "score": self.score,
            "mastery_estimate": self.mastery_estimate,
        }


def running_score(attempt: SimulationAttempt) -> int:
    """Percentage of correct answers, rounded."""
    if not attempt.answers:
        return 0
    return round(attempt.correct_count / len(attempt.answers) * 100)


class SimulationService:
    """Starts and advances simulation attempts."""

    def __init__(
        self,
        attempts: AttemptStore,
        questions: QuestionStore,
        analyzer: PerformanceAnalyzer | None = None,
        review_service: SpacedRepetitionService | None = None,
        settings: Settings | None = None,
    ):
        self.attempts = attempts
        self.questions = questions
        self.analyzer = analyzer or NullPerformanceAnalyzer()
        self.review_service = review_service
        self.settings = settings or get_settings()
        self.bounds = DifficultyBounds(self.settings.difficulty_min, self.settings.difficulty_max)

    # =========================================================================
    # Start
    # =========================================================================

    def start_attempt(
        self,
        user_id: object,
        session_type: object = SessionType.STANDARD,
        difficulty: object = None,
        total_questions: int | None = None,
        now: datetime | None = None,
    ) -> StartedAttempt:
        """
        Create an attempt and select its opening questions.

        Standard sessions receive their whole question set up front; CAT
        sessions receive a single question at the starting difficulty.

        Raises:
            InvalidInputError: Bad session type, difficulty or question count
            ExhaustedContentError: No question at the starting difficulty
        """
        uid = normalize_id(user_id, "user_id")
        kind = SessionType.parse(session_type)
        level = parse_difficulty(
            self.settings.default_starting_difficulty if difficulty is None else difficulty,
            self.bounds,
        )
        declared = total_questions if total_questions is not None else (
            self.settings.cat_total_questions
            if kind is SessionType.CAT
            else self.settings.standard_total_questions
        )
        if isinstance(declared, bool) or not isinstance(declared, int) or declared < 1:
            raise InvalidInputError("total_questions must be a positive integer", total_questions=declared)

        if kind is SessionType.CAT:
            first = self.questions.get_by_difficulty(level, frozenset(), kind.value)
            opening = [first] if first is not None else []
        else:
            opening = self.questions.list_by_difficulty(level, kind.value, limit=declared)
            # A standard session is exactly as long as the question set it was given
            declared = len(opening) or declared

        if not opening:
            raise ExhaustedContentError(
                "No questions available at this difficulty",
                difficulty=level,
                session_type=kind.value,
            )

        attempt = SimulationAttempt(
            attempt_id=self.attempts.next_id(),
            user_id=uid,
            session_type=kind,
            total_questions=declared,
            starting_difficulty=level,
            current_difficulty=level,
            started_at=as_naive_utc(now) if now else utcnow(),
        )
        attempt = self.attempts.create(attempt)

        logger.info(
            f"Started {kind.value} simulation {attempt.attempt_id} for {uid}: "
            f"{declared} questions at difficulty {level}"
        )
        return StartedAttempt(attempt=attempt, questions=opening)

    # =========================================================================
    # Advance
    # =========================================================================

    def advance_attempt(
        self,
        attempt_id: object,
        question_id: object,
        answer: object,
        time_spent: object = 0,
        now: datetime | None = None,
    ) -> AdvanceResult:
        """
        Grade an answer, update difficulty and return the next question.

        Raises:
            NotFoundError: Unknown attempt or question
            InvalidInputError: Negative or non-numeric time_spent, or a question
                already answered in this attempt
            ExhaustedContentError: CAT session has no unanswered question at the
                new difficulty (the answer itself is already recorded)
        """
        aid = normalize_id(attempt_id, "attempt_id")
        qid = normalize_id(question_id, "question_id")
        if isinstance(time_spent, bool) or not isinstance(time_spent, Real) or time_spent < 0:
            raise InvalidInputError("time_spent must be a non-negative number", time_spent=time_spent)

        attempt = self.attempts.get(aid)
        if attempt is None:
            raise NotFoundError("Simulation attempt not found", attempt_id=aid)

        question = self.questions.get(qid)
        if question is None:
            raise NotFoundError("Question not found", question_id=qid)

        is_correct = question.is_correct(answer)

        if attempt.is_complete:
            logger.debug(f"Attempt {aid} already complete; answer to {qid} not recorded")
            return self._result(attempt, is_correct, None, question)

        if qid in attempt.answered_ids:
            raise InvalidInputError("Question already answered in this attempt", attempt_id=aid, question_id=qid)

        attempt.answers.append(
            AnswerRecord(
                question_id=qid,
                answer_given=str(answer),
                is_correct=is_correct,
                time_spent=float(time_spent),
            )
        )
        attempt.score = running_score(attempt)
        attempt.mastery_estimate = mastery_from_score(attempt.score)

        next_question: Question | None = None
        exhausted = False

        if attempt.is_complete:
            attempt.completed_at = as_naive_utc(now) if now else utcnow()
            analysis = self.analyzer.analyze(attempt.answers)
            attempt.strengths = list(analysis.strengths)
            attempt.weaknesses = list(analysis.weaknesses)
        elif attempt.is_adaptive:
            controller = AdaptiveDifficultyController(attempt.current_difficulty, self.bounds)
            attempt.current_difficulty = controller.record(is_correct)
            next_question = self.questions.get_by_difficulty(
                attempt.current_difficulty, attempt.answered_ids, SessionType.CAT.value
            )
            exhausted = next_question is None

        self._record_review(attempt.user_id, qid, is_correct, float(time_spent))
        saved = self.attempts.save(attempt)

        logger.info(
            f"Attempt {aid}: q={qid} correct={is_correct} "
            f"({len(saved.answers)}/{saved.total_questions}), difficulty={saved.current_difficulty}"
        )

        if exhausted:
            raise ExhaustedContentError(
                "No more questions at this difficulty",
                attempt_id=aid,
                difficulty=saved.current_difficulty,
                is_correct=is_correct,
            )

        return self._result(saved, is_correct, next_question, question)

    def get_attempt(self, attempt_id: object) -> SimulationAttempt:
        aid = normalize_id(attempt_id, "attempt_id")
        attempt = self.attempts.get(aid)
        if attempt is None:
            raise NotFoundError("Simulation attempt not found", attempt_id=aid)
        return attempt

    # =========================================================================
    # Helpers
    # =========================================================================

    def _record_review(self, user_id: str, question_id: str, is_correct: bool, time_spent: float) -> None:
        if self.review_service is None:
            return
        scheduler = self.review_service.scheduler
        quality = scheduler.grade_from_response(
            is_correct,
            response_ms=int(time_spent * 1000),
            expected_ms=self.settings.expected_response_ms,
        )
        self.review_service.process_answer(user_id, question_id, is_correct, quality)

    @staticmethod
    def _result(
        attempt: SimulationAttempt,
        is_correct: bool,
        next_question: Question | None,
        question: Question,
    ) -> AdvanceResult:
        return AdvanceResult(
            is_correct=is_correct,
            next_question=next_question,
            completed=attempt.is_complete,
            current_difficulty=attempt.current_difficulty,
            score=attempt.score,
            mastery_estimate=attempt.mastery_estimate,
            explanation=question.explanation,
        )
