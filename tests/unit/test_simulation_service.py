"""
Unit tests for SimulationService (standard and CAT sessions).
"""

from datetime import datetime

import pytest

from nclex_study.adaptive import InMemoryQuestionStore, SessionType, SimulationService
from nclex_study.analytics import PerformanceAnalysis
from nclex_study.core.errors import (
    ConcurrentUpdateError,
    ExhaustedContentError,
    InvalidInputError,
    NotFoundError,
    StoreUnavailableError,
)
from nclex_study.scheduling import InMemoryReviewStore, SpacedRepetitionService


class RecordingAnalyzer:
    """Analyzer stub that records what it was given."""

    def __init__(self):
        self.calls = []

    def analyze(self, answers):
        self.calls.append(list(answers))
        return PerformanceAnalysis(strengths=["Safety"], weaknesses=["Pharmacology"], confidence=0.8)


class UnavailableReviewService(SpacedRepetitionService):
    """Review service whose store is down."""

    def process_answer(self, *args, **kwargs):
        raise StoreUnavailableError("review store down")


class TestStartAttempt:
    """Tests for SimulationService.start_attempt."""

    def test_cat_starts_with_one_question(self, simulation_service):
        started = simulation_service.start_attempt("u1", session_type="cat", total_questions=5)

        assert started.attempt.session_type is SessionType.CAT
        assert started.attempt.current_difficulty == 2
        assert started.attempt.total_questions == 5
        assert [q.question_id for q in started.questions] == ["cat-2-1"]

    def test_cat_defaults_to_75_questions(self, simulation_service):
        started = simulation_service.start_attempt("u1", session_type="cat")

        assert started.attempt.total_questions == 75

    def test_standard_gets_whole_set(self, simulation_service):
        started = simulation_service.start_attempt("u1")

        assert started.attempt.session_type is SessionType.STANDARD
        assert len(started.questions) == 5
        assert started.attempt.total_questions == 5

    def test_starting_difficulty_by_name(self, simulation_service):
        started = simulation_service.start_attempt("u1", session_type="cat", difficulty="hard")

        assert started.attempt.current_difficulty == 3
        assert started.questions[0].difficulty == 3

    def test_initial_state(self, simulation_service):
        attempt = simulation_service.start_attempt("u1", session_type="cat").attempt

        assert attempt.score == 0
        assert attempt.mastery_estimate == pytest.approx(0.5)
        assert attempt.completed_at is None
        assert attempt.answers == []

    def test_no_questions_raises_exhausted(self, attempt_store, settings):
        service = SimulationService(attempt_store, InMemoryQuestionStore(), settings=settings)

        with pytest.raises(ExhaustedContentError):
            service.start_attempt("u1", session_type="cat")

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"session_type": "oral"},
            {"difficulty": "extreme"},
            {"difficulty": 5},
            {"total_questions": -1},
            {"total_questions": 0},
        ],
    )
    def test_invalid_arguments(self, simulation_service, kwargs):
        with pytest.raises(InvalidInputError):
            simulation_service.start_attempt("u1", **kwargs)


class TestAdvanceAttempt:
    """Tests for SimulationService.advance_attempt."""

    def test_correct_answer_steps_up(self, simulation_service):
        started = simulation_service.start_attempt("u1", session_type="cat", total_questions=5)
        attempt_id = started.attempt.attempt_id

        result = simulation_service.advance_attempt(attempt_id, "cat-2-1", "a", time_spent=30)

        assert result.is_correct is True
        assert result.completed is False
        assert result.current_difficulty == 3
        assert result.next_question.question_id == "cat-3-1"
        assert result.next_question.difficulty == 3
        assert result.score == 100
        assert result.mastery_estimate == pytest.approx(1.0)

    def test_incorrect_answer_steps_down(self, simulation_service):
        attempt_id = simulation_service.start_attempt("u1", session_type="cat", total_questions=5).attempt.attempt_id

        result = simulation_service.advance_attempt(attempt_id, "cat-2-1", "c")

        assert result.is_correct is False
        assert result.current_difficulty == 1
        assert result.next_question.difficulty == 1
        assert result.explanation == "Explanation for cat-2-1"

    def test_difficulty_saturates_over_session(self, simulation_service):
        attempt_id = simulation_service.start_attempt("u1", session_type="cat", total_questions=5).attempt.attempt_id

        difficulties = []
        question_id = "cat-2-1"
        for _ in range(3):
            result = simulation_service.advance_attempt(attempt_id, question_id, "a")
            difficulties.append(result.current_difficulty)
            question_id = result.next_question.question_id

        assert difficulties == [3, 3, 3]

    def test_answered_questions_not_repeated(self, simulation_service):
        attempt_id = simulation_service.start_attempt("u1", session_type="cat", total_questions=6).attempt.attempt_id

        seen = {"cat-2-1"}
        question_id = "cat-2-1"
        for _ in range(3):
            result = simulation_service.advance_attempt(attempt_id, question_id, "a")
            question_id = result.next_question.question_id
            assert question_id not in seen
            seen.add(question_id)

    def test_completion_after_total_answers(self, simulation_service):
        """Five answers complete a five-question attempt; later calls get no next question."""
        attempt_id = simulation_service.start_attempt("u1", session_type="cat", total_questions=5).attempt.attempt_id

        question_id = "cat-2-1"
        answers = ["a", "c", "a", "c", "a"]
        for i, answer in enumerate(answers):
            result = simulation_service.advance_attempt(attempt_id, question_id, answer)
            if i < len(answers) - 1:
                question_id = result.next_question.question_id

        assert result.completed is True
        assert result.next_question is None
        assert result.score == 60
        assert result.mastery_estimate == pytest.approx(0.6)

        again = simulation_service.advance_attempt(attempt_id, "cat-1-3", "a")
        assert again.completed is True
        assert again.next_question is None

        attempt = simulation_service.get_attempt(attempt_id)
        assert len(attempt.answers) == 5
        assert attempt.completed_at is not None

    def test_completed_at_uses_now(self, simulation_service):
        attempt_id = simulation_service.start_attempt("u1", session_type="cat", total_questions=1).attempt.attempt_id
        finished = datetime(2024, 5, 1, 12, 0)

        simulation_service.advance_attempt(attempt_id, "cat-2-1", "a", now=finished)

        assert simulation_service.get_attempt(attempt_id).completed_at == finished

    def test_standard_session_keeps_difficulty(self, simulation_service):
        started = simulation_service.start_attempt("u1")
        attempt_id = started.attempt.attempt_id

        result = simulation_service.advance_attempt(attempt_id, "std-2-1", "b")

        assert result.is_correct is True
        assert result.current_difficulty == 2
        assert result.next_question is None
        assert result.completed is False

    def test_exhausted_content_records_answer(self, attempt_store, settings, question_factory):
        """When no unanswered question exists at the new level, the answer is still saved."""
        questions = InMemoryQuestionStore([question_factory("only", 2)])
        service = SimulationService(attempt_store, questions, settings=settings)
        attempt_id = service.start_attempt("u1", session_type="cat", total_questions=5).attempt.attempt_id

        with pytest.raises(ExhaustedContentError) as exc_info:
            service.advance_attempt(attempt_id, "only", "a")

        assert exc_info.value.details["difficulty"] == 3
        attempt = service.get_attempt(attempt_id)
        assert len(attempt.answers) == 1
        assert attempt.current_difficulty == 3

    def test_unknown_attempt(self, simulation_service):
        with pytest.raises(NotFoundError):
            simulation_service.advance_attempt("missing", "cat-2-1", "a")

    def test_unknown_question(self, simulation_service):
        attempt_id = simulation_service.start_attempt("u1", session_type="cat").attempt.attempt_id

        with pytest.raises(NotFoundError):
            simulation_service.advance_attempt(attempt_id, "nope", "a")

    @pytest.mark.parametrize("time_spent", [-1, "fast", True])
    def test_invalid_time_spent(self, simulation_service, time_spent):
        attempt_id = simulation_service.start_attempt("u1", session_type="cat").attempt.attempt_id

        with pytest.raises(InvalidInputError):
            simulation_service.advance_attempt(attempt_id, "cat-2-1", "a", time_spent=time_spent)

    def test_stale_save_conflicts(self, simulation_service, attempt_store):
        attempt_id = simulation_service.start_attempt("u1", session_type="cat").attempt.attempt_id
        stale = attempt_store.get(attempt_id)
        simulation_service.advance_attempt(attempt_id, "cat-2-1", "a")

        with pytest.raises(ConcurrentUpdateError):
            attempt_store.save(stale)


class TestCollaborators:
    """Tests for analyzer and spaced-repetition hooks."""

    def test_analyzer_runs_on_completion(self, attempt_store, question_store, settings):
        analyzer = RecordingAnalyzer()
        service = SimulationService(attempt_store, question_store, analyzer=analyzer, settings=settings)
        attempt_id = service.start_attempt("u1", session_type="cat", total_questions=2).attempt.attempt_id

        first = service.advance_attempt(attempt_id, "cat-2-1", "a")
        assert analyzer.calls == []
        service.advance_attempt(attempt_id, first.next_question.question_id, "a")

        assert len(analyzer.calls) == 1
        attempt = service.get_attempt(attempt_id)
        assert attempt.strengths == ["Safety"]
        assert attempt.weaknesses == ["Pharmacology"]

    def test_default_analyzer_reports_nothing(self, simulation_service):
        attempt_id = simulation_service.start_attempt("u1", session_type="cat", total_questions=1).attempt.attempt_id
        simulation_service.advance_attempt(attempt_id, "cat-2-1", "a")

        attempt = simulation_service.get_attempt(attempt_id)
        assert attempt.strengths == []
        assert attempt.weaknesses == []

    def test_answers_feed_spaced_repetition(self, attempt_store, question_store, settings):
        review_store = InMemoryReviewStore()
        service = SimulationService(
            attempt_store,
            question_store,
            review_service=SpacedRepetitionService(review_store),
            settings=settings,
        )
        attempt_id = service.start_attempt("u1", session_type="cat").attempt.attempt_id

        service.advance_attempt(attempt_id, "cat-2-1", "a", time_spent=10)

        state = review_store.get("u1", "cat-2-1")
        assert state is not None
        assert state.last_is_correct is True
        assert state.interval == 6

    def test_review_failure_leaves_attempt_unchanged(self, attempt_store, question_store, settings):
        """A failed review write must not commit the answer or the difficulty step."""
        service = SimulationService(
            attempt_store,
            question_store,
            review_service=UnavailableReviewService(InMemoryReviewStore()),
            settings=settings,
        )
        attempt_id = service.start_attempt("u1", session_type="cat", total_questions=5).attempt.attempt_id

        for _ in range(2):
            with pytest.raises(StoreUnavailableError):
                service.advance_attempt(attempt_id, "cat-2-1", "a", time_spent=3)

        attempt = service.get_attempt(attempt_id)
        assert attempt.answers == []
        assert attempt.current_difficulty == 2
        assert attempt.score == 0
        assert attempt.version == 1


class TestRepeatedAnswers:
    """An answered question cannot be answered again in the same attempt."""

    def test_duplicate_answer_rejected(self, simulation_service):
        attempt_id = simulation_service.start_attempt("u1", session_type="cat", total_questions=5).attempt.attempt_id
        simulation_service.advance_attempt(attempt_id, "cat-2-1", "a")

        with pytest.raises(InvalidInputError):
            simulation_service.advance_attempt(attempt_id, "cat-2-1", "a")

        attempt = simulation_service.get_attempt(attempt_id)
        assert [a.question_id for a in attempt.answers] == ["cat-2-1"]
        assert attempt.current_difficulty == 3
        assert attempt.score == 100

    def test_score_counts_correct_answers(self, simulation_service):
        attempt_id = simulation_service.start_attempt("u1", session_type="cat", total_questions=5).attempt.attempt_id

        first = simulation_service.advance_attempt(attempt_id, "cat-2-1", "a")
        result = simulation_service.advance_attempt(attempt_id, first.next_question.question_id, "c")

        attempt = simulation_service.get_attempt(attempt_id)
        assert attempt.correct_count == 1
        assert result.score == 50
