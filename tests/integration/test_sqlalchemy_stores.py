"""
Integration tests for the SQLAlchemy stores against in-memory SQLite.
"""

from dataclasses import replace
from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from nclex_study.adaptive import SimulationService
from nclex_study.core.errors import ConcurrentUpdateError, StoreUnavailableError
from nclex_study.db import (
    SqlAlchemyAttemptStore,
    SqlAlchemyQuestionStore,
    SqlAlchemyReviewStore,
    get_session_factory,
    init_db,
)
from nclex_study.db.database import create_db_engine
from nclex_study.scheduling import ReviewState, SpacedRepetitionService

pytestmark = pytest.mark.integration


@pytest.fixture
def session_factory():
    engine = create_db_engine("sqlite:///:memory:")
    init_db(engine)
    yield get_session_factory(engine)
    engine.dispose()


@pytest.fixture
def sql_review_store(session_factory):
    return SqlAlchemyReviewStore(session_factory)


@pytest.fixture
def sql_question_store(session_factory, sample_questions):
    store = SqlAlchemyQuestionStore(session_factory)
    for question in sample_questions:
        store.add(question)
    return store


@pytest.fixture
def sql_attempt_store(session_factory):
    return SqlAlchemyAttemptStore(session_factory)


class TestSqlAlchemyReviewStore:
    """Tests for SqlAlchemyReviewStore."""

    def test_process_answer_persists(self, sql_review_store, now):
        service = SpacedRepetitionService(sql_review_store)

        service.process_answer("u1", "q1", True, 5, now=now)
        outcome = service.process_answer("u1", "q1", True, 4, now=now + timedelta(days=6))

        state = sql_review_store.get("u1", "q1")
        assert state.version == 2
        assert state.repetitions == 2
        assert state.interval == outcome.interval == 16
        assert state.last_reviewed == now + timedelta(days=6)

    def test_stale_put_rejected(self, sql_review_store):
        first = sql_review_store.put(ReviewState("u1", "q1"))
        sql_review_store.put(replace(first, interval=6))

        with pytest.raises(ConcurrentUpdateError):
            sql_review_store.put(replace(first, interval=15))

        assert sql_review_store.get("u1", "q1").interval == 6

    def test_duplicate_insert_rejected(self, sql_review_store):
        sql_review_store.put(ReviewState("u1", "q1"))

        with pytest.raises(ConcurrentUpdateError):
            sql_review_store.put(ReviewState("u1", "q1"))

    def test_query_due_ordered(self, sql_review_store, now):
        sql_review_store.put(ReviewState("u1", "late", next_review=now - timedelta(hours=1)))
        sql_review_store.put(ReviewState("u1", "early", next_review=now - timedelta(days=2)))
        sql_review_store.put(ReviewState("u1", "future", next_review=now + timedelta(days=2)))
        sql_review_store.put(ReviewState("u1", "new"))
        sql_review_store.put(ReviewState("u2", "other", next_review=now - timedelta(days=5)))

        due = sql_review_store.query_due("u1", now)

        assert [s.question_id for s in due] == ["early", "late"]
        assert len(sql_review_store.list_for_user("u1")) == 4

    def test_learning_progress(self, sql_review_store, now):
        service = SpacedRepetitionService(sql_review_store)
        service.process_answer("u1", "q1", True, 5, now=now - timedelta(days=10))
        service.process_answer("u1", "q2", False, 1, now=now - timedelta(days=2))

        progress = service.get_learning_progress("u1", now=now)

        assert progress.total_cards == 2
        assert progress.learning == 2
        assert progress.needs_review == 2
        assert progress.retention == pytest.approx(100.0)

    def test_database_failure_is_store_unavailable(self, session_factory, monkeypatch):
        store = SqlAlchemyReviewStore(session_factory)

        def broken(*args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

        monkeypatch.setattr("sqlalchemy.orm.Session.scalars", broken)

        with pytest.raises(StoreUnavailableError) as exc_info:
            store.get("u1", "q1")

        assert exc_info.value.retryable is True


class TestSqlAlchemyQuestionStore:
    """Tests for SqlAlchemyQuestionStore."""

    def test_get_round_trip(self, sql_question_store):
        question = sql_question_store.get("cat-2-1")

        assert question.difficulty == 2
        assert question.options[0] == {"value": "a", "label": "Option A"}
        assert question.is_correct("a")

    def test_first_by_insertion_order(self, sql_question_store):
        assert sql_question_store.get_by_difficulty(3, question_type="cat").question_id == "cat-3-1"

    def test_excludes_ids(self, sql_question_store):
        question = sql_question_store.get_by_difficulty(3, frozenset({"cat-3-1", "cat-3-2"}), "cat")

        assert question.question_id == "cat-3-3"

    def test_none_when_exhausted(self, sql_question_store):
        excluded = frozenset({"cat-1-1", "cat-1-2", "cat-1-3"})

        assert sql_question_store.get_by_difficulty(1, excluded, "cat") is None

    def test_list_by_difficulty(self, sql_question_store):
        questions = sql_question_store.list_by_difficulty(2, "standard", limit=3)

        assert [q.question_id for q in questions] == ["std-2-1", "std-2-2", "std-2-3"]

    def test_add_updates_existing(self, sql_question_store, question_factory):
        sql_question_store.add(question_factory("cat-2-1", 3, answer="d"))

        question = sql_question_store.get("cat-2-1")
        assert question.difficulty == 3
        assert question.correct_answer == "d"
        assert sql_question_store.count() == 14


class TestSqlAlchemyAttemptStore:
    """Tests for SqlAlchemyAttemptStore through SimulationService."""

    def test_cat_session_persists(self, sql_attempt_store, sql_question_store, settings):
        service = SimulationService(sql_attempt_store, sql_question_store, settings=settings)
        attempt_id = service.start_attempt("u1", session_type="cat", total_questions=2).attempt.attempt_id

        first = service.advance_attempt(attempt_id, "cat-2-1", "a", time_spent=20)
        second = service.advance_attempt(attempt_id, first.next_question.question_id, "c")

        assert second.completed is True
        attempt = sql_attempt_store.get(attempt_id)
        assert [a.question_id for a in attempt.answers] == ["cat-2-1", "cat-3-1"]
        assert attempt.answers[0].time_spent == 20.0
        assert attempt.score == 50
        assert attempt.completed_at is not None
        assert attempt.version == 3

    def test_stale_save_rejected(self, sql_attempt_store, sql_question_store, settings):
        service = SimulationService(sql_attempt_store, sql_question_store, settings=settings)
        attempt_id = service.start_attempt("u1", session_type="cat").attempt.attempt_id
        stale = sql_attempt_store.get(attempt_id)

        service.advance_attempt(attempt_id, "cat-2-1", "a")

        with pytest.raises(ConcurrentUpdateError):
            sql_attempt_store.save(stale)

    def test_unknown_attempt(self, sql_attempt_store):
        assert sql_attempt_store.get("missing") is None


class TestInitDb:
    def test_unreachable_database_is_store_unavailable(self, tmp_path):
        engine = create_db_engine(f"sqlite:///{tmp_path / 'missing' / 'study.db'}")

        with pytest.raises(StoreUnavailableError):
            init_db(engine)

        engine.dispose()
