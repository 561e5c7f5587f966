"""
Unit tests for due-item selection and learning progress.
"""

from datetime import timedelta

import pytest

from nclex_study.scheduling import DueItemSelector, ReviewState


def seed(store, **fields):
    state = ReviewState(user_id=fields.pop("user_id", "u1"), question_id=fields.pop("question_id"), **fields)
    return store.put(state)


class TestDueItems:
    """Tests for DueItemSelector.due_items."""

    def test_earliest_due_first(self, review_store, now):
        seed(review_store, question_id="q-late", next_review=now - timedelta(hours=1))
        seed(review_store, question_id="q-early", next_review=now - timedelta(days=3))
        seed(review_store, question_id="q-future", next_review=now + timedelta(days=1))

        due = DueItemSelector(review_store).due_items("u1", now)

        assert [s.question_id for s in due] == ["q-early", "q-late"]

    def test_due_boundary_inclusive(self, review_store, now):
        seed(review_store, question_id="q1", next_review=now)

        assert len(DueItemSelector(review_store).due_items("u1", now)) == 1

    def test_never_reviewed_not_due(self, review_store, now):
        seed(review_store, question_id="q1", next_review=None)

        assert DueItemSelector(review_store).due_items("u1", now) == []

    def test_other_users_excluded(self, review_store, now):
        seed(review_store, user_id="u2", question_id="q1", next_review=now - timedelta(days=1))

        assert DueItemSelector(review_store).due_items("u1", now) == []


class TestLearningProgress:
    """Tests for DueItemSelector.learning_progress."""

    def test_no_items_all_zero(self, review_store, now):
        progress = DueItemSelector(review_store).learning_progress("u1", now)

        assert progress.to_dict() == {
            "total_cards": 0,
            "mastered": 0,
            "learning": 0,
            "needs_review": 0,
            "retention": 0.0,
        }

    def test_mastered_requires_both_thresholds(self, review_store, now):
        seed(review_store, question_id="m", ease_factor=2.6, repetitions=4, interval=30)
        seed(review_store, question_id="ef-only", ease_factor=2.6, repetitions=3, interval=30)
        seed(review_store, question_id="reps-only", ease_factor=2.5, repetitions=5, interval=30)

        progress = DueItemSelector(review_store).learning_progress("u1", now)

        assert progress.total_cards == 3
        assert progress.mastered == 1
        assert progress.learning == 0

    def test_learning_and_needs_review_overlap(self, review_store, now):
        """A short-interval overdue item counts in both categories."""
        seed(review_store, question_id="q1", interval=1, next_review=now - timedelta(days=1))

        progress = DueItemSelector(review_store).learning_progress("u1", now)

        assert progress.learning == 1
        assert progress.needs_review == 1

    def test_mastered_item_can_be_learning(self, review_store, now):
        seed(review_store, question_id="q1", ease_factor=2.8, repetitions=4, interval=7)

        progress = DueItemSelector(review_store).learning_progress("u1", now)

        assert progress.mastered == 1
        assert progress.learning == 1

    def test_retention_over_repetitions(self, review_store, now):
        seed(review_store, question_id="q1", repetitions=3, last_is_correct=True)
        seed(review_store, question_id="q2", repetitions=1, last_is_correct=False)

        progress = DueItemSelector(review_store).learning_progress("u1", now)

        assert progress.retention == pytest.approx(25.0)

    def test_retention_zero_without_repetitions(self, review_store, now):
        seed(review_store, question_id="q1", repetitions=0, last_is_correct=True)

        assert DueItemSelector(review_store).learning_progress("u1", now).retention == 0.0
