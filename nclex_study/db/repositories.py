"""
SQLAlchemy implementations of the store contracts.

Writes are compare-and-swap on the ``version`` column: an UPDATE that
matches zero rows means another writer got there first. Driver and
connection failures surface as StoreUnavailableError.
"""
from __future__ import annotations

import uuid
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime

from loguru import logger
from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from nclex_study.adaptive.attempts import SimulationAttempt
from nclex_study.adaptive.questions import Question
from nclex_study.core.errors import ConcurrentUpdateError, StoreUnavailableError
from nclex_study.db.database import get_session_factory, session_scope
from nclex_study.db.models import QuestionRecord, ReviewStateRecord, SimulationAttemptRecord
from nclex_study.scheduling.models import ReviewState
from nclex_study.scheduling.store import ReviewMutation


class _SqlStore:
    def __init__(self, session_factory: sessionmaker[Session] | None = None):
        self.session_factory = session_factory or get_session_factory()

    @contextmanager
    def _scope(self) -> Generator[Session, None, None]:
        try:
            with session_scope(self.session_factory) as session:
                yield session
        except IntegrityError as e:
            raise ConcurrentUpdateError("Row was written concurrently", error=str(e.orig)) from e
        except SQLAlchemyError as e:
            logger.error(f"Database error in {type(self).__name__}: {e}")
            raise StoreUnavailableError("Database unavailable", error=str(e)) from e


# =============================================================================
# Review states
# =============================================================================


class SqlAlchemyReviewStore(_SqlStore):
    """Review-Item Store backed by the ``review_states`` table."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None, max_retries: int = 5):
        super().__init__(session_factory)
        self.max_retries = max_retries

    def get(self, user_id: str, question_id: str) -> ReviewState | None:
        with self._scope() as session:
            record = session.scalars(
                select(ReviewStateRecord).where(
                    ReviewStateRecord.user_id == user_id,
                    ReviewStateRecord.question_id == question_id,
                )
            ).first()
            return record.to_state() if record is not None else None

    def put(self, state: ReviewState) -> ReviewState:
        values = {
            "ease_factor": state.ease_factor,
            "interval": state.interval,
            "repetitions": state.repetitions,
            "next_review": state.next_review,
            "last_is_correct": state.last_is_correct,
            "last_reviewed": state.last_reviewed,
        }
        with self._scope() as session:
            if state.version == 0:
                session.execute(
                    insert(ReviewStateRecord).values(
                        user_id=state.user_id, question_id=state.question_id, version=1, **values
                    )
                )
            else:
                result = session.execute(
                    update(ReviewStateRecord)
                    .where(
                        ReviewStateRecord.user_id == state.user_id,
                        ReviewStateRecord.question_id == state.question_id,
                        ReviewStateRecord.version == state.version,
                    )
                    .values(version=state.version + 1, **values)
                )
                if result.rowcount != 1:
                    raise ConcurrentUpdateError(
                        "Review state changed since it was read",
                        user_id=state.user_id,
                        question_id=state.question_id,
                        expected_version=state.version,
                    )
        return replace(state, version=state.version + 1)

    def query_due(self, user_id: str, as_of: datetime) -> list[ReviewState]:
        with self._scope() as session:
            records = session.scalars(
                select(ReviewStateRecord)
                .where(
                    ReviewStateRecord.user_id == user_id,
                    ReviewStateRecord.next_review.is_not(None),
                    ReviewStateRecord.next_review <= as_of,
                )
                .order_by(ReviewStateRecord.next_review, ReviewStateRecord.question_id)
            ).all()
            return [r.to_state() for r in records]

    def list_for_user(self, user_id: str) -> list[ReviewState]:
        with self._scope() as session:
            records = session.scalars(
                select(ReviewStateRecord)
                .where(ReviewStateRecord.user_id == user_id)
                .order_by(ReviewStateRecord.question_id)
            ).all()
            return [r.to_state() for r in records]

    def update(self, user_id: str, question_id: str, mutate: ReviewMutation) -> ReviewState:
        """
        Read-modify-write one key, retrying when a concurrent writer wins.

        Raises:
            ConcurrentUpdateError: Still conflicting after ``max_retries`` attempts
        """
        for attempt in range(self.max_retries):
            current = self.get(user_id, question_id) or ReviewState(user_id, question_id)
            try:
                stored = self.put(mutate(current))
            except ConcurrentUpdateError:
                logger.debug(
                    f"CAS conflict on {user_id}/{question_id} "
                    f"(attempt {attempt + 1}/{self.max_retries})"
                )
                continue
            logger.debug(f"Stored review state {user_id}/{question_id} v{stored.version}")
            return stored

        raise ConcurrentUpdateError(
            "Review state kept changing during update",
            user_id=user_id,
            question_id=question_id,
            retries=self.max_retries,
        )


# =============================================================================
# Questions
# =============================================================================


class SqlAlchemyQuestionStore(_SqlStore):
    """Question Store backed by the ``questions`` table."""

    def get(self, question_id: str) -> Question | None:
        with self._scope() as session:
            record = session.scalars(
                select(QuestionRecord).where(QuestionRecord.question_id == question_id)
            ).first()
            return record.to_question() if record is not None else None

    def get_by_difficulty(
        self,
        difficulty: int,
        exclude_ids: set[str] | frozenset[str] = frozenset(),
        question_type: str | None = None,
    ) -> Question | None:
        stmt = select(QuestionRecord).where(QuestionRecord.difficulty == int(difficulty))
        if exclude_ids:
            stmt = stmt.where(QuestionRecord.question_id.not_in(list(exclude_ids)))
        if question_type is not None:
            stmt = stmt.where(QuestionRecord.question_type == question_type)
        with self._scope() as session:
            record = session.scalars(stmt.order_by(QuestionRecord.id).limit(1)).first()
            return record.to_question() if record is not None else None

    def list_by_difficulty(
        self, difficulty: int, question_type: str | None = None, limit: int = 25
    ) -> list[Question]:
        stmt = select(QuestionRecord).where(QuestionRecord.difficulty == int(difficulty))
        if question_type is not None:
            stmt = stmt.where(QuestionRecord.question_type == question_type)
        with self._scope() as session:
            records = session.scalars(stmt.order_by(QuestionRecord.id).limit(limit)).all()
            return [r.to_question() for r in records]

    def add(self, question: Question) -> Question:
        with self._scope() as session:
            record = session.scalars(
                select(QuestionRecord).where(QuestionRecord.question_id == question.question_id)
            ).first()
            if record is None:
                record = QuestionRecord(question_id=question.question_id)
                session.add(record)
            record.apply(question)
        return question

    def count(self) -> int:
        with self._scope() as session:
            return session.scalar(select(func.count()).select_from(QuestionRecord)) or 0


# =============================================================================
# Simulation attempts
# =============================================================================


class SqlAlchemyAttemptStore(_SqlStore):
    """Attempt Store backed by the ``simulation_attempts`` table."""

    def next_id(self) -> str:
        return uuid.uuid4().hex

    def create(self, attempt: SimulationAttempt) -> SimulationAttempt:
        with self._scope() as session:
            session.execute(
                insert(SimulationAttemptRecord).values(
                    attempt_id=attempt.attempt_id,
                    version=1,
                    **SimulationAttemptRecord.values_from(attempt),
                )
            )
        return self._with_version(attempt, 1)

    def get(self, attempt_id: str) -> SimulationAttempt | None:
        with self._scope() as session:
            record = session.get(SimulationAttemptRecord, attempt_id)
            return record.to_attempt() if record is not None else None

    def save(self, attempt: SimulationAttempt) -> SimulationAttempt:
        with self._scope() as session:
            result = session.execute(
                update(SimulationAttemptRecord)
                .where(
                    SimulationAttemptRecord.attempt_id == attempt.attempt_id,
                    SimulationAttemptRecord.version == attempt.version,
                )
                .values(version=attempt.version + 1, **SimulationAttemptRecord.values_from(attempt))
            )
            if result.rowcount != 1:
                raise ConcurrentUpdateError(
                    "Simulation attempt changed since it was read", attempt_id=attempt.attempt_id
                )
        return self._with_version(attempt, attempt.version + 1)

    @staticmethod
    def _with_version(attempt: SimulationAttempt, version: int) -> SimulationAttempt:
        return replace(
            attempt,
            version=version,
            answers=list(attempt.answers),
            strengths=list(attempt.strengths),
            weaknesses=list(attempt.weaknesses),
        )
