"""
Question bank and simulation attempt tables.

Options, answers, strengths and weaknesses are stored as JSON so the same
schema works on SQLite and PostgreSQL.
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from nclex_study.adaptive.attempts import AnswerRecord, SessionType, SimulationAttempt
from nclex_study.adaptive.questions import Question

from .base import Base


class QuestionRecord(Base):
    __tablename__ = "questions"
    __table_args__ = (Index("ix_questions_difficulty_type", "difficulty", "question_type"),)

    # Surrogate key keeps insertion order for "first question at difficulty" lookups
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    question_id: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)

    text: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    correct_answer: Mapped[str] = mapped_column(String(64), nullable=False)
    explanation: Mapped[str | None] = mapped_column(Text)

    difficulty: Mapped[int] = mapped_column(Integer, nullable=False)
    question_type: Mapped[str] = mapped_column(String(32), default="standard", nullable=False)
    category: Mapped[str | None] = mapped_column(String(128))
    ai_generated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<QuestionRecord(id={self.question_id}, difficulty={self.difficulty})>"

    def to_question(self) -> Question:
        return Question(
            question_id=self.question_id,
            text=self.text,
            correct_answer=self.correct_answer,
            difficulty=self.difficulty,
            question_type=self.question_type,
            options=list(self.options or []),
            explanation=self.explanation,
            category=self.category,
            ai_generated=self.ai_generated,
        )

    def apply(self, question: Question) -> None:
        self.text = question.text
        self.options = list(question.options)
        self.correct_answer = question.correct_answer
        self.explanation = question.explanation
        self.difficulty = int(question.difficulty)
        self.question_type = question.question_type
        self.category = question.category
        self.ai_generated = question.ai_generated


class SimulationAttemptRecord(Base):
    __tablename__ = "simulation_attempts"
    __table_args__ = (Index("ix_simulation_attempts_user", "user_id"),)

    attempt_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    session_type: Mapped[str] = mapped_column(String(16), nullable=False)

    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    starting_difficulty: Mapped[int] = mapped_column(Integer, nullable=False)
    current_difficulty: Mapped[int] = mapped_column(Integer, nullable=False)

    answers: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    mastery_estimate: Mapped[float] = mapped_column(Float, default=0.5, nullable=False)
    strengths: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    weaknesses: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    started_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime)

    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<SimulationAttemptRecord(id={self.attempt_id}, type={self.session_type}, "
            f"answered={len(self.answers or [])}/{self.total_questions})>"
        )

    def to_attempt(self) -> SimulationAttempt:
        return SimulationAttempt(
            attempt_id=self.attempt_id,
            user_id=self.user_id,
            session_type=SessionType(self.session_type),
            total_questions=self.total_questions,
            starting_difficulty=self.starting_difficulty,
            current_difficulty=self.current_difficulty,
            started_at=self.started_at,
            answers=[AnswerRecord.from_dict(a) for a in self.answers or []],
            score=self.score,
            mastery_estimate=self.mastery_estimate,
            completed_at=self.completed_at,
            strengths=list(self.strengths or []),
            weaknesses=list(self.weaknesses or []),
            version=self.version,
        )

    @staticmethod
    def values_from(attempt: SimulationAttempt) -> dict:
        """Column values for an attempt, excluding key and version."""
        return {
            "user_id": attempt.user_id,
            "session_type": attempt.session_type.value,
            "total_questions": attempt.total_questions,
            "starting_difficulty": attempt.starting_difficulty,
            "current_difficulty": attempt.current_difficulty,
            "answers": [a.to_dict() for a in attempt.answers],
            "score": attempt.score,
            "mastery_estimate": attempt.mastery_estimate,
            "strengths": list(attempt.strengths),
            "weaknesses": list(attempt.weaknesses),
            "started_at": attempt.started_at,
            "completed_at": attempt.completed_at,
        }
