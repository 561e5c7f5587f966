"""
Persistence: SQLAlchemy engine, tables and store implementations.
"""
from nclex_study.db.database import get_engine, get_session_factory, init_db, session_scope
from nclex_study.db.repositories import (
    SqlAlchemyAttemptStore,
    SqlAlchemyQuestionStore,
    SqlAlchemyReviewStore,
)

__all__ = [
    "get_engine",
    "get_session_factory",
    "init_db",
    "session_scope",
    "SqlAlchemyAttemptStore",
    "SqlAlchemyQuestionStore",
    "SqlAlchemyReviewStore",
]
