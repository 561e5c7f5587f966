from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import Engine, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from nclex_study.config import get_settings
from nclex_study.core.errors import StoreUnavailableError
from nclex_study.db.models.base import Base

_engine: Engine | None = None
_SessionLocal: sessionmaker[Session] | None = None


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine; in-memory SQLite shares one connection across threads."""
    if url.startswith("sqlite") and (":memory:" in url or url in ("sqlite://", "sqlite:///")):
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if url.startswith("sqlite"):
        return create_engine(url, echo=echo, connect_args={"check_same_thread": False})
    return create_engine(url, echo=echo, pool_pre_ping=True)


def get_engine() -> Engine:
    """Get the database engine (created lazily from settings)."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_db_engine(settings.database_url, echo=settings.log_level == "DEBUG")
    return _engine


def get_session_factory(engine: Engine | None = None) -> sessionmaker[Session]:
    """Session factory bound to ``engine``, or the shared one when omitted."""
    global _SessionLocal
    if engine is not None:
        return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            bind=get_engine(), autocommit=False, autoflush=False, expire_on_commit=False
        )
    return _SessionLocal


def init_db(engine: Engine | None = None) -> None:
    """Initialize database tables."""
    try:
        Base.metadata.create_all(bind=engine or get_engine())
    except SQLAlchemyError as e:
        logger.error(f"Database initialization failed: {e}")
        raise StoreUnavailableError("Database unavailable", error=str(e)) from e
    logger.info("Database tables initialized")


@contextmanager
def session_scope(factory: sessionmaker[Session] | None = None) -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    session = (factory or get_session_factory())()
    try:
        yield session
        session.commit()
    except Exception:  # Intentionally broad - rollback on any error before re-raising
        session.rollback()
        raise
    finally:
        session.close()
