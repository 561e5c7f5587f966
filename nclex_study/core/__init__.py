"""Shared core utilities: errors, clock, logging setup."""
from nclex_study.core.clock import as_naive_utc, utcnow
from nclex_study.core.errors import (
    ConcurrentUpdateError,
    ContentProviderUnavailableError,
    ExhaustedContentError,
    InvalidContentError,
    InvalidInputError,
    NclexStudyError,
    NotFoundError,
    StoreUnavailableError,
)

__all__ = [
    "utcnow",
    "as_naive_utc",
    "NclexStudyError",
    "InvalidInputError",
    "NotFoundError",
    "ExhaustedContentError",
    "InvalidContentError",
    "StoreUnavailableError",
    "ConcurrentUpdateError",
    "ContentProviderUnavailableError",
]
