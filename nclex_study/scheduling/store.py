"""
Review-Item Store contract and in-memory implementation.

Every store offers compare-and-swap ``put`` (on ``ReviewState.version``) and an
atomic ``update`` that runs read-modify-write for one (user, question) key
while no other writer can touch that key.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from typing import Protocol

from loguru import logger

from nclex_study.core.errors import ConcurrentUpdateError
from nclex_study.scheduling.models import ReviewState

ReviewMutation = Callable[[ReviewState], ReviewState]


class ReviewItemStore(Protocol):
    """Persistence contract for per-user, per-question review state."""

    def get(self, user_id: str, question_id: str) -> ReviewState | None: ...

    def put(self, state: ReviewState) -> ReviewState: ...

    def query_due(self, user_id: str, as_of: datetime) -> list[ReviewState]: ...

    def list_for_user(self, user_id: str) -> list[ReviewState]: ...

    def update(self, user_id: str, question_id: str, mutate: ReviewMutation) -> ReviewState: ...


class InMemoryReviewStore:
    """
    Dict-backed review store.

    Writes to a key are serialized with a per-key lock; different keys proceed
    in parallel.
    """

    def __init__(self) -> None:
        self._items: dict[tuple[str, str], ReviewState] = {}
        self._locks: dict[tuple[str, str], threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, key: tuple[str, str]) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def get(self, user_id: str, question_id: str) -> ReviewState | None:
        state = self._items.get((user_id, question_id))
        return replace(state) if state is not None else None

    def put(self, state: ReviewState) -> ReviewState:
        with self._lock_for(state.key):
            return self._put_locked(state)

    def _put_locked(self, state: ReviewState) -> ReviewState:
        current = self._items.get(state.key)
        current_version = current.version if current is not None else 0
        if state.version != current_version:
            raise ConcurrentUpdateError(
                "Review state changed since it was read",
                user_id=state.user_id,
                question_id=state.question_id,
                expected_version=state.version,
                actual_version=current_version,
            )
        stored = replace(state, version=current_version + 1)
        self._items[state.key] = stored
        return replace(stored)

    def query_due(self, user_id: str, as_of: datetime) -> list[ReviewState]:
        due = [s for s in self.list_for_user(user_id) if s.is_due(as_of)]
        due.sort(key=lambda s: (s.next_review, s.question_id))
        return due

    def list_for_user(self, user_id: str) -> list[ReviewState]:
        return [replace(s) for (uid, _), s in self._items.items() if uid == user_id]

    def update(self, user_id: str, question_id: str, mutate: ReviewMutation) -> ReviewState:
        key = (user_id, question_id)
        with self._lock_for(key):
            current = self._items.get(key)
            state = replace(current) if current is not None else ReviewState(user_id, question_id)
            new_state = mutate(state)
            stored = self._put_locked(new_state)
        logger.debug(f"Stored review state {user_id}/{question_id} v{stored.version}")
        return stored
