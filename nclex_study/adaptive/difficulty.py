"""
Adaptive Difficulty Controller.

A saturating walk over a small discrete difficulty scale, driven by the
correctness of the most recent answer:

    correct   -> min(d + 1, max)
    incorrect -> max(d - 1, min)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from nclex_study.core.errors import InvalidInputError


class Difficulty(IntEnum):
    EASY = 1
    MEDIUM = 2
    HARD = 3


DIFFICULTY_NAMES = {d.name.lower(): d for d in Difficulty}


@dataclass(frozen=True)
class DifficultyBounds:
    """Inclusive bounds of the difficulty scale."""

    lower: int = Difficulty.EASY
    upper: int = Difficulty.HARD

    def __post_init__(self) -> None:
        if self.lower > self.upper:
            raise InvalidInputError(
                "Difficulty lower bound exceeds upper bound", lower=self.lower, upper=self.upper
            )

    def contains(self, value: int) -> bool:
        return self.lower <= value <= self.upper

    def clamp(self, value: int) -> int:
        return max(self.lower, min(value, self.upper))


def parse_difficulty(value: object, bounds: DifficultyBounds | None = None) -> int:
    """
    Parse a caller-supplied difficulty ("easy"/"medium"/"hard" or an integer).

    Raises:
        InvalidInputError: For unknown names or values outside ``bounds``
    """
    bounds = bounds or DifficultyBounds()

    if isinstance(value, str):
        name = value.strip().lower()
        if name in DIFFICULTY_NAMES:
            level = int(DIFFICULTY_NAMES[name])
        elif name.lstrip("-").isdigit():
            level = int(name)
        else:
            raise InvalidInputError(f"Unknown difficulty '{value}'", difficulty=value)
    elif isinstance(value, int) and not isinstance(value, bool):
        level = int(value)
    else:
        raise InvalidInputError("Difficulty must be a name or an integer", difficulty=value)

    if not bounds.contains(level):
        raise InvalidInputError(
            f"Difficulty must be between {bounds.lower} and {bounds.upper}", difficulty=value
        )
    return level


def step_difficulty(current: int, is_correct: bool, bounds: DifficultyBounds | None = None) -> int:
    """One transition of the walk. Never leaves ``bounds``."""
    bounds = bounds or DifficultyBounds()
    if is_correct:
        return min(current + 1, bounds.upper)
    return max(current - 1, bounds.lower)


def mastery_from_score(score: float) -> float:
    """Mastery estimate in [0, 1] from a 0-100 score."""
    return max(0.0, min(score / 100, 1.0))


class AdaptiveDifficultyController:
    """
    Difficulty state for one active simulation attempt.

    Once ``completed`` is set the controller ignores further answers.
    """

    def __init__(
        self,
        starting_difficulty: int = Difficulty.MEDIUM,
        bounds: DifficultyBounds | None = None,
    ):
        self.bounds = bounds or DifficultyBounds()
        if not self.bounds.contains(starting_difficulty):
            raise InvalidInputError(
                "Starting difficulty out of bounds", difficulty=starting_difficulty
            )
        self.current = int(starting_difficulty)
        self.completed = False

    def record(self, is_correct: bool) -> int:
        """Apply an answer and return the new difficulty."""
        if not self.completed:
            self.current = step_difficulty(self.current, is_correct, self.bounds)
        return self.current

    def complete(self) -> None:
        self.completed = True
