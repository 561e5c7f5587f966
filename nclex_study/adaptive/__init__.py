"""
Adaptive exam simulations.

Components:
- AdaptiveDifficultyController: Saturating difficulty walk (Easy/Medium/Hard)
- SimulationService: Starts attempts and advances them answer by answer
- QuestionStore / AttemptStore: Collaborator contracts with in-memory versions
"""
from nclex_study.adaptive.attempts import (
    AnswerRecord,
    AttemptStore,
    InMemoryAttemptStore,
    SessionType,
    SimulationAttempt,
)
from nclex_study.adaptive.difficulty import (
    AdaptiveDifficultyController,
    Difficulty,
    DifficultyBounds,
    parse_difficulty,
    step_difficulty,
)
from nclex_study.adaptive.questions import InMemoryQuestionStore, Question, QuestionStore
from nclex_study.adaptive.simulation_service import (
    AdvanceResult,
    SimulationService,
    StartedAttempt,
)

__all__ = [
    # Services
    "SimulationService",
    "AdaptiveDifficultyController",
    # Stores
    "AttemptStore",
    "InMemoryAttemptStore",
    "QuestionStore",
    "InMemoryQuestionStore",
    # Data models
    "SimulationAttempt",
    "AnswerRecord",
    "Question",
    "StartedAttempt",
    "AdvanceResult",
    # Difficulty
    "Difficulty",
    "DifficultyBounds",
    "SessionType",
    "parse_difficulty",
    "step_difficulty",
]
