"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from nclex_study.adaptive import (  # noqa: E402
    InMemoryAttemptStore,
    InMemoryQuestionStore,
    Question,
    SimulationService,
)
from nclex_study.config import Settings  # noqa: E402
from nclex_study.scheduling import InMemoryReviewStore, SpacedRepetitionService  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (SQLite in-memory database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def settings():
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None, database_url="sqlite:///:memory:")


@pytest.fixture
def now():
    """A fixed naive-UTC review time."""
    return datetime(2024, 3, 1, 9, 0, 0)


@pytest.fixture
def review_store():
    return InMemoryReviewStore()


@pytest.fixture
def review_service(review_store):
    return SpacedRepetitionService(review_store)


def make_question(question_id, difficulty, question_type="cat", answer="a", category=None):
    """Build a four-option question."""
    return Question(
        question_id=question_id,
        text=f"Question {question_id}?",
        correct_answer=answer,
        difficulty=difficulty,
        question_type=question_type,
        options=[{"value": v, "label": f"Option {v.upper()}"} for v in "abcd"],
        explanation=f"Explanation for {question_id}",
        category=category,
    )


@pytest.fixture
def sample_questions():
    """Three CAT questions per difficulty plus five standard medium questions."""
    questions = [
        make_question(f"cat-{level}-{i}", level, "cat", category="Safety")
        for level in (1, 2, 3)
        for i in range(1, 4)
    ]
    questions += [make_question(f"std-2-{i}", 2, "standard", answer="b") for i in range(1, 6)]
    return questions


@pytest.fixture
def question_store(sample_questions):
    return InMemoryQuestionStore(sample_questions)


@pytest.fixture
def attempt_store():
    return InMemoryAttemptStore()


@pytest.fixture
def simulation_service(attempt_store, question_store, settings):
    return SimulationService(attempt_store, question_store, settings=settings)


@pytest.fixture
def sample_generated_question():
    """Provide a sample generated question payload."""
    return {
        "id": "gen-001",
        "question": "A client receiving furosemide reports muscle cramps. Which lab value should the nurse check first?",
        "options": [
            {"value": "a", "label": "Potassium"},
            {"value": "b", "label": "Calcium"},
            {"value": "c", "label": "Glucose"},
            {"value": "d", "label": "Hemoglobin"},
        ],
        "correctAnswer": "a",
        "explanation": {
            "main": "Loop diuretics cause potassium loss; cramps suggest hypokalemia.",
            "concepts": [{"title": "Electrolytes", "description": "Furosemide wastes potassium"}],
        },
    }


@pytest.fixture
def question_factory():
    """Factory for ad hoc questions."""
    return make_question
