"""Backup questions served in degraded mode when generated content is unusable."""

from __future__ import annotations

import time

from nclex_study.content.schemas import GeneratedQuestion

_BACKUP_QUESTIONS = [
    {
        "question": "Which nursing intervention best demonstrates proper infection control practices?",
        "options": [
            {"value": "a", "label": "Performing hand hygiene before and after patient contact"},
            {"value": "b", "label": "Wearing the same gloves between patients"},
            {"value": "c", "label": "Reusing personal protective equipment"},
            {"value": "d", "label": "Using hand sanitizer without washing visibly soiled hands"},
        ],
        "correctAnswer": "a",
        "explanation": {
            "main": "Hand hygiene is the most effective way to prevent the spread of infections.",
            "concepts": [
                {"title": "Basic Prevention", "description": "Hand hygiene is fundamental to infection control"},
                {
                    "title": "Evidence-Based Practice",
                    "description": "CDC guidelines emphasize hand hygiene as primary prevention",
                },
            ],
        },
    },
    {
        "question": "What is the most important step in preventing medication errors?",
        "options": [
            {"value": "a", "label": "Checking the five rights once"},
            {"value": "b", "label": "Verifying the five rights multiple times"},
            {"value": "c", "label": "Relying on memory for regular medications"},
            {"value": "d", "label": "Having another nurse give all medications"},
        ],
        "correctAnswer": "b",
        "explanation": {
            "main": "Multiple verification of the five rights ensures medication safety.",
            "concepts": [
                {"title": "Safety Protocol", "description": "Multiple checks reduce error probability"},
                {"title": "Critical Thinking", "description": "Each verification step requires focused attention"},
            ],
        },
    },
]


def backup_questions(exclude_ids: set[str] | frozenset[str] = frozenset()) -> list[GeneratedQuestion]:
    """Fresh copies of the backup set with unique, timestamped ids."""
    stamp = int(time.time() * 1000)
    questions = [
        GeneratedQuestion.model_validate({"id": f"backup_{stamp}_{i}", **item})
        for i, item in enumerate(_BACKUP_QUESTIONS, start=1)
    ]
    return [q for q in questions if q.id not in exclude_ids]
