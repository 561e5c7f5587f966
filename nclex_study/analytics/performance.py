"""
Performance analysis extension point.

Simulations hand their answers to a PerformanceAnalyzer when they complete.
The default analyzer reports nothing; a real one (e.g. LLM-backed) can be
injected into SimulationService.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from nclex_study.adaptive.attempts import AnswerRecord


@dataclass
class PerformanceAnalysis:
    """Strengths, weaknesses and topic recommendations for a set of answers."""

    strengths: list[str] = field(default_factory=list)
    weaknesses: list[str] = field(default_factory=list)
    confidence: float = 0.0
    recommended_topics: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "confidence": self.confidence,
            "recommended_topics": list(self.recommended_topics),
        }


class PerformanceAnalyzer(Protocol):
    def analyze(self, answers: Sequence[AnswerRecord]) -> PerformanceAnalysis: ...


class NullPerformanceAnalyzer:
    """Default analyzer: empty collections and zero confidence."""

    def analyze(self, answers: Sequence[AnswerRecord]) -> PerformanceAnalysis:
        return PerformanceAnalysis()
