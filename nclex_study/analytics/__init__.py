"""Reporting extension points."""
from nclex_study.analytics.performance import (
    NullPerformanceAnalyzer,
    PerformanceAnalysis,
    PerformanceAnalyzer,
)

__all__ = ["PerformanceAnalysis", "PerformanceAnalyzer", "NullPerformanceAnalyzer"]
