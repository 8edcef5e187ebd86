"""
Analysis module for sleep data.

This module contains the confidence heuristic, history statistics and the
permutation-based impact analysis.
"""

from sleepio.core.analysis.impact_analysis import analyze_feature_impact
from sleepio.core.analysis.sleep_metrics import (
    calculate_confidence_score,
    calculate_habit_metrics,
    calculate_sleep_summary,
)

__all__ = [
    'analyze_feature_impact',
    'calculate_confidence_score',
    'calculate_habit_metrics',
    'calculate_sleep_summary',
]
