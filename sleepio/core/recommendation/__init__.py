"""
Recommendation module for habit insights.
"""

from sleepio.core.recommendation.insight_generator import generate_insights

__all__ = ['generate_insights']
