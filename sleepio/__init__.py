"""
Sleep.io predictive engine.

This package contains:
- Sleep record models and validation
- Feature extraction and the sleep quality network
- Confidence and feature impact analysis
- Habit insights and history summaries
- The prediction engine, record store and HTTP API
"""

__version__ = "0.1.0"
