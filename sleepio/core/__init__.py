"""
Core modules for the Sleep.io engine.

This package contains the core functionality for:
- Feature extraction
- Model training and prediction
- Impact analysis and insights
- Record storage and the prediction cycle
"""
