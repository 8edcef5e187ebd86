"""
Constants used throughout the Sleep.io engine.
This includes feature ordering, default values and user-facing text.
"""

# Order of the model inputs. Training and inference must agree on it.
FEATURE_NAMES = [
    'normalized_duration',
    'normalized_bedtime',
    'caffeine',
    'exercise',
    'screens',
]

# Display names for the impact analysis, same order as FEATURE_NAMES
FACTOR_NAMES = ['Duration', 'Bedtime', 'Caffeine', 'Exercise', 'Screens']

# Default values for feature extraction and the prediction cycle
default_values = {
    'min_records': 5,           # Records needed before a model is trained
    'default_bedtime_hour': 23.0,  # 11 PM when a record has no bedtime
    'duration_scale_hours': 12.0,
    'hours_per_day': 24.0,
    'top_factors': 4,
}

# General advice shown alongside predictions
general_recommendations = [
    'Aim for 7-9 hours of sleep per night',
    'Avoid caffeine after 2 PM',
    'Exercise regularly, but not right before bed',
    'Reduce screen time 1 hour before sleep',
    'Keep a consistent sleep schedule',
]

# Marker the assistant appends to a reply that contains a night of sleep
SLEEP_LOG_PATTERN = r'SLEEP_LOG:(\{[^}]*\})'
