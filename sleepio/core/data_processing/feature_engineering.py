"""
Feature extraction for the sleep quality model.

Every record maps to the same five numbers, in the order given by
FEATURE_NAMES:

    [duration / 12, shifted bedtime / 24, caffeine, exercise, screens]

Bedtime is shifted by twelve hours before scaling so that times on either
side of midnight sit next to each other (23:00 -> 11/24, 01:00 -> 13/24)
instead of at opposite ends of the range. Values are never clamped: a 30 hour
duration simply produces 2.5.
"""

import numpy as np

from sleepio.utils.constants import FEATURE_NAMES, default_values


def normalize_duration(duration_hours):
    """Scale sleep duration so a typical night falls between 0 and 2"""
    return float(duration_hours) / default_values['duration_scale_hours']


def normalize_bedtime(bedtime_hour):
    """Centre bedtime on midnight and scale to a fraction of a day"""
    if bedtime_hour is None:
        bedtime_hour = default_values['default_bedtime_hour']

    hour = float(bedtime_hour)
    if hour > 12:
        shifted = hour - 12
    else:
        shifted = hour + 12
    return shifted / default_values['hours_per_day']


def extract_features(record):
    """
    Build the feature vector for one sleep record.

    Args:
        record: SleepRecord

    Returns:
        np.ndarray: float32 vector of length len(FEATURE_NAMES)
    """
    return np.array([
        normalize_duration(record.duration_hours),
        normalize_bedtime(record.bedtime_hour),
        1.0 if record.caffeine else 0.0,
        1.0 if record.exercise else 0.0,
        1.0 if record.screens else 0.0,
    ], dtype=np.float32)


def build_feature_matrix(records):
    """Stack the feature vectors of all records into an (n, features) array"""
    if not records:
        return np.empty((0, len(FEATURE_NAMES)), dtype=np.float32)
    return np.stack([extract_features(record) for record in records])


def build_targets(records):
    """Quality labels scaled to the model's [0, 1] output range"""
    return np.array([record.quality / 100.0 for record in records], dtype=np.float32)
