"""
Module for calculating statistics over a user's sleep history.
"""

import numpy as np
import pandas as pd

from sleepio.utils.errors import InsufficientDataError

RECORD_COLUMNS = [
    'record_id', 'date', 'bedtime_hour', 'wake_hour', 'duration_hours',
    'quality', 'caffeine', 'exercise', 'screens'
]


def records_to_dataframe(records):
    """Convert a sequence of SleepRecord objects to a DataFrame, one row per night"""
    if not records:
        return pd.DataFrame(columns=RECORD_COLUMNS)

    data = pd.DataFrame([record.model_dump() for record in records], columns=RECORD_COLUMNS)
    data['date'] = pd.to_datetime(data['date'])
    return data


def calculate_confidence_score(qualities, floor=40, ceiling=95):
    """
    Heuristic confidence for a prediction, from the spread of past quality values.

    This is not a statistical interval and says nothing about how well the
    model fits. A steady history (low standard deviation) is simply taken to
    be easier to predict: confidence = clamp(100 - std, floor, ceiling).

    Args:
        qualities: historical quality values (0-100)
        floor: lowest confidence ever reported
        ceiling: highest confidence ever reported

    Returns:
        int: confidence score in [floor, ceiling]
    """
    values = np.asarray(list(qualities), dtype=float)
    if len(values) == 0:
        raise InsufficientDataError(0, 1)

    # Population standard deviation
    std_dev = float(np.std(values))
    confidence = max(floor, min(ceiling, 100 - std_dev))
    return int(round(confidence))


def calculate_habit_metrics(sleep_data):
    """
    Calculate the habit aggregates used for insights.

    Args:
        sleep_data: DataFrame of sleep records (see records_to_dataframe)

    Returns:
        dict: average duration and the fraction of nights with each habit
    """
    if len(sleep_data) == 0:
        raise InsufficientDataError(0, 1)

    data = sleep_data.copy()
    data['duration_hours'] = pd.to_numeric(data['duration_hours'], errors='coerce')

    metrics = {}
    metrics['record_count'] = len(data)
    metrics['avg_sleep_duration'] = float(data['duration_hours'].mean())
    metrics['avg_quality'] = float(pd.to_numeric(data['quality']).mean())

    for habit in ['caffeine', 'exercise', 'screens']:
        metrics[f'{habit}_fraction'] = float(data[habit].astype(bool).mean())

    return metrics


def calculate_sleep_summary(sleep_data, window_days=7):
    """
    Summarize the history for display.

    Args:
        sleep_data: DataFrame of sleep records
        window_days: number of nights in each comparison window

    Returns:
        dict: record count, average duration and quality, and the change in
        average duration (minutes) between the latest window and the one before
    """
    if len(sleep_data) == 0:
        return {
            'record_count': 0,
            'average_duration': 0.0,
            'average_quality': 0,
            'duration_change_minutes': 0,
        }

    # Sort by date; stable so same-day records keep their logging order
    sorted_data = sleep_data.sort_values('date', kind='mergesort')
    durations = pd.to_numeric(sorted_data['duration_hours'], errors='coerce')

    recent = durations.tail(window_days)
    previous = durations.iloc[-2 * window_days:-window_days]

    recent_avg = recent.mean()
    previous_avg = previous.mean() if len(previous) > 0 else recent_avg

    return {
        'record_count': len(sorted_data),
        'average_duration': round(float(durations.mean()), 1),
        'average_quality': int(round(float(pd.to_numeric(sorted_data['quality']).mean()))),
        'duration_change_minutes': int(round((recent_avg - previous_avg) * 60)),
    }
