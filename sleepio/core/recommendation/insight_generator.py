"""
Module for generating habit insights from a user's sleep history.

Insights come from plain aggregates over every logged night and never look at
the trained model.
"""

from sleepio.core.analysis.sleep_metrics import calculate_habit_metrics, records_to_dataframe

DEFAULT_THRESHOLDS = {
    'min_average_duration': 7.0,
    'max_caffeine_fraction': 0.5,
    'min_exercise_fraction': 0.3,
    'max_screens_fraction': 0.6,
}

POSITIVE_INSIGHT = "Your sleep habits look good! Keep up your consistent routine."


def generate_insights(records, thresholds=None):
    """
    Generate insights for the full record history.

    Args:
        records: sequence of SleepRecord
        thresholds: optional overrides for DEFAULT_THRESHOLDS

    Returns:
        list: insight strings, never empty
    """
    limits = dict(DEFAULT_THRESHOLDS)
    if thresholds:
        limits.update(thresholds)

    metrics = calculate_habit_metrics(records_to_dataframe(records))
    insights = []

    avg_duration = metrics['avg_sleep_duration']
    if avg_duration < limits['min_average_duration']:
        insights.append(
            f"You're averaging {avg_duration:.1f} hours of sleep. "
            f"Aim for 7-9 hours per night."
        )

    if metrics['caffeine_fraction'] > limits['max_caffeine_fraction']:
        insights.append(
            "You had caffeine on most days. Cutting back, especially after 2 PM, may improve your sleep."
        )

    if metrics['exercise_fraction'] < limits['min_exercise_fraction']:
        insights.append(
            f"You exercised on only {_percent(metrics['exercise_fraction'])}% of days. "
            f"Regular exercise can improve sleep quality."
        )

    if metrics['screens_fraction'] > limits['max_screens_fraction']:
        insights.append(
            f"You used screens before bed on {_percent(metrics['screens_fraction'])}% of nights. "
            f"Try putting devices away an hour before sleep."
        )

    if not insights:
        insights.append(POSITIVE_INSIGHT)

    return insights


def _percent(fraction):
    return int(round(fraction * 100))
