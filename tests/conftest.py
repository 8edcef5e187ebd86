"""Shared test fixtures."""
from datetime import date, timedelta

import pytest

from sleepio.config import ConfigManager
from sleepio.core.models.data_models import SleepRecord


def make_record(day=0, duration=8.0, quality=85, bedtime="23:00", wake="07:00",
                caffeine=False, exercise=True, screens=False):
    return SleepRecord(
        date=date(2026, 3, 1) + timedelta(days=day),
        bedtime=bedtime,
        wake=wake,
        duration=duration,
        quality=quality,
        caffeine=caffeine,
        exercise=exercise,
        screens=screens,
    )


@pytest.fixture(name="record_factory")
def record_factory_fixture():
    return make_record


@pytest.fixture(name="healthy_records")
def healthy_records_fixture():
    """Eight good nights with a little variation in quality."""
    qualities = [82, 85, 88, 84, 86, 90, 83, 87]
    return [make_record(day=i, quality=q) for i, q in enumerate(qualities)]


@pytest.fixture(name="fast_config")
def fast_config_fixture():
    """Default config with a short, seeded training run."""
    return ConfigManager(overrides={
        "sleep_quality_model": {
            "seed": 7,
            "hyperparameters": {"epochs": 10},
        }
    })
