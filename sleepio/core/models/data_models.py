# sleepio/core/models/data_models.py

import datetime
import uuid
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class EngineStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    TRAINING = "training"
    READY = "ready"
    ERROR = "error"


def parse_clock_hour(value):
    """Convert an "HH:MM" string to fractional hours, pass numbers through"""
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        parts = text.split(':')
        if len(parts) > 2:
            raise ValueError(f"Invalid time of day: {value!r}")
        try:
            hours = int(parts[0])
            minutes = int(parts[1]) if len(parts) == 2 else 0
        except ValueError:
            raise ValueError(f"Invalid time of day: {value!r}")
        if not 0 <= minutes < 60:
            raise ValueError(f"Invalid minutes in time of day: {value!r}")
        return hours + minutes / 60.0
    return value


# Sleep Data Models
class SleepRecord(BaseModel):
    """One logged night of sleep.

    Accepts the field names used by the assistant's SLEEP_LOG marker
    (``bedtime``, ``wake``, ``duration``) as well as the attribute names.
    Times of day may be given as fractional hours or "HH:MM" strings.
    """
    model_config = ConfigDict(frozen=True)

    record_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    date: datetime.date = Field(default_factory=datetime.date.today)
    bedtime_hour: Optional[float] = Field(
        None, ge=0.0, lt=24.0, allow_inf_nan=False,
        validation_alias=AliasChoices('bedtime_hour', 'bedtime'),
    )
    wake_hour: Optional[float] = Field(
        None, ge=0.0, lt=24.0, allow_inf_nan=False,
        validation_alias=AliasChoices('wake_hour', 'wake'),
    )
    # No upper bound: long durations are accepted and scaled as-is
    duration_hours: float = Field(
        ..., ge=0.0, allow_inf_nan=False,
        validation_alias=AliasChoices('duration_hours', 'duration'),
    )
    quality: int = Field(..., ge=0, le=100)
    caffeine: bool
    exercise: bool
    screens: bool

    @field_validator('bedtime_hour', 'wake_hour', mode='before')
    @classmethod
    def validate_clock_hour(cls, v):
        return parse_clock_hour(v)
