# sleepio/core/models/output_models.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from sleepio.core.models.data_models import EngineStatus


class ImpactFactor(BaseModel):
    """One habit and how much flipping it moves the predicted score"""
    name: str
    impact: int = Field(..., ge=0)


class PredictionResult(BaseModel):
    """Standardized sleep prediction output"""
    score: int = Field(..., ge=0, le=100)
    confidence_score: int = Field(..., ge=0, le=100)
    factors: List[ImpactFactor] = []
    record_count: int = Field(..., ge=0)
    generated_at: datetime = Field(default_factory=datetime.now)


class InsufficientData(BaseModel):
    """Reported instead of a prediction while the history is too short"""
    record_count: int = Field(..., ge=0)
    required: int
    message: str = "Not enough data yet"


class EngineState(BaseModel):
    """Snapshot of everything the prediction engine exposes"""
    status: EngineStatus = EngineStatus.IDLE
    progress: int = Field(0, ge=0, le=100)
    result: Optional[PredictionResult] = None
    insufficient_data: Optional[InsufficientData] = None
    insights: List[str] = []
    error: Optional[str] = None


class SleepSummary(BaseModel):
    """Aggregate figures for the history view"""
    record_count: int = 0
    average_duration: float = 0.0
    average_quality: int = 0
    duration_change_minutes: int = 0
