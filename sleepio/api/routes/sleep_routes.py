# sleepio/api/routes/sleep_routes.py
from functools import lru_cache
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from sleepio.config import ConfigManager
from sleepio.core.models.data_models import SleepRecord
from sleepio.core.models.output_models import SleepSummary
from sleepio.core.repositories.record_store import RecordStore
from sleepio.core.services.prediction_engine import PredictionEngine
from sleepio.core.services.sleep_service import SleepService
from sleepio.utils.errors import MalformedRecordError


class AssistantMessage(BaseModel):
    content: str


# Dependency
@lru_cache(maxsize=1)
def get_sleep_service():
    config = ConfigManager()
    return SleepService(
        RecordStore(),
        PredictionEngine(config),
        summary_window_days=config.get('summary.window_days', 7)
    )


router = APIRouter(
    prefix="/sleep",
    tags=["Sleep"],
    responses={404: {"description": "Not found"}}
)

# Routes that change the records are plain functions: FastAPI runs them in its
# threadpool, so synchronous training does not block the event loop.


@router.post("/records", response_model=Dict, status_code=201)
def log_sleep(entry: SleepRecord, service: SleepService = Depends(get_sleep_service)):
    """Log a sleep record and retrain the prediction model"""
    try:
        return service.log_sleep_entry(entry)
    except MalformedRecordError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        # Duplicate record id
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/messages", response_model=Dict)
def log_from_message(message: AssistantMessage, service: SleepService = Depends(get_sleep_service)):
    """Log the sleep record embedded in an assistant reply, if any"""
    try:
        return service.log_assistant_message(message.content)
    except MalformedRecordError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.delete("/records/{record_id}", response_model=Dict)
def delete_sleep(record_id: str, service: SleepService = Depends(get_sleep_service)):
    """Delete a sleep record and retrain the prediction model"""
    result = service.delete_sleep_entry(record_id)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Sleep record {record_id} not found")
    return result


@router.get("/records", response_model=List[SleepRecord])
async def get_history(service: SleepService = Depends(get_sleep_service)):
    """Sleep history, newest night first"""
    return service.get_history()


@router.get("/predictions", response_model=Dict)
async def get_predictions(service: SleepService = Depends(get_sleep_service)):
    """Latest prediction, or why there is none yet"""
    return service.get_predictions()


@router.get("/insights", response_model=List[str])
async def get_insights(service: SleepService = Depends(get_sleep_service)):
    """Habit insights over the full history"""
    return service.get_insights()


@router.get("/summary", response_model=SleepSummary)
async def get_summary(service: SleepService = Depends(get_sleep_service)):
    """Averages and week-over-week duration change"""
    return service.get_summary()
