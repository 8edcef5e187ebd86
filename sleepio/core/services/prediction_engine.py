# sleepio/core/services/prediction_engine.py
import logging
import threading

from sleepio.config import ConfigManager
from sleepio.core.analysis.impact_analysis import analyze_feature_impact
from sleepio.core.analysis.sleep_metrics import calculate_confidence_score
from sleepio.core.data_processing.feature_engineering import extract_features
from sleepio.core.models.data_models import EngineStatus
from sleepio.core.models.output_models import EngineState, InsufficientData, PredictionResult
from sleepio.core.models.sleep_quality import SleepQualityTrainer, predict_score
from sleepio.core.recommendation.insight_generator import generate_insights
from sleepio.utils.constants import default_values
from sleepio.utils.data_validation import validate_records
from sleepio.utils.errors import (
    CycleInProgressError,
    SleepEngineError,
    TrainingCancelled,
)

logger = logging.getLogger(__name__)


class PredictionEngine:
    """Runs the train -> predict -> analyze cycle whenever the records change.

    Status moves idle -> loading -> training -> ready, or to error from
    loading or training. A trigger that leaves a ready or errored engine with
    too few records also goes through loading before settling in idle.

    Only one cycle runs at a time and every cycle trains its own model, which
    is released when the cycle ends. Record changes that arrive during a
    cycle are held and trained on as soon as it finishes; when several
    arrive, only the newest snapshot is kept.
    """

    def __init__(self, config=None, trainer=None, seed=None):
        self.config = config or ConfigManager()
        self.trainer = trainer or SleepQualityTrainer(self.config)
        self.min_records = self.trainer.min_records
        self.seed = seed

        self.top_k = self.config.get('impact_analysis.top_k', default_values['top_factors'])
        self.confidence_floor = self.config.get('confidence.floor', 40)
        self.confidence_ceiling = self.config.get('confidence.ceiling', 95)
        self.insight_thresholds = self.config.section('insights')

        self._state = EngineState()
        self._state_lock = threading.Lock()
        self._cycle_lock = threading.Lock()
        self._cancel_event = None
        self._pending_lock = threading.Lock()
        self._pending_records = None
        self._status_listeners = []
        self._progress_listeners = []

    @property
    def status(self):
        return self._state.status

    @property
    def progress(self):
        return self._state.progress

    def state(self):
        """Copy of the current engine state"""
        with self._state_lock:
            return self._state.model_copy(deep=True)

    def add_status_listener(self, listener):
        """Register a callable receiving each new EngineStatus"""
        self._status_listeners.append(listener)

    def add_progress_listener(self, listener):
        """Register a callable receiving training progress (0-100)"""
        self._progress_listeners.append(listener)

    def on_records_changed(self, records):
        """Record store subscription hook, never rejects a change"""
        with self._pending_lock:
            self._pending_records = tuple(records)
        self._run_pending()
        return self.state()

    def cancel(self):
        """Ask the running cycle to stop. Returns False if nothing is running."""
        cancel_event = self._cancel_event
        if cancel_event is None:
            return False
        cancel_event.set()
        return True

    def run_cycle(self, records):
        """
        Run one prediction cycle over a snapshot of the records.

        Failures end the cycle in the error state instead of propagating.

        Args:
            records: sequence of SleepRecord (or mappings of record fields),
                oldest first; the last one is the night being predicted from

        Returns:
            EngineState: the state after the cycle

        Raises:
            CycleInProgressError: another cycle has not finished yet. Use
                on_records_changed to have the change trained on afterwards.
        """
        if not self._cycle_lock.acquire(blocking=False):
            raise CycleInProgressError("A prediction cycle is already running")

        try:
            self._run_locked(tuple(records))
        finally:
            self._cycle_lock.release()

        self._run_pending()
        return self.state()

    def _run_locked(self, records):
        self._cancel_event = threading.Event()
        try:
            self._run_cycle(records, self._cancel_event)
        finally:
            self._cancel_event = None

    def _take_pending(self):
        with self._pending_lock:
            records, self._pending_records = self._pending_records, None
        return records

    def _has_pending(self):
        with self._pending_lock:
            return self._pending_records is not None

    def _run_pending(self):
        # Checked again after every release: a change queued while the lock
        # was held is picked up by whichever thread held it
        while self._has_pending():
            if not self._cycle_lock.acquire(blocking=False):
                return
            try:
                records = self._take_pending()
                if records is not None:
                    self._run_locked(records)
            finally:
                self._cycle_lock.release()

    def _run_cycle(self, records, cancel_event):
        if len(records) < self.min_records:
            self._report_insufficient_data(records)
            return

        self._update(status=EngineStatus.LOADING, progress=0, result=None,
                     insufficient_data=None, error=None)

        model = None
        try:
            valid_records = validate_records(records)
            latest_features = extract_features(valid_records[-1])

            self._update(status=EngineStatus.TRAINING)
            model = self.trainer.train(
                valid_records,
                progress_callback=self._report_progress,
                cancel_event=cancel_event,
                seed=self.seed
            )

            result = PredictionResult(
                score=predict_score(model, latest_features),
                confidence_score=calculate_confidence_score(
                    [record.quality for record in valid_records],
                    floor=self.confidence_floor,
                    ceiling=self.confidence_ceiling
                ),
                factors=analyze_feature_impact(model, latest_features, top_k=self.top_k),
                record_count=len(valid_records)
            )
            insights = generate_insights(valid_records, self.insight_thresholds)

            self._update(status=EngineStatus.READY, progress=100, result=result, insights=insights)
            logger.info(f"Prediction ready: score {result.score}, confidence {result.confidence_score}")
        except TrainingCancelled as e:
            logger.info(str(e))
            self._update(status=EngineStatus.IDLE, progress=0, result=None)
        except SleepEngineError as e:
            logger.error(f"Prediction cycle failed: {e}")
            self._update(status=EngineStatus.ERROR, result=None, error=str(e))
        except Exception as e:
            logger.exception("Unexpected error during prediction cycle")
            self._update(status=EngineStatus.ERROR, result=None, error=f"Training failed: {e}")
        finally:
            if model is not None:
                model.close()

    def _report_insufficient_data(self, records):
        try:
            valid_records = validate_records(records)
        except SleepEngineError as e:
            self._update(status=EngineStatus.LOADING, progress=0, result=None,
                         insufficient_data=None, error=None)
            logger.error(f"Prediction cycle failed: {e}")
            self._update(status=EngineStatus.ERROR, result=None, error=str(e))
            return

        if self.status != EngineStatus.IDLE:
            self._update(status=EngineStatus.LOADING, progress=0, result=None, error=None)

        insights = generate_insights(valid_records, self.insight_thresholds) if valid_records else []
        logger.info(f"Not enough data for a prediction: {len(records)}/{self.min_records} records")
        self._update(
            status=EngineStatus.IDLE,
            progress=0,
            result=None,
            insufficient_data=InsufficientData(record_count=len(records), required=self.min_records),
            insights=insights,
            error=None
        )

    def _report_progress(self, progress):
        self._update(progress=progress)
        for listener in list(self._progress_listeners):
            listener(progress)

    def _update(self, **changes):
        with self._state_lock:
            previous_status = self._state.status
            self._state = self._state.model_copy(update=changes)
            new_status = self._state.status

        if new_status != previous_status:
            logger.debug(f"Engine status {previous_status.value} -> {new_status.value}")
            for listener in list(self._status_listeners):
                listener(new_status)
