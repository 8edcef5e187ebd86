# sleepio/core/services/sleep_service.py
import logging

from sleepio.core.analysis.sleep_metrics import calculate_sleep_summary
from sleepio.core.models.output_models import SleepSummary
from sleepio.core.parsing.sleep_log_parser import parse_sleep_log, strip_sleep_log
from sleepio.core.recommendation.insight_generator import generate_insights
from sleepio.utils.constants import general_recommendations
from sleepio.utils.data_validation import validate_record

logger = logging.getLogger(__name__)


class SleepService:
    """Connects the record store to the prediction engine.

    Every append or delete on the store triggers a prediction cycle. A change
    made while a cycle is running is trained on right after it.
    """

    def __init__(self, store, engine, summary_window_days=7):
        self.store = store
        self.engine = engine
        self.summary_window_days = summary_window_days
        self.store.subscribe(self.engine.on_records_changed)

    def log_sleep_entry(self, entry):
        """Add a record and return it with the engine state after retraining"""
        record = validate_record(entry)
        self.store.append(record)
        return {
            "status": "success",
            "message": "Sleep entry logged successfully",
            "record": record,
            "engine": self.engine.state()
        }

    def log_assistant_message(self, content):
        """Log the SLEEP_LOG embedded in an assistant reply, if it has one"""
        record = parse_sleep_log(content)
        if record is not None:
            self.store.append(record)

        return {
            "display_content": strip_sleep_log(content),
            "record": record,
            "engine": self.engine.state()
        }

    def delete_sleep_entry(self, record_id):
        """Delete a record. Returns None when the id is unknown."""
        if not self.store.delete(record_id):
            return None
        return {
            "status": "success",
            "message": f"Sleep entry {record_id} deleted",
            "engine": self.engine.state()
        }

    def get_history(self):
        return self.store.history()

    def get_predictions(self):
        state = self.engine.state()
        return {
            "status": state.status,
            "progress": state.progress,
            "result": state.result,
            "insufficient_data": state.insufficient_data,
            "error": state.error,
            "recommendations": list(general_recommendations)
        }

    def get_insights(self):
        records = self.store.records()
        if not records:
            return []
        return generate_insights(records, self.engine.insight_thresholds)

    def get_summary(self):
        summary = calculate_sleep_summary(self.store.to_dataframe(), self.summary_window_days)
        return SleepSummary(**summary)
