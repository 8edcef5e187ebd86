# sleepio/core/repositories/record_store.py
import logging
import threading

from sleepio.core.analysis.sleep_metrics import records_to_dataframe

logger = logging.getLogger(__name__)


class RecordStore:
    """In-memory, append/delete only collection of sleep records.

    Records keep their logging order. Listeners registered with ``subscribe``
    are called with the new snapshot after every append or delete.
    """

    def __init__(self, records=None):
        self._records = list(records or [])
        self._listeners = []
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._records)

    def records(self):
        """Snapshot of all records, oldest logged first"""
        with self._lock:
            return tuple(self._records)

    def history(self):
        """Records ordered newest date first"""
        return sorted(self.records(), key=lambda record: record.date, reverse=True)

    def get(self, record_id):
        for record in self.records():
            if record.record_id == record_id:
                return record
        return None

    def to_dataframe(self):
        return records_to_dataframe(self.records())

    def subscribe(self, listener):
        """Register a callable taking the record snapshot after each change"""
        self._listeners.append(listener)

    def append(self, record):
        """Add a record and notify listeners"""
        with self._lock:
            if any(existing.record_id == record.record_id for existing in self._records):
                raise ValueError(f"Record {record.record_id} already exists")
            self._records.append(record)
            snapshot = tuple(self._records)

        logger.info(f"Logged sleep record {record.record_id} for {record.date}, {len(snapshot)} records total")
        self._notify(snapshot)
        return record

    def delete(self, record_id):
        """Remove a record by id. Returns False when no record matched."""
        with self._lock:
            remaining = [record for record in self._records if record.record_id != record_id]
            if len(remaining) == len(self._records):
                return False
            self._records = remaining
            snapshot = tuple(self._records)

        logger.info(f"Deleted sleep record {record_id}, {len(snapshot)} records left")
        self._notify(snapshot)
        return True

    def _notify(self, snapshot):
        for listener in list(self._listeners):
            listener(snapshot)
