"""
Exceptions raised by the Sleep.io engine.
"""


class SleepEngineError(Exception):
    """Base class for all engine errors"""


class InsufficientDataError(SleepEngineError, ValueError):
    """Raised when there are too few records to train or summarize"""

    def __init__(self, record_count, required):
        self.record_count = record_count
        self.required = required
        super().__init__(f"Need at least {required} records, got {record_count}")


class MalformedRecordError(SleepEngineError, ValueError):
    """Raised when a sleep record is missing fields or has invalid values"""


class TrainingFailure(SleepEngineError):
    """Raised when fitting the model fails, times out or diverges"""


class TrainingCancelled(SleepEngineError):
    """Raised when a running training cycle is cancelled by the caller"""


class CycleInProgressError(SleepEngineError, RuntimeError):
    """Raised when a prediction cycle is started while another one is running"""
